# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Query execution: one plan in, one store request out."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from docshape.execution.dispatch import FilterLike, as_expression, dispatch
from docshape.execution.outcome import map_document
from docshape.kernel.exceptions import StoreQueryError
from docshape.query.modifiers import QueryModifiers
from docshape.query.plan import ExecutionPlan, apply_modifiers
from docshape.store.port import StoreConnectionPort

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResultSet(Generic[T]):
    """Finite, lazily mapped sequence of query results.

    Raw documents are converted one at a time as they are consumed. A
    result set can be iterated once; iterating again yields nothing.
    """

    def __init__(self, documents: Iterable[dict[str, Any]], document_type: type | None = None) -> None:
        self._raw = iter(documents)
        self._document_type = document_type

    def __iter__(self) -> ResultSet[T]:
        return self

    def __next__(self) -> T:
        return map_document(next(self._raw), self._document_type)

    def to_list(self) -> list[T]:
        """Drain the remaining results into a list."""
        return list(self)

    def first(self) -> T | None:
        return next(self, None)


class QueryExecutor:
    """Compiles execution plans and issues exactly one store request per call.

    Args:
        connection: An already-connected store.
        document_type: Optional pydantic model each fetched document is
            validated into. Raw mappings are returned when omitted.
    """

    def __init__(self, connection: StoreConnectionPort, document_type: type | None = None) -> None:
        self._connection = connection
        self._document_type = document_type

    async def execute(self, plan: ExecutionPlan) -> ResultSet[Any] | int:
        """Run *plan*: a :class:`ResultSet` for fetch mode, an ``int`` for count mode.

        Raises:
            StoreUnavailableError: transport failure; safe to retry.
            StoreQueryError: the store rejected the request.
        """
        request = plan.to_request()
        response = await dispatch(self._connection, request, StoreQueryError)

        if plan.is_count:
            if response.count is None:
                raise StoreQueryError("Count response carried no count", context={"kind": request.kind.value})
            return response.count

        documents = response.documents if response.documents is not None else []
        logger.debug("Fetched %d document(s)", len(documents))
        return ResultSet(documents, self._document_type)

    async def find(
        self,
        expression: FilterLike | None = None,
        modifiers: QueryModifiers | None = None,
    ) -> ResultSet[Any]:
        plan = apply_modifiers(as_expression(expression), (modifiers or QueryModifiers()).fetching())
        return await self.execute(plan)  # type: ignore[return-value]

    async def count(
        self,
        expression: FilterLike | None = None,
        modifiers: QueryModifiers | None = None,
    ) -> int:
        plan = apply_modifiers(as_expression(expression), (modifiers or QueryModifiers()).counting())
        return await self.execute(plan)  # type: ignore[return-value]
