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
"""Document repository: one object wiring the query, update and remove executors."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from docshape.config.properties import QueryProperties, StoreProperties
from docshape.execution.dispatch import FilterLike, as_expression, dispatch
from docshape.execution.outcome import NOT_FOUND, NotFound
from docshape.execution.query import QueryExecutor, ResultSet
from docshape.execution.remove import RemovalSummary, RemoveExecutor
from docshape.execution.update import UpdateExecutor, UpdateOutcome, UpdateSummary
from docshape.kernel.exceptions import UpdateRejectedError
from docshape.query.modifiers import Pageable, QueryModifiers
from docshape.query.page import Page
from docshape.query.predicate import Operator, Predicate
from docshape.store.request import CompiledRequest, RequestKind
from docshape.update.spec import ById, UpdateSpec

if TYPE_CHECKING:
    from docshape.core.config import Config
    from docshape.store.port import StoreConnectionPort

logger = logging.getLogger(__name__)


class DocumentRepository:
    """Reads and writes documents of one collection.

    Usage::

        repo = DocumentRepository.from_config(Config.from_file("docshape.yaml"))
        courses = await repo.find(
            FilterUtils.by(author="Jerry", isPublished=True),
            QueryModifiers(sort="name", limit=10, projection="name tags"),
        )
        outcome = await repo.update(UpdateSpec().set("author", "New Author").by_id(course_id))
        removed = await repo.remove(course_id)

    Args:
        connection: An already-connected store.
        document_type: Optional pydantic model results are validated into.
        query_properties: Page size defaults and limits.
    """

    def __init__(
        self,
        connection: StoreConnectionPort,
        document_type: type | None = None,
        query_properties: QueryProperties | None = None,
    ) -> None:
        self._connection = connection
        self._document_type = document_type
        self._query_properties = query_properties or QueryProperties()
        self._queries = QueryExecutor(connection, document_type)
        self._updates = UpdateExecutor(connection, document_type)
        self._removals = RemoveExecutor(connection, document_type)

    @classmethod
    def from_config(cls, config: Config, document_type: type | None = None) -> DocumentRepository:
        """Build a repository over a Motor connection described by *config*."""
        from docshape.store.motor import MotorStoreConnection

        connection = MotorStoreConnection.from_properties(config.bind(StoreProperties))
        return cls(connection, document_type, config.bind(QueryProperties))

    @property
    def connection(self) -> StoreConnectionPort:
        return self._connection

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find(self, expression: FilterLike | None = None, modifiers: QueryModifiers | None = None) -> list[Any]:
        results = await self._queries.find(expression, modifiers)
        return results.to_list()

    async def stream(
        self, expression: FilterLike | None = None, modifiers: QueryModifiers | None = None
    ) -> ResultSet[Any]:
        """Like :meth:`find`, but hand back the lazily mapped :class:`ResultSet`."""
        return await self._queries.find(expression, modifiers)

    async def find_one(self, expression: FilterLike | None = None, modifiers: QueryModifiers | None = None) -> Any:
        """First matching document, or ``NOT_FOUND``."""
        modifiers = replace(modifiers or QueryModifiers(), limit=1)
        document = (await self._queries.find(expression, modifiers)).first()
        return NOT_FOUND if document is None else document

    async def find_by_id(self, id: Any, coerce: bool = True) -> Any:
        """The document with primary key *id*, or ``NOT_FOUND``."""
        return await self.find_one(Predicate("_id", Operator.EQ, ById(id, coerce).key))

    async def count(self, expression: FilterLike | None = None, modifiers: QueryModifiers | None = None) -> int:
        return await self._queries.count(expression, modifiers)

    async def exists(self, expression: FilterLike | None = None) -> bool:
        return await self.count(expression, QueryModifiers(limit=1)) > 0

    async def find_page(self, expression: FilterLike | None = None, pageable: Pageable | None = None) -> Page[Any]:
        """One page of matches plus the total match count.

        Issues one COUNT and one FIND. Page sizes above
        ``QueryProperties.max_page_size`` are clamped to it.
        """
        props = self._query_properties
        if pageable is None:
            pageable = Pageable(page=1, size=props.default_page_size)
        if pageable.size > props.max_page_size:
            pageable = Pageable(page=pageable.page, size=props.max_page_size, sort=pageable.sort)

        expression = as_expression(expression)
        total = await self._queries.count(expression)
        results = await self._queries.find(expression, QueryModifiers.for_page(pageable))
        return Page.of(results.to_list(), total, pageable)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert(self, document: Mapping[str, Any] | Any) -> dict[str, Any]:
        """Insert *document*; returns a copy carrying the store-assigned ``_id``."""
        if hasattr(document, "model_dump"):
            document = document.model_dump(by_alias=True, exclude_none=True)
        payload = dict(document)
        response = await dispatch(
            self._connection,
            CompiledRequest(kind=RequestKind.INSERT_ONE, document=payload),
            UpdateRejectedError,
        )
        if response.inserted_id is not None:
            payload["_id"] = response.inserted_id
        logger.debug("Inserted document %r", payload.get("_id"))
        return payload

    async def update(self, spec: UpdateSpec) -> UpdateOutcome:
        return await self._updates.execute(spec)

    async def update_many(self, expression: FilterLike | None, spec: UpdateSpec) -> UpdateSummary:
        return await self._updates.update_many(expression, spec)

    async def remove(self, id: Any, coerce: bool = True) -> Any | NotFound:
        return await self._removals.remove(id, coerce)

    async def remove_one(self, expression: FilterLike) -> RemovalSummary:
        return await self._removals.remove_one(expression)

    async def remove_many(self, expression: FilterLike) -> RemovalSummary:
        return await self._removals.remove_many(expression)
