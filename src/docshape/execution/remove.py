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
"""Single-document removal and bulk removal.

The two shapes never mix: :meth:`RemoveExecutor.remove` returns the
deleted document (or ``NOT_FOUND``); the bulk calls return counts only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from docshape.execution.dispatch import FilterLike, dispatch, filter_document
from docshape.execution.outcome import NOT_FOUND, NotFound, map_document
from docshape.kernel.exceptions import InvalidExpressionError, StoreQueryError
from docshape.store.port import StoreConnectionPort
from docshape.store.request import CompiledRequest, RequestKind
from docshape.update.spec import ById

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemovalSummary:
    matched_count: int
    deleted_count: int


class RemoveExecutor:
    def __init__(self, connection: StoreConnectionPort, document_type: type | None = None) -> None:
        self._connection = connection
        self._document_type = document_type

    async def remove(self, id: Any, coerce: bool = True) -> Any | NotFound:
        """Delete the document with primary key *id* and return it.

        Returns :data:`NOT_FOUND` when no such document exists; never raises
        for a missing id.
        """
        request = CompiledRequest(kind=RequestKind.FIND_ONE_AND_DELETE, filter=ById(id, coerce).to_filter())
        response = await dispatch(self._connection, request, StoreQueryError)
        if response.document is None:
            logger.debug("Nothing to remove for id %r", id)
            return NOT_FOUND
        return map_document(response.document, self._document_type)

    async def remove_one(self, expression: FilterLike) -> RemovalSummary:
        """Delete the first document matching *expression*."""
        return await self._delete(RequestKind.DELETE_ONE, expression)

    async def remove_many(self, expression: FilterLike) -> RemovalSummary:
        """Delete every document matching *expression*.

        Pass ``MATCH_ALL`` to empty the collection; ``None`` is refused.
        """
        return await self._delete(RequestKind.DELETE_MANY, expression)

    async def _delete(self, kind: RequestKind, expression: FilterLike) -> RemovalSummary:
        if expression is None:
            raise InvalidExpressionError(f"{kind.value} needs a filter; use MATCH_ALL to match every document")
        request = CompiledRequest(kind=kind, filter=filter_document(expression))
        response = await dispatch(self._connection, request, StoreQueryError)
        deleted = response.deleted_count or 0
        # delete results only report deletions; every match was deleted
        return RemovalSummary(matched_count=deleted, deleted_count=deleted)
