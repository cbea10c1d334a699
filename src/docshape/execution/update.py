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
"""Update execution under the two strategies.

``FETCH_MODIFY_SAVE`` sends a FIND then a REPLACE_ONE; ``ATOMIC_UPDATE``
sends a single FIND_ONE_AND_UPDATE. A missing target ends in
``UpdateState.NOT_FOUND`` without any write.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from docshape.execution.dispatch import FilterLike, dispatch, filter_document
from docshape.execution.outcome import NOT_FOUND, map_document
from docshape.kernel.exceptions import (
    InvalidUpdateError,
    StoreQueryError,
    UpdateRejectedError,
)
from docshape.store.port import StoreConnectionPort
from docshape.store.request import CompiledRequest, RequestKind
from docshape.update.apply import apply_updates
from docshape.update.compiler import compile_update
from docshape.update.spec import ReturnPolicy, UpdateSpec, UpdateState, UpdateStrategy

logger = logging.getLogger(__name__)

# WriteConflict, DocumentValidationFailure, DuplicateKey (two variants)
WRITE_CONFLICT_CODES = frozenset({"112", "121", "11000", "11001"})


@dataclass(frozen=True)
class UpdateOutcome:
    """Terminal result of one update.

    ``document`` holds the pre- or post-image chosen by the return policy,
    or :data:`NOT_FOUND` when the target did not exist.
    """

    state: UpdateState
    document: Any = NOT_FOUND

    @property
    def committed(self) -> bool:
        return self.state is UpdateState.COMMITTED

    @property
    def not_found(self) -> bool:
        return self.state is UpdateState.NOT_FOUND


@dataclass(frozen=True)
class UpdateSummary:
    matched_count: int
    modified_count: int


def _rejected(message: str, **context: Any) -> UpdateRejectedError:
    return UpdateRejectedError(message, context={"state": UpdateState.FAILED, **context})


class UpdateExecutor:
    """Runs :class:`UpdateSpec` instances against a store connection.

    Args:
        connection: An already-connected store.
        document_type: Optional pydantic model the returned image is
            validated into.
    """

    def __init__(self, connection: StoreConnectionPort, document_type: type | None = None) -> None:
        self._connection = connection
        self._document_type = document_type

    async def execute(self, spec: UpdateSpec) -> UpdateOutcome:
        """Run *spec* with the strategy it names.

        Raises:
            InvalidUpdateError: no target, no operations, or conflicting
                operations (atomic only). Nothing is sent.
            UpdateRejectedError: the write was refused.
            StoreUnavailableError: transport failure.
        """
        spec.validate()
        if spec.strategy is UpdateStrategy.FETCH_MODIFY_SAVE:
            return await self._fetch_modify_save(spec)
        if spec.strategy is UpdateStrategy.ATOMIC_UPDATE:
            return await self._atomic_update(spec)
        raise InvalidUpdateError(f"Unknown update strategy {spec.strategy!r}")

    async def update_many(self, expression: FilterLike | None, spec: UpdateSpec) -> UpdateSummary:
        """Apply *spec*'s operations to every matching document in one request.

        Uses *expression* when given, else the UpdateSpec target. The
        strategy and return policy do not apply here.
        """
        if expression is not None:
            filter_doc = filter_document(expression)
        elif spec.target is not None:
            filter_doc = spec.target.to_filter()
        else:
            raise InvalidUpdateError("update_many needs a filter or a targeted spec")
        if not spec.operations:
            raise InvalidUpdateError("Update has no operations")

        request = CompiledRequest(
            kind=RequestKind.UPDATE_MANY,
            filter=filter_doc,
            update=compile_update(spec.operations),
        )
        response = await dispatch(self._connection, request, UpdateRejectedError, {"state": UpdateState.FAILED})
        return UpdateSummary(
            matched_count=response.matched_count or 0,
            modified_count=response.modified_count or 0,
        )

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    async def _fetch_modify_save(self, spec: UpdateSpec) -> UpdateOutcome:
        target_filter = spec.target.to_filter()  # type: ignore[union-attr]
        fetched = await dispatch(
            self._connection,
            CompiledRequest(kind=RequestKind.FIND, filter=target_filter, limit=2),
            StoreQueryError,
        )
        documents = fetched.documents or []
        if not documents:
            logger.debug("Update target not found: %s", target_filter)
            return UpdateOutcome(state=UpdateState.NOT_FOUND)
        if len(documents) > 1:
            raise _rejected("Update target is not unique", filter=target_filter)

        original = documents[0]
        if "_id" not in original:
            raise _rejected("Fetched document has no _id", filter=target_filter)

        try:
            updated = apply_updates(original, spec.operations)
        except UpdateRejectedError as exc:
            exc.context["state"] = UpdateState.FAILED
            logger.warning("Update rejected while applying in memory: %s", exc)
            raise

        saved = await dispatch(
            self._connection,
            CompiledRequest(kind=RequestKind.REPLACE_ONE, filter={"_id": original["_id"]}, document=updated),
            UpdateRejectedError,
            {"state": UpdateState.FAILED},
        )
        if not saved.matched_count:
            logger.warning("Document %s vanished before save", original["_id"])
            raise _rejected("Document was removed before it could be saved", id=original["_id"])

        image = updated if spec.return_policy is ReturnPolicy.UPDATED else original
        return UpdateOutcome(state=UpdateState.COMMITTED, document=map_document(image, self._document_type))

    async def _atomic_update(self, spec: UpdateSpec) -> UpdateOutcome:
        request = CompiledRequest(
            kind=RequestKind.FIND_ONE_AND_UPDATE,
            filter=spec.target.to_filter(),  # type: ignore[union-attr]
            update=compile_update(spec.operations),
            return_updated=spec.return_policy is ReturnPolicy.UPDATED,
        )
        response = await dispatch(self._connection, request, UpdateRejectedError, {"state": UpdateState.FAILED})
        if response.document is None:
            logger.debug("Update target not found: %s", request.filter)
            return UpdateOutcome(state=UpdateState.NOT_FOUND)
        return UpdateOutcome(
            state=UpdateState.COMMITTED,
            document=map_document(response.document, self._document_type),
        )


def is_write_conflict(error: UpdateRejectedError) -> bool:
    """True when *error* came from a store write conflict or validation failure."""
    return error.code in WRITE_CONFLICT_CODES
