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
"""Wire contract between the executors and a store connection.

Executors compile every call into exactly one :class:`CompiledRequest`; the
connection answers with a :class:`RawResponse`. Transport failures are
raised by the connection; requests the store refuses come back as a
response carrying ``error_code``/``error_message``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class RequestKind(Enum):
    FIND = "find"
    COUNT = "count"
    INSERT_ONE = "insert_one"
    REPLACE_ONE = "replace_one"
    FIND_ONE_AND_UPDATE = "find_one_and_update"
    UPDATE_MANY = "update_many"
    FIND_ONE_AND_DELETE = "find_one_and_delete"
    DELETE_ONE = "delete_one"
    DELETE_MANY = "delete_many"

    @property
    def is_write(self) -> bool:
        return self not in (RequestKind.FIND, RequestKind.COUNT)


@dataclass(frozen=True)
class CompiledRequest:
    """A store-ready request.

    Attributes:
        kind: Which store operation to run.
        filter: Filter document (``{}`` matches everything).
        sort: ``[(field, 1 | -1), ...]`` in precedence order.
        skip: Documents to skip before returning or counting.
        limit: Maximum documents to return or count.
        projection: ``{field: 1}`` or ``{field: 0}`` document.
        update: Operator map (``{"$set": {...}, "$inc": {...}}``).
        document: Full document for inserts and replacements.
        return_updated: For find-and-update, return the post-image.
    """

    kind: RequestKind
    filter: dict[str, Any] = field(default_factory=dict)
    sort: list[tuple[str, int]] | None = None
    skip: int | None = None
    limit: int | None = None
    projection: dict[str, int] | None = None
    update: dict[str, dict[str, Any]] | None = None
    document: dict[str, Any] | None = None
    return_updated: bool = False


@dataclass(frozen=True)
class RawResponse:
    """What came back from the store for one request."""

    documents: list[dict[str, Any]] | None = None
    document: dict[str, Any] | None = None
    count: int | None = None
    matched_count: int | None = None
    modified_count: int | None = None
    deleted_count: int | None = None
    inserted_id: Any = None
    error_code: int | str | None = None
    error_message: str | None = None

    @property
    def ok(self) -> bool:
        return self.error_code is None and self.error_message is None

    @staticmethod
    def failure(code: int | str | None, message: str) -> RawResponse:
        return RawResponse(error_code=code, error_message=message)
