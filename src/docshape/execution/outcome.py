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
"""Terminal outcome values shared by the executors."""

from __future__ import annotations

from typing import Any


class NotFound:
    """The target of a single-document operation does not exist.

    This is a successful outcome, not an error. There is exactly one
    instance, :data:`NOT_FOUND`; it is falsy so ``if doc:`` reads naturally.
    """

    _instance: NotFound | None = None

    def __new__(cls) -> NotFound:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __reduce__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = NotFound()


def map_document(raw: dict[str, Any], document_type: type | None = None) -> Any:
    """Return *raw* as-is, or validated into *document_type* (a pydantic model)."""
    if document_type is None:
        return raw
    return document_type.model_validate(raw)  # type: ignore[attr-defined]
