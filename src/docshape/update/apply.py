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
"""In-memory application of field updates, used by fetch-modify-save.

Operations apply strictly in order to a deep copy of the document; the
input document is never touched. Dotted paths address nested documents.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

from docshape.kernel.exceptions import UpdateRejectedError
from docshape.update.spec import FieldUpdate, UpdateKind

_MISSING = object()


def deep_get(doc: Mapping[str, Any], dotted_key: str, default: Any = None) -> Any:
    cur: Any = doc
    for part in dotted_key.split("."):
        if isinstance(cur, Mapping) and part in cur:
            cur = cur[part]
        else:
            return default
    return cur


def deep_set(doc: dict[str, Any], dotted_key: str, value: Any) -> None:
    """Set *dotted_key*, creating intermediate documents as needed.

    Raises:
        UpdateRejectedError: an intermediate path element is not a document.
    """
    parts = dotted_key.split(".")
    cur = doc
    for i, part in enumerate(parts[:-1]):
        if part not in cur:
            cur[part] = {}
        elif not isinstance(cur[part], dict):
            raise UpdateRejectedError(
                f"Cannot create field {parts[i + 1]!r} in non-document element {part!r}",
                context={"field": dotted_key},
            )
        cur = cur[part]
    cur[parts[-1]] = value


def deep_unset(doc: dict[str, Any], dotted_key: str) -> None:
    parts = dotted_key.split(".")
    cur = doc
    for part in parts[:-1]:
        if part not in cur or not isinstance(cur[part], dict):
            return
        cur = cur[part]
    cur.pop(parts[-1], None)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _compare(op: FieldUpdate, current: Any) -> bool:
    """True when *op*'s value should replace *current*."""
    try:
        if op.kind is UpdateKind.MIN:
            return op.value < current
        return op.value > current
    except TypeError as exc:
        raise UpdateRejectedError(
            f"{op.kind.value} on {op.field!r}: cannot compare "
            f"{type(op.value).__name__} with {type(current).__name__}",
            context={"field": op.field},
        ) from exc


def apply_update(document: dict[str, Any], op: FieldUpdate) -> None:
    """Apply one operation to *document* in place."""
    current = deep_get(document, op.field, _MISSING)

    if op.kind is UpdateKind.SET:
        deep_set(document, op.field, op.value)
    elif op.kind is UpdateKind.INC:
        if current is _MISSING:
            deep_set(document, op.field, op.value)
        elif not _is_number(current):
            raise UpdateRejectedError(
                f"inc on {op.field!r} needs a numeric field, found {type(current).__name__}",
                context={"field": op.field},
            )
        else:
            try:
                total = current + op.value
            except TypeError as exc:
                raise UpdateRejectedError(
                    f"inc on {op.field!r}: cannot add {type(op.value).__name__} "
                    f"to {type(current).__name__}",
                    context={"field": op.field},
                ) from exc
            deep_set(document, op.field, total)
    elif op.kind in (UpdateKind.MIN, UpdateKind.MAX):
        if current is _MISSING or _compare(op, current):
            deep_set(document, op.field, op.value)
    elif op.kind is UpdateKind.RENAME:
        if current is not _MISSING:
            deep_unset(document, op.field)
            deep_set(document, op.value, current)
    else:
        raise UpdateRejectedError(f"Unsupported update kind {op.kind!r}")


def apply_updates(document: Mapping[str, Any], operations: Iterable[FieldUpdate]) -> dict[str, Any]:
    """Return a copy of *document* with *operations* applied in order.

    Raises:
        UpdateRejectedError: an operation does not fit the document
            (``inc`` on a non-number, incomparable ``min``/``max``, a path
            through a non-document value).
    """
    updated = copy.deepcopy(dict(document))
    for op in operations:
        apply_update(updated, op)
    return updated
