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
"""Compile field updates into a store operator document.

Repeated operations of one kind on one field fold into a single entry:
``set``/``rename`` keep the last value, ``inc`` sums, ``min`` keeps the
smallest and ``max`` the largest. Two different kinds touching the same
path (or a path and one of its prefixes) cannot be expressed in one
operator document and are rejected before anything is sent.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from docshape.kernel.exceptions import InvalidUpdateError
from docshape.update.spec import FieldUpdate, UpdateKind

_OPERATORS: dict[UpdateKind, str] = {
    UpdateKind.SET: "$set",
    UpdateKind.INC: "$inc",
    UpdateKind.MIN: "$min",
    UpdateKind.MAX: "$max",
    UpdateKind.RENAME: "$rename",
}


def _overlaps(a: str, b: str) -> bool:
    return a == b or a.startswith(b + ".") or b.startswith(a + ".")


def _fold(kind: UpdateKind, field: str, previous: Any, value: Any) -> Any:
    if kind is UpdateKind.INC:
        try:
            return previous + value
        except TypeError as exc:
            raise InvalidUpdateError(
                f"Cannot add {type(value).__name__} to {type(previous).__name__} for {field!r}",
                context={"field": field},
            ) from exc
    if kind in (UpdateKind.MIN, UpdateKind.MAX):
        try:
            keep_new = value < previous if kind is UpdateKind.MIN else value > previous
        except TypeError as exc:
            raise InvalidUpdateError(
                f"Cannot combine {kind.value} values for {field!r}",
                context={"field": field},
            ) from exc
        return value if keep_new else previous
    return value


def _paths(op: FieldUpdate) -> tuple[str, ...]:
    if op.kind is UpdateKind.RENAME:
        return (op.field, op.value)
    return (op.field,)


def compile_update(operations: Iterable[FieldUpdate]) -> dict[str, dict[str, Any]]:
    """Build ``{"$set": {...}, "$inc": {...}, ...}`` from *operations*.

    Raises:
        InvalidUpdateError: no operations, or conflicting operations on one path.
    """
    folded: dict[tuple[UpdateKind, str], Any] = {}
    claimed: list[tuple[str, UpdateKind, str]] = []

    for op in operations:
        key = (op.kind, op.field)
        if key in folded:
            folded[key] = _fold(op.kind, op.field, folded[key], op.value)
            if op.kind is UpdateKind.RENAME:
                # the rename target moved; re-check it below
                claimed = [c for c in claimed if c[1:] != key]
            else:
                continue
        else:
            folded[key] = op.value

        for path in _paths(op):
            for other_path, other_kind, other_field in claimed:
                if other_field != op.field or other_kind is not op.kind:
                    if _overlaps(path, other_path):
                        raise InvalidUpdateError(
                            f"Conflicting updates on {path!r}: "
                            f"{op.kind.value} and {other_kind.value}",
                            context={"field": path},
                        )
        claimed.extend((path, op.kind, op.field) for path in _paths(op))

    if not folded:
        raise InvalidUpdateError("Update has no operations")

    document: dict[str, dict[str, Any]] = {}
    for (kind, field), value in folded.items():
        document.setdefault(_OPERATORS[kind], {})[field] = value
    return document
