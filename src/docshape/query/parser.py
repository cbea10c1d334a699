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
"""Parse store-style filter documents into :class:`FilterExpression` trees.

Accepts the filter shapes callers already write by hand::

    parse_filter({"author": "Jerry", "isPublished": True})
    parse_filter({"price": {"$gte": 100, "$lte": 1000}})
    parse_filter({"$or": [{"author": "Jerry"}, {"isPublished": True}]})
    parse_filter({"author": re.compile("^jerry", re.I)})

Everything is validated on the way in, so a document such as
``{"price": {"$in": [{"$lt": 100}]}}`` is rejected with
:class:`InvalidExpressionError` before it could reach the store.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from bson.regex import Regex

from docshape.kernel.exceptions import InvalidExpressionError
from docshape.query.expression import MATCH_ALL, And, FilterExpression, Leaf, Or
from docshape.query.predicate import Operator, Pattern, Predicate

_FIELD_OPERATORS: dict[str, Operator] = {
    "$eq": Operator.EQ,
    "$ne": Operator.NE,
    "$gt": Operator.GT,
    "$gte": Operator.GTE,
    "$lt": Operator.LT,
    "$lte": Operator.LTE,
    "$in": Operator.IN,
    "$nin": Operator.NIN,
    "$regex": Operator.REGEX,
}


def parse_filter(document: Mapping[str, Any] | None) -> FilterExpression:
    """Convert a filter document into an expression tree.

    Top-level entries combine with implicit AND. An empty document yields
    :data:`MATCH_ALL`.
    """
    if document is None:
        return MATCH_ALL
    if not isinstance(document, Mapping):
        raise InvalidExpressionError(f"Filter must be a mapping, got {type(document).__name__}")

    parts: list[FilterExpression] = []
    for key, value in document.items():
        if key == "$and":
            parts.append(And(tuple(parse_filter(c) for c in _clause_list(key, value))))
        elif key == "$or":
            clauses = _clause_list(key, value)
            if not clauses:
                raise InvalidExpressionError("$or needs at least one clause")
            parts.append(Or(tuple(parse_filter(c) for c in clauses)))
        elif key.startswith("$"):
            raise InvalidExpressionError(f"Unsupported logical operator: {key}", context={"operator": key})
        else:
            parts.extend(_parse_field(key, value))

    if not parts:
        return MATCH_ALL
    if len(parts) == 1:
        return parts[0]
    return And(tuple(parts))


def _clause_list(op: str, value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, (list, tuple)):
        raise InvalidExpressionError(f"{op} requires a list of clauses", context={"operator": op})
    return list(value)


def _is_operator_document(value: Any) -> bool:
    return isinstance(value, Mapping) and bool(value) and any(str(k).startswith("$") for k in value)


def _parse_field(field: str, condition: Any) -> list[FilterExpression]:
    if isinstance(condition, (re.Pattern, Regex)):
        return [Leaf(Predicate(field, Operator.REGEX, _pattern_from(condition)))]
    if not _is_operator_document(condition):
        return [Leaf(Predicate(field, Operator.EQ, condition))]

    if not all(str(k).startswith("$") for k in condition):
        raise InvalidExpressionError(
            f"Condition on {field!r} mixes operators and plain keys",
            context={"field": field},
        )

    options = condition.get("$options")
    leaves: list[FilterExpression] = []
    for op_key, arg in condition.items():
        if op_key == "$options":
            if "$regex" not in condition:
                raise InvalidExpressionError(f"$options without $regex on {field!r}", context={"field": field})
            continue
        op = _FIELD_OPERATORS.get(op_key)
        if op is None:
            raise InvalidExpressionError(f"Unsupported operator: {op_key}", context={"field": field})
        if op in (Operator.IN, Operator.NIN):
            _reject_nested(field, op_key, arg)
        if op is Operator.REGEX:
            arg = _pattern_from(arg, options)
        leaves.append(Leaf(Predicate(field, op, arg)))
    return leaves


def _reject_nested(field: str, op_key: str, values: Any) -> None:
    if isinstance(values, (list, tuple)):
        for item in values:
            if _is_operator_document(item):
                raise InvalidExpressionError(
                    f"cannot nest operators under {op_key} (field {field!r})",
                    context={"field": field, "element": repr(item)},
                )


def _pattern_from(value: Any, options: Any = None) -> Pattern:
    if isinstance(value, Regex):
        options = value.flags if options is None else options
        value = value.pattern
    if isinstance(options, int):
        # bson Regex carries python re flags
        return Pattern.of(value, bool(options & re.IGNORECASE))
    if options is None:
        return Pattern.of(value)
    unsupported = set(str(options)) - {"i"}
    if unsupported:
        raise InvalidExpressionError(
            f"Unsupported regex options: {''.join(sorted(unsupported))}",
            context={"options": options},
        )
    return Pattern.of(value, "i" in str(options))
