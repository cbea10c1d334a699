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
"""Composable filter expressions and their compilation to store filter documents.

A filter is a tree of :class:`Leaf` (one :class:`Predicate`), :class:`And`
and :class:`Or` nodes. Expressions combine with the standard Python
operators:

* ``a & b``: both must match (``$and``).
* ``a | b``: either may match (``$or``).

Example::

    jerry = FilterOperator.eq("author", "Jerry")
    published = FilterOperator.eq("isPublished", True)

    compile_filter(jerry & published)
    # {"author": "Jerry", "isPublished": True}

    compile_filter(FilterOperator.lt("price", 100) | FilterOperator.gt("price", 1000))
    # {"$or": [{"price": {"$lt": 100}}, {"price": {"$gt": 1000}}]}

An empty conjunction (:data:`MATCH_ALL`) matches every document and compiles
to ``{}``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from docshape.kernel.exceptions import InvalidExpressionError
from docshape.query.predicate import Operator, OperatorCategory, Predicate

_COMPARISON_TOKENS: dict[Operator, str] = {
    Operator.EQ: "$eq",
    Operator.NE: "$ne",
    Operator.GT: "$gt",
    Operator.GTE: "$gte",
    Operator.LT: "$lt",
    Operator.LTE: "$lte",
}

_MEMBERSHIP_TOKENS: dict[Operator, str] = {
    Operator.IN: "$in",
    Operator.NIN: "$nin",
}


class FilterExpression:
    """Base of the filter tree. Subclasses are immutable value objects."""

    __slots__ = ()

    def __and__(self, other: FilterExpression | Predicate) -> And:
        return And((self, other))

    def __or__(self, other: FilterExpression | Predicate) -> Or:
        return Or((self, other))

    def to_filter(self) -> dict[str, Any]:
        """Compile this expression into a store filter document."""
        return compile_filter(self)


def _as_expression(item: Any) -> FilterExpression:
    if isinstance(item, FilterExpression):
        return item
    if isinstance(item, Predicate):
        return Leaf(item)
    raise InvalidExpressionError(
        f"Expected a FilterExpression or Predicate, got {type(item).__name__}",
        context={"item": repr(item)},
    )


@dataclass(frozen=True)
class Leaf(FilterExpression):
    """A single predicate."""

    predicate: Predicate

    def __post_init__(self) -> None:
        if not isinstance(self.predicate, Predicate):
            raise InvalidExpressionError(
                f"Leaf needs a Predicate, got {type(self.predicate).__name__}"
            )


@dataclass(frozen=True)
class And(FilterExpression):
    """Conjunction: every child must hold. No children matches everything."""

    children: tuple[FilterExpression, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", tuple(_as_expression(c) for c in self.children))


@dataclass(frozen=True)
class Or(FilterExpression):
    """Disjunction: at least one child must hold."""

    children: tuple[FilterExpression, ...] = ()

    def __post_init__(self) -> None:
        children = tuple(_as_expression(c) for c in self.children)
        if not children:
            raise InvalidExpressionError("Or needs at least one child expression")
        object.__setattr__(self, "children", children)


MATCH_ALL = And(())


def all_of(*items: FilterExpression | Predicate) -> And:
    """Implicit-AND of top-level conditions."""
    return And(items)


def any_of(*items: FilterExpression | Predicate) -> Or:
    return Or(items)


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


def compile_filter(expression: FilterExpression | Predicate | None) -> dict[str, Any]:
    """Compile *expression* into a store filter document.

    Pure function. Raises :class:`InvalidExpressionError` when a predicate
    is invalid, including trees assembled by hand around the constructors.
    ``None`` compiles like :data:`MATCH_ALL`.
    """
    if expression is None:
        return {}
    return _compile(_as_expression(expression))


def _compile(node: FilterExpression) -> dict[str, Any]:
    if isinstance(node, Leaf):
        return compile_predicate(node.predicate)
    if isinstance(node, And):
        return _compile_and(node)
    if isinstance(node, Or):
        return _compile_or(node)
    raise InvalidExpressionError(f"Unsupported expression node {type(node).__name__}")


def compile_predicate(predicate: Predicate) -> dict[str, Any]:
    """Map one predicate onto its ``{field: ...}`` filter fragment."""
    predicate.validate()
    field, op, value = predicate.field, predicate.op, predicate.value
    category = op.category

    if category is OperatorCategory.MEMBERSHIP:
        return {field: {_MEMBERSHIP_TOKENS[op]: list(value)}}
    if category is OperatorCategory.PATTERN:
        fragment: dict[str, Any] = {"$regex": value.source}
        if value.case_insensitive:
            fragment["$options"] = "i"
        return {field: fragment}
    if op is Operator.EQ and not isinstance(value, dict):
        return {field: value}
    return {field: {_COMPARISON_TOKENS[op]: value}}


def _flatten(node: FilterExpression, kind: type[And] | type[Or]) -> list[FilterExpression]:
    if isinstance(node, kind):
        flat: list[FilterExpression] = []
        for child in node.children:
            flat.extend(_flatten(child, kind))
        return flat
    return [node]


def _compile_and(node: And) -> dict[str, Any]:
    fragments = [f for f in (_compile(c) for c in _flatten(node, And)) if f]
    if not fragments:
        return {}
    if len(fragments) == 1:
        return fragments[0]

    merged: dict[str, Any] = {}
    for fragment in fragments:
        if merged.keys() & fragment.keys():
            # same key twice: keep every condition instead of letting the later one win
            return {"$and": fragments}
        merged.update(fragment)
    return merged


def _compile_or(node: Or) -> dict[str, Any]:
    if not node.children:
        raise InvalidExpressionError("Or needs at least one child expression")
    fragments = [_compile(c) for c in _flatten(node, Or)]
    if any(not f for f in fragments):
        # one branch matches everything
        return {}
    if len(fragments) == 1:
        return fragments[0]
    return {"$or": fragments}
