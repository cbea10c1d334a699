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
"""Dynamic filter building utilities.

Provides :class:`FilterOperator` for individual field predicates and
:class:`FilterUtils` for building conjunctions from partial objects, dicts,
or keyword arguments.

Example::

    # From keyword arguments (eq by default, ANDed together)
    expr = FilterUtils.by(author="Jerry", isPublished=True)
    courses = await repo.find(expr)

    # Using operators directly for richer predicates
    expr = FilterOperator.gte("price", 100) & FilterOperator.lte("price", 1000)
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Iterable
from typing import Any

from docshape.query.expression import MATCH_ALL, And, FilterExpression, Leaf
from docshape.query.predicate import Operator, Pattern, Predicate


class FilterOperator:
    """Factories producing single-predicate :class:`Leaf` expressions.

    Leaves combine with ``&`` (AND) and ``|`` (OR).
    """

    @staticmethod
    def eq(field: str, value: Any) -> Leaf:
        """Equal to."""
        return Leaf(Predicate(field, Operator.EQ, value))

    @staticmethod
    def ne(field: str, value: Any) -> Leaf:
        """Not equal to."""
        return Leaf(Predicate(field, Operator.NE, value))

    @staticmethod
    def gt(field: str, value: Any) -> Leaf:
        return Leaf(Predicate(field, Operator.GT, value))

    @staticmethod
    def gte(field: str, value: Any) -> Leaf:
        return Leaf(Predicate(field, Operator.GTE, value))

    @staticmethod
    def lt(field: str, value: Any) -> Leaf:
        return Leaf(Predicate(field, Operator.LT, value))

    @staticmethod
    def lte(field: str, value: Any) -> Leaf:
        return Leaf(Predicate(field, Operator.LTE, value))

    @staticmethod
    def in_list(field: str, values: Iterable[Any]) -> Leaf:
        """Value is one of *values* (array fields: contains any of them)."""
        return Leaf(Predicate(field, Operator.IN, values if isinstance(values, (list, tuple)) else list(values)))

    @staticmethod
    def not_in(field: str, values: Iterable[Any]) -> Leaf:
        return Leaf(Predicate(field, Operator.NIN, values if isinstance(values, (list, tuple)) else list(values)))

    @staticmethod
    def regex(field: str, pattern: str | re.Pattern[str] | Pattern, case_insensitive: bool | None = None) -> Leaf:
        """Regex pattern match. A compiled ``re.Pattern`` keeps its IGNORECASE flag."""
        return Leaf(Predicate(field, Operator.REGEX, Pattern.of(pattern, case_insensitive)))

    @staticmethod
    def starts_with(field: str, prefix: str, case_insensitive: bool = False) -> Leaf:
        return FilterOperator.regex(field, "^" + re.escape(prefix), case_insensitive)

    @staticmethod
    def ends_with(field: str, suffix: str, case_insensitive: bool = False) -> Leaf:
        return FilterOperator.regex(field, re.escape(suffix) + "$", case_insensitive)

    @staticmethod
    def contains(field: str, value: str, case_insensitive: bool = False) -> Leaf:
        """String contains *value* literally."""
        return FilterOperator.regex(field, ".*" + re.escape(value) + ".*", case_insensitive)

    @staticmethod
    def between(field: str, low: Any, high: Any) -> And:
        """Value is between *low* and *high* (inclusive)."""
        return FilterOperator.gte(field, low) & FilterOperator.lte(field, high)


class FilterUtils:
    """Build conjunctions dynamically from entities, dicts, or kwargs.

    Usage::

        # From keyword arguments (eq by default)
        expr = FilterUtils.by(author="Jerry", isPublished=True)

        # From a dict
        expr = FilterUtils.from_dict({"author": "Jerry", "price": None})

        # From a partial object (non-None fields become eq filters)
        expr = FilterUtils.from_example(CourseFilter(author="Jerry"))
    """

    @classmethod
    def by(cls, **kwargs: Any) -> FilterExpression:
        """Create an expression from keyword arguments (all eq, ANDed)."""
        return cls._combine_and([FilterOperator.eq(field, value) for field, value in kwargs.items()])

    @classmethod
    def from_dict(cls, filters: dict[str, Any]) -> FilterExpression:
        """Create an expression from a dict of field->value pairs. ``None`` values are skipped."""
        return cls._combine_and(
            [FilterOperator.eq(field, value) for field, value in filters.items() if value is not None]
        )

    @classmethod
    def from_example(cls, example: Any) -> FilterExpression:
        """Create an expression from the non-``None`` attributes of *example*.

        Supports dataclasses, pydantic models and any object with ``__dict__``.
        """
        if dataclasses.is_dataclass(example) and not isinstance(example, type):
            fields = {f.name: getattr(example, f.name) for f in dataclasses.fields(example)}
        elif hasattr(example, "model_dump"):
            fields = example.model_dump()
        else:
            fields = vars(example)
        return cls.from_dict(fields)

    @staticmethod
    def _combine_and(leaves: list[FilterExpression]) -> FilterExpression:
        if not leaves:
            return MATCH_ALL
        if len(leaves) == 1:
            return leaves[0]
        return And(tuple(leaves))
