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
"""Single field-level conditions.

A :class:`Predicate` pairs a field name with an :class:`Operator` and a
value. Operators form a closed set split into three categories:

* comparison: ``EQ``, ``NE``, ``GT``, ``GTE``, ``LT``, ``LTE``
* membership: ``IN``, ``NIN``
* pattern: ``REGEX``

Predicates validate on construction, so an invalid one never reaches the
compiler or the store.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Set as AbstractSet
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

import regex
from bson import ObjectId

from docshape.kernel.exceptions import InvalidExpressionError

SCALAR_TYPES: tuple[type, ...] = (
    str,
    int,
    float,
    bool,
    type(None),
    datetime,
    date,
    Decimal,
    uuid.UUID,
    ObjectId,
)


class OperatorCategory(Enum):
    COMPARISON = "comparison"
    MEMBERSHIP = "membership"
    PATTERN = "pattern"


class Operator(Enum):
    """Field-level operators understood by the filter compiler."""

    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    NIN = "nin"
    REGEX = "regex"

    @property
    def category(self) -> OperatorCategory:
        if self in (Operator.IN, Operator.NIN):
            return OperatorCategory.MEMBERSHIP
        if self is Operator.REGEX:
            return OperatorCategory.PATTERN
        return OperatorCategory.COMPARISON


def is_scalar(value: Any) -> bool:
    return isinstance(value, SCALAR_TYPES)


@dataclass(frozen=True)
class Pattern:
    """A regular expression plus its case-insensitivity flag.

    The store speaks PCRE, which has syntax the standard :mod:`re` module
    lacks, such as ``\\p{L}`` properties and ``(?<name>...)`` groups.
    Sources are checked with the :mod:`regex` package, which parses those
    forms.
    """

    source: str
    case_insensitive: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.source, str):
            raise InvalidExpressionError(
                f"Pattern source must be a string, got {type(self.source).__name__}",
                context={"source": self.source},
            )
        try:
            regex.compile(self.source, regex.IGNORECASE if self.case_insensitive else 0)
        except regex.error as exc:
            raise InvalidExpressionError(
                f"Invalid pattern {self.source!r}: {exc}",
                context={"source": self.source},
            ) from exc

    @staticmethod
    def of(value: Any, case_insensitive: bool | None = None) -> Pattern:
        """Coerce a string, compiled ``re.Pattern`` or :class:`Pattern`."""
        if isinstance(value, Pattern):
            if case_insensitive is None:
                return value
            return Pattern(value.source, case_insensitive)
        if isinstance(value, re.Pattern):
            flag = bool(value.flags & re.IGNORECASE)
            return Pattern(value.pattern, flag if case_insensitive is None else case_insensitive)
        if isinstance(value, str):
            return Pattern(value, bool(case_insensitive))
        raise InvalidExpressionError(
            f"Regex predicate needs a pattern, got {type(value).__name__}",
            context={"value": repr(value)},
        )


def _is_expression_like(value: Any) -> bool:
    from docshape.query.expression import FilterExpression

    return isinstance(value, (Predicate, FilterExpression, re.Pattern, Pattern))


@dataclass(frozen=True)
class Predicate:
    """A single ``field <op> value`` condition.

    ``IN``/``NIN`` values are normalised to a tuple and must be a flat
    sequence of scalars. ``REGEX`` values are normalised to :class:`Pattern`.
    """

    field: str
    op: Operator
    value: Any = None

    def __post_init__(self) -> None:
        if not isinstance(self.field, str) or not self.field:
            raise InvalidExpressionError("Predicate field must be a non-empty string")
        if self.field.startswith("$"):
            raise InvalidExpressionError(
                f"Field name {self.field!r} must not start with '$'",
                context={"field": self.field},
            )
        if not isinstance(self.op, Operator):
            raise InvalidExpressionError(
                f"Unknown operator {self.op!r}",
                context={"field": self.field},
            )

        category = self.op.category
        if category is OperatorCategory.MEMBERSHIP:
            object.__setattr__(self, "value", self._membership_values())
        elif category is OperatorCategory.PATTERN:
            object.__setattr__(self, "value", Pattern.of(self.value))
        elif _is_expression_like(self.value):
            raise InvalidExpressionError(
                f"{self.op.name} on {self.field!r} cannot take a nested expression",
                context={"field": self.field},
            )

    def _membership_values(self) -> tuple[Any, ...]:
        value = self.value
        if isinstance(value, (str, bytes, dict)) or not isinstance(value, (list, tuple, AbstractSet)):
            raise InvalidExpressionError(
                f"{self.op.name} on {self.field!r} needs a sequence of values, got {type(value).__name__}",
                context={"field": self.field},
            )
        items = tuple(value)
        for item in items:
            if not is_scalar(item):
                # the store refuses operators nested under $in / $nin
                raise InvalidExpressionError(
                    f"{self.op.name} on {self.field!r} may only contain scalars, got {item!r}",
                    context={"field": self.field, "element": repr(item)},
                )
        return items

    def validate(self) -> Predicate:
        """Re-run construction checks; returns ``self`` for chaining."""
        self.__post_init__()
        return self
