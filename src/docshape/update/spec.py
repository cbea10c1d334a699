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
"""Update descriptors: field operations, targets, strategy and return policy.

An :class:`UpdateSpec` is built fluently and never mutated; each builder
call returns a new spec::

    spec = (
        UpdateSpec()
        .set("author", "New Author")
        .set("price", 1000)
        .by_id("5f8f104d4b25f43cc8641234")
        .using(UpdateStrategy.FETCH_MODIFY_SAVE)
    )

Two strategies exist:

* ``FETCH_MODIFY_SAVE`` reads the target, applies the operations in memory
  and writes the whole document back. Nothing guards the window between
  the read and the write, so a concurrent writer's change can be lost.
* ``ATOMIC_UPDATE`` sends the operators to the store, which applies them
  server-side in one step.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import Any

from bson import ObjectId

from docshape.kernel.exceptions import InvalidUpdateError
from docshape.query.expression import FilterExpression, Leaf, compile_filter
from docshape.query.parser import parse_filter
from docshape.query.predicate import Predicate


class UpdateKind(Enum):
    SET = "set"
    INC = "inc"
    MIN = "min"
    MAX = "max"
    RENAME = "rename"


class ReturnPolicy(Enum):
    ORIGINAL = "original"
    UPDATED = "updated"


class UpdateStrategy(Enum):
    FETCH_MODIFY_SAVE = "fetch_modify_save"
    ATOMIC_UPDATE = "atomic_update"


class UpdateState(Enum):
    """Lifecycle of an update: BUILT -> TARGETED -> APPLIED -> terminal."""

    BUILT = "built"
    TARGETED = "targeted"
    APPLIED = "applied"
    COMMITTED = "committed"
    FAILED = "failed"
    NOT_FOUND = "not_found"

    @property
    def is_terminal(self) -> bool:
        return self in (UpdateState.COMMITTED, UpdateState.FAILED, UpdateState.NOT_FOUND)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


@dataclass(frozen=True)
class FieldUpdate:
    """One operation on one field. For ``RENAME`` the value is the new field name."""

    field: str
    kind: UpdateKind
    value: Any = None

    def __post_init__(self) -> None:
        if not isinstance(self.field, str) or not self.field or self.field.startswith("$"):
            raise InvalidUpdateError(f"Invalid update field {self.field!r}")
        if self.field == "_id":
            raise InvalidUpdateError("The _id field cannot be modified")
        if self.kind is UpdateKind.INC and not _is_number(self.value):
            raise InvalidUpdateError(
                f"inc on {self.field!r} needs a number, got {type(self.value).__name__}",
                context={"field": self.field},
            )
        if self.kind is UpdateKind.RENAME:
            target = self.value
            if not isinstance(target, str) or not target or target.startswith("$") or target == "_id":
                raise InvalidUpdateError(f"Invalid rename target {target!r} for {self.field!r}")
            if target == self.field:
                raise InvalidUpdateError(f"Cannot rename {self.field!r} to itself")


@dataclass(frozen=True)
class ById:
    """Target one document by primary key.

    24-character hex strings are cast to ``ObjectId`` unless ``coerce`` is
    false, so ids copied from logs match store-generated keys.
    """

    id: Any
    coerce: bool = True

    @property
    def key(self) -> Any:
        if self.coerce and isinstance(self.id, str) and ObjectId.is_valid(self.id):
            return ObjectId(self.id)
        return self.id

    def to_filter(self) -> dict[str, Any]:
        return {"_id": self.key}


@dataclass(frozen=True)
class ByFilter:
    """Target the document(s) matching an expression."""

    expression: FilterExpression

    def __post_init__(self) -> None:
        expression = self.expression
        if isinstance(expression, Mapping):
            expression = parse_filter(expression)
        elif isinstance(expression, Predicate):
            expression = Leaf(expression)
        if not isinstance(expression, FilterExpression):
            raise InvalidUpdateError(f"ByFilter needs a FilterExpression, got {type(expression).__name__}")
        object.__setattr__(self, "expression", expression)

    def to_filter(self) -> dict[str, Any]:
        return compile_filter(self.expression)


Target = ById | ByFilter


@dataclass(frozen=True)
class UpdateSpec:
    """Ordered field operations plus target, strategy and return policy."""

    operations: tuple[FieldUpdate, ...] = ()
    target: Target | None = None
    return_policy: ReturnPolicy = ReturnPolicy.UPDATED
    strategy: UpdateStrategy = UpdateStrategy.ATOMIC_UPDATE

    @property
    def state(self) -> UpdateState:
        return UpdateState.BUILT if self.target is None else UpdateState.TARGETED

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _with(self, kind: UpdateKind, field: str, value: Any) -> UpdateSpec:
        return replace(self, operations=self.operations + (FieldUpdate(field, kind, value),))

    def set(self, field: str, value: Any) -> UpdateSpec:
        return self._with(UpdateKind.SET, field, value)

    def set_all(self, values: Mapping[str, Any]) -> UpdateSpec:
        """``set`` every pair of *values*, in mapping order."""
        spec = self
        for field, value in values.items():
            spec = spec.set(field, value)
        return spec

    def inc(self, field: str, amount: int | float | Decimal = 1) -> UpdateSpec:
        return self._with(UpdateKind.INC, field, amount)

    def min(self, field: str, value: Any) -> UpdateSpec:
        """Set *field* only if *value* is smaller than the current value."""
        return self._with(UpdateKind.MIN, field, value)

    def max(self, field: str, value: Any) -> UpdateSpec:
        """Set *field* only if *value* is larger than the current value."""
        return self._with(UpdateKind.MAX, field, value)

    def rename(self, field: str, new_name: str) -> UpdateSpec:
        """Rename *field*; a no-op when the document lacks it."""
        return self._with(UpdateKind.RENAME, field, new_name)

    # ------------------------------------------------------------------
    # Target, policy, strategy
    # ------------------------------------------------------------------

    def by_id(self, id: Any, coerce: bool = True) -> UpdateSpec:
        return replace(self, target=ById(id, coerce))

    def where(self, expression: FilterExpression | Predicate | Mapping[str, Any]) -> UpdateSpec:
        return replace(self, target=ByFilter(expression))  # type: ignore[arg-type]

    def returning(self, policy: ReturnPolicy) -> UpdateSpec:
        return replace(self, return_policy=policy)

    def using(self, strategy: UpdateStrategy) -> UpdateSpec:
        return replace(self, strategy=strategy)

    def validate(self) -> UpdateSpec:
        """Check this update can run: it needs a target and at least one operation."""
        if self.target is None:
            raise InvalidUpdateError("Update has no target; call by_id() or where() first")
        if not isinstance(self.target, (ById, ByFilter)):
            raise InvalidUpdateError(f"Unsupported update target {self.target!r}")
        if not self.operations:
            raise InvalidUpdateError("Update has no operations")
        return self
