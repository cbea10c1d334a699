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
"""Cursor modifiers: sort, pagination window, projection and count mode."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Literal

from docshape.kernel.exceptions import InvalidModifiersError


@dataclass(frozen=True)
class Order:
    """A single sort order: property name + direction."""

    property: str
    direction: Literal["asc", "desc"] = "asc"

    def __post_init__(self) -> None:
        if not self.property:
            raise InvalidModifiersError("Sort property must be a non-empty string")
        if self.direction not in ("asc", "desc"):
            raise InvalidModifiersError(
                f"Sort direction must be 'asc' or 'desc', got {self.direction!r}",
                context={"property": self.property},
            )

    @staticmethod
    def asc(property: str) -> Order:
        return Order(property=property, direction="asc")

    @staticmethod
    def desc(property: str) -> Order:
        return Order(property=property, direction="desc")


@dataclass(frozen=True)
class Sort:
    """Ordered collection of sort orders. Earlier orders take precedence."""

    orders: tuple[Order, ...] = ()

    @staticmethod
    def by(*properties: str) -> Sort:
        """Ascending sort by *properties*."""
        return Sort(orders=tuple(Order.asc(p) for p in properties))

    @staticmethod
    def unsorted() -> Sort:
        return Sort()

    @staticmethod
    def parse(spec: str) -> Sort:
        """Parse a space-separated sort string; a leading ``-`` means descending.

        ``Sort.parse("name -price")`` sorts by name ascending, then price descending.
        """
        orders = []
        for token in spec.split():
            if token.startswith("-"):
                orders.append(Order.desc(token[1:]))
            else:
                orders.append(Order.asc(token.lstrip("+")))
        return Sort(orders=tuple(orders))

    def and_then(self, other: Sort) -> Sort:
        """Append *other*'s orders after this sort's orders."""
        return Sort(orders=self.orders + other.orders)

    def descending(self) -> Sort:
        return Sort(orders=tuple(Order(property=o.property, direction="desc") for o in self.orders))

    def ascending(self) -> Sort:
        return Sort(orders=tuple(Order(property=o.property, direction="asc") for o in self.orders))

    def __bool__(self) -> bool:
        return bool(self.orders)


@dataclass(frozen=True)
class Projection:
    """Fields to include, or fields to exclude. Never both.

    Mixing include and exclude fields is rejected when the projection is
    built, not when the store sees it.
    """

    include: frozenset[str] = frozenset()
    exclude: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "include", frozenset(self.include))
        object.__setattr__(self, "exclude", frozenset(self.exclude))
        if self.include and self.exclude:
            raise InvalidModifiersError(
                "Projection cannot mix included and excluded fields",
                context={"include": sorted(self.include), "exclude": sorted(self.exclude)},
            )

    @staticmethod
    def including(*fields: str) -> Projection:
        return Projection(include=frozenset(fields))

    @staticmethod
    def excluding(*fields: str) -> Projection:
        return Projection(exclude=frozenset(fields))

    @staticmethod
    def from_mapping(spec: Mapping[str, Any]) -> Projection:
        """Build from ``{"name": 1, "tags": 1}`` / ``{"price": 0}`` style specs."""
        include = frozenset(k for k, v in spec.items() if v)
        exclude = frozenset(k for k, v in spec.items() if not v)
        return Projection(include=include, exclude=exclude)

    @staticmethod
    def parse(spec: str) -> Projection:
        """Parse ``"name tags"`` (include) or ``"-price -tags"`` (exclude)."""
        tokens = spec.split()
        return Projection(
            include=frozenset(t for t in tokens if not t.startswith("-")),
            exclude=frozenset(t[1:] for t in tokens if t.startswith("-")),
        )

    @property
    def is_inclusive(self) -> bool:
        return bool(self.include)

    def to_document(self) -> dict[str, int]:
        """Store projection document: 1 per included field, 0 per excluded field."""
        if self.include:
            return {name: 1 for name in sorted(self.include)}
        return {name: 0 for name in sorted(self.exclude)}

    def __bool__(self) -> bool:
        return bool(self.include or self.exclude)


@dataclass(frozen=True)
class Pageable:
    """1-based page number and page size; derives skip/limit."""

    page: int = 1
    size: int = 20
    sort: Sort = field(default_factory=Sort)

    def __post_init__(self) -> None:
        if self.page < 1:
            raise InvalidModifiersError(f"page must be >= 1, got {self.page}")
        if self.size < 1:
            raise InvalidModifiersError(f"size must be >= 1, got {self.size}")

    @staticmethod
    def of(page: int, size: int, sort: Sort | None = None) -> Pageable:
        return Pageable(page=page, size=size, sort=sort or Sort())

    @property
    def offset(self) -> int:
        """Documents skipped before this page."""
        return (self.page - 1) * self.size

    @property
    def limit(self) -> int:
        return self.size

    def next(self) -> Pageable:
        return Pageable(page=self.page + 1, size=self.size, sort=self.sort)

    def previous(self) -> Pageable:
        """Pageable for the previous page (min page 1)."""
        return Pageable(page=max(1, self.page - 1), size=self.size, sort=self.sort)


class QueryMode(Enum):
    FETCH = "fetch"
    COUNT = "count"


def _check_window(name: str, value: int | None) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidModifiersError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise InvalidModifiersError(f"{name} must be >= 0, got {value}", context={name: value})


@dataclass(frozen=True)
class QueryModifiers:
    """Sort, window, projection and mode applied on top of a filter.

    Usage::

        mods = QueryModifiers(sort=Sort.by("name"), limit=10)
        mods = QueryModifiers().paginate(page=2, size=10).with_projection(Projection.including("name"))
        mods = QueryModifiers(mode=QueryMode.COUNT)
    """

    sort: Sort = field(default_factory=Sort)
    limit: int | None = None
    skip: int | None = None
    projection: Projection | None = None
    mode: QueryMode = QueryMode.FETCH

    def __post_init__(self) -> None:
        if self.sort is None:
            object.__setattr__(self, "sort", Sort())
        elif isinstance(self.sort, str):
            object.__setattr__(self, "sort", Sort.parse(self.sort))
        elif isinstance(self.sort, Mapping):
            object.__setattr__(self, "sort", Sort(orders=tuple(self._coerce_order(o) for o in self.sort.items())))
        elif isinstance(self.sort, Iterable) and not isinstance(self.sort, Sort):
            object.__setattr__(self, "sort", Sort(orders=tuple(self._coerce_order(o) for o in self.sort)))
        if isinstance(self.projection, str):
            object.__setattr__(self, "projection", Projection.parse(self.projection))
        elif isinstance(self.projection, Mapping):
            object.__setattr__(self, "projection", Projection.from_mapping(self.projection))
        self.validate()

    @staticmethod
    def _coerce_order(item: Any) -> Order:
        if isinstance(item, Order):
            return item
        if isinstance(item, tuple) and len(item) == 2:
            name, direction = item
            if direction in (1, "asc"):
                return Order.asc(name)
            if direction in (-1, "desc"):
                return Order.desc(name)
        raise InvalidModifiersError(f"Cannot interpret sort entry {item!r}")

    def validate(self) -> QueryModifiers:
        if not isinstance(self.sort, Sort):
            raise InvalidModifiersError(f"Unsupported sort {self.sort!r}")
        _check_window("limit", self.limit)
        _check_window("skip", self.skip)
        if self.projection is not None:
            if not isinstance(self.projection, Projection):
                raise InvalidModifiersError(f"Unsupported projection {self.projection!r}")
            if self.projection.include and self.projection.exclude:
                raise InvalidModifiersError("Projection cannot mix included and excluded fields")
        if not isinstance(self.mode, QueryMode):
            raise InvalidModifiersError(f"Unknown query mode {self.mode!r}")
        return self

    @staticmethod
    def for_page(pageable: Pageable) -> QueryModifiers:
        """Modifiers for one page: ``skip = (page-1)*size`` and ``limit = size``."""
        return QueryModifiers(sort=pageable.sort, skip=pageable.offset, limit=pageable.limit)

    def paginate(self, page: int, size: int) -> QueryModifiers:
        pageable = Pageable(page=page, size=size)
        return replace(self, skip=pageable.offset, limit=pageable.limit)

    def with_sort(self, sort: Sort | str) -> QueryModifiers:
        return replace(self, sort=Sort.parse(sort) if isinstance(sort, str) else sort)

    def with_projection(self, projection: Projection | str | Mapping[str, Any]) -> QueryModifiers:
        return replace(self, projection=projection)

    def counting(self) -> QueryModifiers:
        return replace(self, mode=QueryMode.COUNT)

    def fetching(self) -> QueryModifiers:
        return replace(self, mode=QueryMode.FETCH)
