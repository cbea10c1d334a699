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
"""Execution plans: a compiled filter plus its modifiers, ready for the store.

Modifiers apply in a fixed order: filter, sort, skip, limit, projection.
Count mode short-circuits after the window: sort and projection are
dropped, filter/skip/limit are kept.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pymongo

from docshape.query.expression import FilterExpression, compile_filter
from docshape.query.modifiers import QueryMode, QueryModifiers, Sort
from docshape.query.predicate import Predicate
from docshape.store.request import CompiledRequest, RequestKind


@dataclass(frozen=True)
class ExecutionPlan:
    """Store-ready representation of one query."""

    filter: dict[str, Any]
    mode: QueryMode = QueryMode.FETCH
    sort: list[tuple[str, int]] | None = None
    skip: int | None = None
    limit: int | None = None
    projection: dict[str, int] | None = None

    @property
    def is_count(self) -> bool:
        return self.mode is QueryMode.COUNT

    @property
    def stages(self) -> tuple[str, ...]:
        """Names of the stages this plan applies, in application order."""
        present = {
            "filter": True,
            "sort": self.sort is not None,
            "skip": self.skip is not None,
            "limit": self.limit is not None,
            "projection": self.projection is not None,
        }
        names = tuple(name for name, on in present.items() if on)
        return names + ("count",) if self.is_count else names

    def to_request(self) -> CompiledRequest:
        if self.is_count:
            return CompiledRequest(
                kind=RequestKind.COUNT,
                filter=self.filter,
                skip=self.skip,
                limit=self.limit,
            )
        return CompiledRequest(
            kind=RequestKind.FIND,
            filter=self.filter,
            sort=self.sort,
            skip=self.skip,
            limit=self.limit,
            projection=self.projection,
        )


def build_sort(sort: Sort) -> list[tuple[str, int]]:
    """Build a pymongo sort specification."""
    return [
        (order.property, pymongo.ASCENDING if order.direction == "asc" else pymongo.DESCENDING)
        for order in sort.orders
    ]


def apply_modifiers(
    expression: FilterExpression | Predicate | None,
    modifiers: QueryModifiers | None = None,
) -> ExecutionPlan:
    """Compile *expression* and lay *modifiers* over it.

    Raises:
        InvalidExpressionError: the filter does not compile.
        InvalidModifiersError: mixed projection or negative limit/skip.
    """
    modifiers = (modifiers or QueryModifiers()).validate()
    filter_doc = compile_filter(expression)

    skip = modifiers.skip
    # a zero limit means "unbounded" to the store, so it is left out
    limit = modifiers.limit or None

    if modifiers.mode is QueryMode.COUNT:
        return ExecutionPlan(filter=filter_doc, mode=QueryMode.COUNT, skip=skip, limit=limit)

    return ExecutionPlan(
        filter=filter_doc,
        mode=QueryMode.FETCH,
        sort=build_sort(modifiers.sort) or None,
        skip=skip,
        limit=limit,
        projection=modifiers.projection.to_document() if modifiers.projection else None,
    )
