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
"""Tests for Sort, Projection, Pageable and QueryModifiers."""

import pytest

from docshape.kernel.exceptions import InvalidModifiersError
from docshape.query.expression import MATCH_ALL
from docshape.query.modifiers import Order, Pageable, Projection, QueryMode, QueryModifiers, Sort
from docshape.query.plan import apply_modifiers


class TestSort:
    def test_by_is_ascending(self):
        assert Sort.by("name", "price").orders == (Order.asc("name"), Order.asc("price"))

    def test_parse(self):
        sort = Sort.parse("name -price +tags")
        assert sort.orders == (Order.asc("name"), Order.desc("price"), Order.asc("tags"))

    def test_parse_descending(self):
        assert Sort.parse("-name").orders == (Order.desc("name"),)

    def test_and_then(self):
        assert Sort.by("a").and_then(Sort.by("b").descending()).orders == (Order.asc("a"), Order.desc("b"))

    def test_unsorted_is_falsy(self):
        assert not Sort.unsorted()

    def test_invalid_direction(self):
        with pytest.raises(InvalidModifiersError):
            Order("name", "up")  # type: ignore[arg-type]


class TestProjection:
    def test_including(self):
        assert Projection.including("name", "author").to_document() == {"author": 1, "name": 1}

    def test_excluding(self):
        proj = Projection.excluding("price")
        assert proj.to_document() == {"price": 0}
        assert not proj.is_inclusive

    def test_parse(self):
        assert Projection.parse("name tags").include == frozenset({"name", "tags"})
        assert Projection.parse("-tags").exclude == frozenset({"tags"})

    def test_mixed_rejected(self):
        with pytest.raises(InvalidModifiersError, match="cannot mix"):
            Projection(include=frozenset({"name"}), exclude=frozenset({"price"}))

    def test_mixed_mapping_rejected(self):
        with pytest.raises(InvalidModifiersError):
            Projection.from_mapping({"name": 1, "price": 0})

    def test_mixed_string_rejected(self):
        with pytest.raises(InvalidModifiersError):
            Projection.parse("name -price")


class TestPageable:
    def test_first_page(self):
        page = Pageable(page=1, size=10)
        assert (page.offset, page.limit) == (0, 10)

    @pytest.mark.parametrize(("page", "size"), [(1, 1), (3, 10), (7, 25)])
    def test_pagination_identity(self, page, size):
        pageable = Pageable(page=page, size=size)
        assert pageable.offset == (page - 1) * size
        assert pageable.limit == size

    def test_navigation(self):
        assert Pageable(page=2, size=5).next().page == 3
        assert Pageable(page=1, size=5).previous().page == 1

    @pytest.mark.parametrize(("page", "size"), [(0, 10), (1, 0), (-1, 5)])
    def test_invalid(self, page, size):
        with pytest.raises(InvalidModifiersError):
            Pageable(page=page, size=size)


class TestQueryModifiers:
    def test_defaults(self):
        mods = QueryModifiers()
        assert not mods.sort
        assert mods.limit is None and mods.skip is None and mods.projection is None
        assert mods.mode is QueryMode.FETCH

    def test_coerces_strings(self):
        mods = QueryModifiers(sort="name -price", projection="name tags")
        assert mods.sort.orders == (Order.asc("name"), Order.desc("price"))
        assert mods.projection == Projection.including("name", "tags")

    def test_coerces_tuples_and_mapping(self):
        mods = QueryModifiers(sort=[("name", 1), ("price", -1)], projection={"price": 0})
        assert mods.sort.orders == (Order.asc("name"), Order.desc("price"))
        assert mods.projection == Projection.excluding("price")

    def test_sort_mapping_keeps_key_order(self):
        mods = QueryModifiers(sort={"name": 1, "price": -1})
        assert mods.sort.orders == (Order.asc("name"), Order.desc("price"))

    def test_none_sort_is_unsorted(self):
        mods = QueryModifiers(sort=None)
        assert mods.sort == Sort()
        assert apply_modifiers(MATCH_ALL, mods).sort is None

    def test_unsupported_sort_type(self):
        with pytest.raises(InvalidModifiersError, match="Unsupported sort"):
            QueryModifiers(sort=5)

    def test_bad_sort_entry(self):
        with pytest.raises(InvalidModifiersError):
            QueryModifiers(sort=[("name", 2)])

    @pytest.mark.parametrize("field", ["limit", "skip"])
    def test_negative_window_rejected(self, field):
        with pytest.raises(InvalidModifiersError, match=">= 0"):
            QueryModifiers(**{field: -1})

    def test_non_integer_window_rejected(self):
        with pytest.raises(InvalidModifiersError):
            QueryModifiers(limit=2.5)  # type: ignore[arg-type]

    def test_paginate(self):
        mods = QueryModifiers(sort="name").paginate(page=3, size=10)
        assert (mods.skip, mods.limit) == (20, 10)
        assert mods.sort == Sort.by("name")

    def test_for_page(self):
        mods = QueryModifiers.for_page(Pageable(page=1, size=10, sort=Sort.by("name")))
        assert (mods.skip, mods.limit) == (0, 10)

    def test_counting_and_fetching(self):
        mods = QueryModifiers().counting()
        assert mods.mode is QueryMode.COUNT
        assert mods.fetching().mode is QueryMode.FETCH
