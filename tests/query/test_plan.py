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
"""Tests for apply_modifiers and ExecutionPlan requests."""

import pymongo
import pytest

from docshape.kernel.exceptions import InvalidModifiersError
from docshape.query.expression import MATCH_ALL
from docshape.query.filter import FilterUtils
from docshape.query.modifiers import Projection, QueryModifiers
from docshape.query.plan import ExecutionPlan, apply_modifiers
from docshape.store.request import RequestKind


class TestApplyModifiers:
    def test_filter_only(self):
        plan = apply_modifiers(FilterUtils.by(author="Jerry"))
        assert plan == ExecutionPlan(filter={"author": "Jerry"})
        assert plan.stages == ("filter",)

    def test_full_fetch(self):
        mods = QueryModifiers(sort="name", limit=10, skip=5, projection="name tags")
        plan = apply_modifiers(FilterUtils.by(author="Jerry", isPublished=True), mods)
        assert plan.filter == {"author": "Jerry", "isPublished": True}
        assert plan.sort == [("name", pymongo.ASCENDING)]
        assert (plan.skip, plan.limit) == (5, 10)
        assert plan.projection == {"name": 1, "tags": 1}
        assert plan.stages == ("filter", "sort", "skip", "limit", "projection")

    def test_count_drops_sort_and_projection(self):
        mods = QueryModifiers(sort="-name", limit=10, skip=2, projection="name").counting()
        plan = apply_modifiers(MATCH_ALL, mods)
        assert plan.is_count
        assert plan.sort is None and plan.projection is None
        assert (plan.skip, plan.limit) == (2, 10)
        assert plan.stages == ("filter", "skip", "limit", "count")

    def test_zero_limit_is_omitted(self):
        assert apply_modifiers(None, QueryModifiers(limit=0)).limit is None

    def test_first_page_keeps_zero_skip(self):
        plan = apply_modifiers(None, QueryModifiers().paginate(page=1, size=10))
        assert (plan.skip, plan.limit) == (0, 10)

    def test_revalidates_hand_built_modifiers(self):
        mods = QueryModifiers()
        object.__setattr__(mods, "projection", Projection())
        object.__setattr__(mods.projection, "include", frozenset({"a"}))
        object.__setattr__(mods.projection, "exclude", frozenset({"b"}))
        with pytest.raises(InvalidModifiersError):
            apply_modifiers(None, mods)

    def test_revalidates_negative_limit(self):
        mods = QueryModifiers()
        object.__setattr__(mods, "limit", -5)
        with pytest.raises(InvalidModifiersError):
            apply_modifiers(None, mods)


class TestToRequest:
    def test_find_request(self):
        plan = apply_modifiers(FilterUtils.by(author="Jerry"), QueryModifiers(sort="-price", limit=3))
        request = plan.to_request()
        assert request.kind is RequestKind.FIND
        assert request.filter == {"author": "Jerry"}
        assert request.sort == [("price", pymongo.DESCENDING)]
        assert request.limit == 3

    def test_count_request_has_no_sort_or_projection(self):
        mods = QueryModifiers(sort="name", projection="name").counting()
        request = apply_modifiers(FilterUtils.by(isPublished=True), mods).to_request()
        assert request.kind is RequestKind.COUNT
        assert request.sort is None
        assert request.projection is None
        assert not request.kind.is_write
