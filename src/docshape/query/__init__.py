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
"""Query descriptors: predicates, filter expressions, modifiers and plans."""

from docshape.query.expression import (
    MATCH_ALL,
    And,
    FilterExpression,
    Leaf,
    Or,
    all_of,
    any_of,
    compile_filter,
    compile_predicate,
)
from docshape.query.filter import FilterOperator, FilterUtils
from docshape.query.modifiers import Order, Pageable, Projection, QueryMode, QueryModifiers, Sort
from docshape.query.page import Page
from docshape.query.parser import parse_filter
from docshape.query.plan import ExecutionPlan, apply_modifiers, build_sort
from docshape.query.predicate import Operator, OperatorCategory, Pattern, Predicate

__all__ = [
    "MATCH_ALL",
    "And",
    "ExecutionPlan",
    "FilterExpression",
    "FilterOperator",
    "FilterUtils",
    "Leaf",
    "Operator",
    "OperatorCategory",
    "Or",
    "Order",
    "Page",
    "Pageable",
    "Pattern",
    "Predicate",
    "Projection",
    "QueryMode",
    "QueryModifiers",
    "Sort",
    "all_of",
    "any_of",
    "apply_modifiers",
    "build_sort",
    "compile_filter",
    "compile_predicate",
    "parse_filter",
]
