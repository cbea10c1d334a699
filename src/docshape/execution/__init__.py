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
"""Executors: queries, updates and removals over a store connection."""

from docshape.execution.outcome import NOT_FOUND, NotFound, map_document
from docshape.execution.query import QueryExecutor, ResultSet
from docshape.execution.remove import RemovalSummary, RemoveExecutor
from docshape.execution.update import (
    UpdateExecutor,
    UpdateOutcome,
    UpdateSummary,
    is_write_conflict,
)

__all__ = [
    "NOT_FOUND",
    "NotFound",
    "QueryExecutor",
    "RemovalSummary",
    "RemoveExecutor",
    "ResultSet",
    "UpdateExecutor",
    "UpdateOutcome",
    "UpdateSummary",
    "is_write_conflict",
    "map_document",
]
