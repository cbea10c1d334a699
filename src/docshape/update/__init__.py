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
"""Update descriptors and their two renderings: in-memory and operator document."""

from docshape.update.apply import apply_updates, deep_get, deep_set, deep_unset
from docshape.update.compiler import compile_update
from docshape.update.spec import (
    ByFilter,
    ById,
    FieldUpdate,
    ReturnPolicy,
    Target,
    UpdateKind,
    UpdateSpec,
    UpdateState,
    UpdateStrategy,
)

__all__ = [
    "ByFilter",
    "ById",
    "FieldUpdate",
    "ReturnPolicy",
    "Target",
    "UpdateKind",
    "UpdateSpec",
    "UpdateState",
    "UpdateStrategy",
    "apply_updates",
    "compile_update",
    "deep_get",
    "deep_set",
    "deep_unset",
]
