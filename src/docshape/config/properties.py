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
"""Typed configuration property classes (docshape.store.*, docshape.query.*, docshape.logging.*)."""

from __future__ import annotations

from dataclasses import dataclass, field

from docshape.core.config import config_properties


@config_properties(prefix="docshape.store")
@dataclass
class StoreProperties:
    """Connection settings handed to the Motor adapter."""

    uri: str = "mongodb://localhost:27017"
    database: str = "docshape"
    collection: str = "documents"
    server_selection_timeout_ms: int = 5000
    min_pool_size: int = 0
    max_pool_size: int = 100


@config_properties(prefix="docshape.query")
@dataclass
class QueryProperties:
    """Defaults for paged reads."""

    default_page_size: int = 20
    max_page_size: int = 1000


@config_properties(prefix="docshape.logging")
@dataclass
class LoggingProperties:
    """Log levels per module plus the renderer format (console or json)."""

    level: dict[str, str] = field(default_factory=lambda: {"root": "INFO"})
    format: str = "console"
