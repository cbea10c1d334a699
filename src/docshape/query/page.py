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
"""Result page returned by :meth:`DocumentRepository.find_page`."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from docshape.query.modifiers import Pageable

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """Documents of one window plus the unwindowed match count.

    ``total`` comes from a COUNT issued without skip/limit, so it can move
    between that request and the FIND when writers are active.
    """

    items: list[T]
    total: int
    pageable: Pageable

    @staticmethod
    def of(items: list[T], total: int, pageable: Pageable) -> Page[T]:
        return Page(items=items, total=total, pageable=pageable)

    @property
    def number(self) -> int:
        return self.pageable.page

    @property
    def skipped(self) -> int:
        """Documents before this page's first item."""
        return self.pageable.offset

    @property
    def page_count(self) -> int:
        return -(-self.total // self.pageable.size)

    @property
    def has_next(self) -> bool:
        return self.skipped + len(self.items) < self.total

    def next_pageable(self) -> Pageable | None:
        """Pageable for the following page, or ``None`` on the last one."""
        return self.pageable.next() if self.has_next else None

    def __len__(self) -> int:
        return len(self.items)
