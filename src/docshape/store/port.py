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
"""Outbound port: the already-connected document store."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from docshape.store.request import CompiledRequest, RawResponse


@runtime_checkable
class StoreConnectionPort(Protocol):
    """Request-execution primitive owned by the connectivity layer.

    ``send`` raises :class:`~docshape.kernel.exceptions.StoreUnavailableError`
    on transport failure and returns a failed :class:`RawResponse` when the
    store rejects the request.
    """

    def is_connected(self) -> bool: ...

    async def send(self, request: CompiledRequest) -> RawResponse: ...
