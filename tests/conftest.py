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
"""Shared fixtures: a scripted, recording store connection."""

from __future__ import annotations

import asyncio
from collections import deque

import pytest

from docshape.kernel.exceptions import StoreUnavailableError
from docshape.store.request import CompiledRequest, RawResponse


class RecordingConnection:
    """In-memory :class:`StoreConnectionPort` that replays scripted responses.

    Every request is recorded in ``sent``. Responses (or exceptions) are
    consumed in the order they were queued; with nothing queued, an empty
    successful response is returned.
    """

    def __init__(self) -> None:
        self.sent: list[CompiledRequest] = []
        self.connected = True
        self._script: deque[RawResponse | BaseException] = deque()
        self._gate: asyncio.Event | None = None
        self.entered = asyncio.Event()

    def respond(self, *responses: RawResponse | BaseException) -> RecordingConnection:
        self._script.extend(responses)
        return self

    def hold(self) -> asyncio.Event:
        """Park every following ``send`` until the returned event is set."""
        self._gate = asyncio.Event()
        return self._gate

    def is_connected(self) -> bool:
        return self.connected

    async def send(self, request: CompiledRequest) -> RawResponse:
        self.sent.append(request)
        self.entered.set()
        if self._gate is not None:
            await self._gate.wait()
        if not self._script:
            return RawResponse()
        reply = self._script.popleft()
        if isinstance(reply, BaseException):
            raise reply
        return reply

    @property
    def kinds(self) -> list:
        return [r.kind for r in self.sent]

    @property
    def writes(self) -> list[CompiledRequest]:
        return [r for r in self.sent if r.kind.is_write]


@pytest.fixture
def connection() -> RecordingConnection:
    return RecordingConnection()


@pytest.fixture
def unavailable() -> StoreUnavailableError:
    return StoreUnavailableError("connection reset", context={"host": "localhost"})
