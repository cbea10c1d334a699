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
"""Tests for RemoveExecutor: single removal and bulk removal summaries."""

import pytest
from bson import ObjectId

from docshape.execution.outcome import NOT_FOUND, NotFound
from docshape.execution.remove import RemovalSummary, RemoveExecutor
from docshape.kernel.exceptions import InvalidExpressionError, StoreQueryError, StoreUnavailableError
from docshape.query.expression import MATCH_ALL
from docshape.query.filter import FilterOperator
from docshape.store.request import RawResponse, RequestKind

OID = "5f8f104d4b25f43cc8641234"


class TestRemove:
    async def test_returns_deleted_document(self, connection):
        course = {"_id": ObjectId(OID), "name": "Node"}
        connection.respond(RawResponse(document=course))
        removed = await RemoveExecutor(connection).remove(OID)
        assert removed == course
        request = connection.sent[0]
        assert request.kind is RequestKind.FIND_ONE_AND_DELETE
        assert request.filter == {"_id": ObjectId(OID)}

    async def test_missing_id_is_not_found(self, connection):
        connection.respond(RawResponse(document=None))
        removed = await RemoveExecutor(connection).remove(OID)
        assert removed is NOT_FOUND
        assert not removed

    async def test_store_rejection_still_raises(self, connection):
        connection.respond(RawResponse.failure(13, "unauthorized"))
        with pytest.raises(StoreQueryError):
            await RemoveExecutor(connection).remove(OID)

    async def test_transport_failure(self, connection, unavailable):
        connection.respond(unavailable)
        with pytest.raises(StoreUnavailableError):
            await RemoveExecutor(connection).remove(OID)


class TestBulkRemoval:
    async def test_remove_many_returns_summary(self, connection):
        connection.respond(RawResponse(deleted_count=4))
        summary = await RemoveExecutor(connection).remove_many(FilterOperator.eq("isPublished", False))
        assert summary == RemovalSummary(matched_count=4, deleted_count=4)
        assert connection.sent[0].kind is RequestKind.DELETE_MANY
        assert connection.sent[0].filter == {"isPublished": False}

    async def test_remove_one(self, connection):
        connection.respond(RawResponse(deleted_count=1))
        summary = await RemoveExecutor(connection).remove_one({"name": "Node"})
        assert summary.deleted_count == 1
        assert connection.sent[0].kind is RequestKind.DELETE_ONE

    async def test_nothing_matched(self, connection):
        connection.respond(RawResponse(deleted_count=0))
        summary = await RemoveExecutor(connection).remove_many({"name": "nope"})
        assert summary == RemovalSummary(matched_count=0, deleted_count=0)

    async def test_match_all_is_explicit(self, connection):
        await RemoveExecutor(connection).remove_many(MATCH_ALL)
        assert connection.sent[0].filter == {}

    async def test_none_filter_rejected(self, connection):
        with pytest.raises(InvalidExpressionError, match="MATCH_ALL"):
            await RemoveExecutor(connection).remove_many(None)  # type: ignore[arg-type]
        assert connection.sent == []


class TestNotFound:
    def test_singleton(self):
        assert NotFound() is NOT_FOUND

    def test_falsy_and_repr(self):
        assert not NOT_FOUND
        assert repr(NOT_FOUND) == "NOT_FOUND"
