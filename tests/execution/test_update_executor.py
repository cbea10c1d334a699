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
"""Tests for UpdateExecutor under both strategies."""

import asyncio

import pytest
from bson import ObjectId

from docshape.execution.outcome import NOT_FOUND
from docshape.execution.update import UpdateExecutor, UpdateSummary, is_write_conflict
from docshape.kernel.exceptions import InvalidUpdateError, StoreQueryError, StoreUnavailableError, UpdateRejectedError
from docshape.query.filter import FilterOperator
from docshape.store.request import RawResponse, RequestKind
from docshape.update.spec import ReturnPolicy, UpdateSpec, UpdateState, UpdateStrategy

OID = "5f8f104d4b25f43cc8641234"
COURSE = {"_id": ObjectId(OID), "name": "Node", "author": "Mosh", "price": 15}


def fetch_modify_save() -> UpdateSpec:
    return UpdateSpec().using(UpdateStrategy.FETCH_MODIFY_SAVE)


class TestFetchModifySave:
    async def test_commits_both_values_with_one_write(self, connection):
        connection.respond(RawResponse(documents=[COURSE]), RawResponse(matched_count=1, modified_count=1))
        spec = fetch_modify_save().set("author", "New Author").set("price", 1000).by_id(OID)

        outcome = await UpdateExecutor(connection).execute(spec)

        assert outcome.state is UpdateState.COMMITTED
        assert outcome.committed
        assert outcome.document["author"] == "New Author"
        assert outcome.document["price"] == 1000
        assert connection.kinds == [RequestKind.FIND, RequestKind.REPLACE_ONE]
        assert len(connection.writes) == 1
        fetch, save = connection.sent
        assert fetch.filter == {"_id": ObjectId(OID)}
        assert fetch.limit == 2
        assert save.filter == {"_id": ObjectId(OID)}
        assert save.document == {**COURSE, "author": "New Author", "price": 1000}

    async def test_original_image(self, connection):
        connection.respond(RawResponse(documents=[COURSE]), RawResponse(matched_count=1))
        spec = fetch_modify_save().inc("price", 5).by_id(OID).returning(ReturnPolicy.ORIGINAL)
        outcome = await UpdateExecutor(connection).execute(spec)
        assert outcome.document == COURSE

    async def test_missing_target_is_not_found(self, connection):
        connection.respond(RawResponse(documents=[]))
        spec = fetch_modify_save().set("author", "X").by_id(OID)
        outcome = await UpdateExecutor(connection).execute(spec)
        assert outcome.state is UpdateState.NOT_FOUND
        assert outcome.document is NOT_FOUND
        assert connection.writes == []

    async def test_ambiguous_filter_target(self, connection):
        connection.respond(RawResponse(documents=[COURSE, {**COURSE, "_id": ObjectId()}]))
        spec = fetch_modify_save().set("price", 1).where(FilterOperator.eq("author", "Mosh"))
        with pytest.raises(UpdateRejectedError, match="not unique") as info:
            await UpdateExecutor(connection).execute(spec)
        assert info.value.context["state"] is UpdateState.FAILED
        assert connection.writes == []

    async def test_rename_absent_field_leaves_document(self, connection):
        connection.respond(RawResponse(documents=[COURSE]), RawResponse(matched_count=1))
        spec = fetch_modify_save().rename("missing", "other").by_id(OID)
        outcome = await UpdateExecutor(connection).execute(spec)
        assert outcome.document == COURSE

    async def test_type_error_fails_before_write(self, connection):
        connection.respond(RawResponse(documents=[COURSE]))
        spec = fetch_modify_save().inc("name", 1).by_id(OID)
        with pytest.raises(UpdateRejectedError) as info:
            await UpdateExecutor(connection).execute(spec)
        assert info.value.context["state"] is UpdateState.FAILED
        assert connection.writes == []

    async def test_write_conflict(self, connection):
        connection.respond(RawResponse(documents=[COURSE]), RawResponse.failure(112, "WriteConflict"))
        spec = fetch_modify_save().set("price", 1).by_id(OID)
        with pytest.raises(UpdateRejectedError) as info:
            await UpdateExecutor(connection).execute(spec)
        assert is_write_conflict(info.value)
        assert info.value.context["state"] is UpdateState.FAILED

    async def test_document_vanished_before_save(self, connection):
        connection.respond(RawResponse(documents=[COURSE]), RawResponse(matched_count=0, modified_count=0))
        spec = fetch_modify_save().set("price", 1).by_id(OID)
        with pytest.raises(UpdateRejectedError, match="removed"):
            await UpdateExecutor(connection).execute(spec)

    async def test_rejected_fetch(self, connection):
        connection.respond(RawResponse.failure(2, "bad filter"))
        with pytest.raises(StoreQueryError):
            await UpdateExecutor(connection).execute(fetch_modify_save().set("a", 1).by_id(OID))


class TestAtomicUpdate:
    async def test_sends_one_operator_request(self, connection):
        updated = {**COURSE, "isPublished": False, "price": 20}
        connection.respond(RawResponse(document=updated))
        spec = UpdateSpec().set("isPublished", False).inc("price", 5).by_id(OID)

        outcome = await UpdateExecutor(connection).execute(spec)

        assert outcome.committed
        assert outcome.document == updated
        assert len(connection.sent) == 1
        request = connection.sent[0]
        assert request.kind is RequestKind.FIND_ONE_AND_UPDATE
        assert request.update == {"$set": {"isPublished": False}, "$inc": {"price": 5}}
        assert request.return_updated is True

    async def test_original_policy(self, connection):
        connection.respond(RawResponse(document=COURSE))
        await UpdateExecutor(connection).execute(
            UpdateSpec().set("a", 1).by_id(OID).returning(ReturnPolicy.ORIGINAL)
        )
        assert connection.sent[0].return_updated is False

    async def test_missing_target_with_updated_policy(self, connection):
        connection.respond(RawResponse(document=None))
        spec = UpdateSpec().set("author", "X").by_id(OID).returning(ReturnPolicy.UPDATED)
        outcome = await UpdateExecutor(connection).execute(spec)
        assert outcome.not_found
        assert not outcome.document
        assert connection.kinds == [RequestKind.FIND_ONE_AND_UPDATE]
        assert connection.sent[0].return_updated is True

    async def test_conflicting_kinds_never_sent(self, connection):
        spec = UpdateSpec().set("price", 1).max("price", 5).by_id(OID)
        with pytest.raises(InvalidUpdateError):
            await UpdateExecutor(connection).execute(spec)
        assert connection.sent == []

    async def test_store_rejection(self, connection):
        connection.respond(RawResponse.failure(121, "Document failed validation"))
        with pytest.raises(UpdateRejectedError, match="validation") as info:
            await UpdateExecutor(connection).execute(UpdateSpec().set("price", -1).by_id(OID))
        assert info.value.code == "121"
        assert is_write_conflict(info.value)

    async def test_transport_failure(self, connection, unavailable):
        connection.respond(unavailable)
        with pytest.raises(StoreUnavailableError):
            await UpdateExecutor(connection).execute(UpdateSpec().set("a", 1).by_id(OID))


class TestUpdateValidation:
    @pytest.mark.parametrize("strategy", list(UpdateStrategy))
    async def test_untargeted_spec(self, connection, strategy):
        with pytest.raises(InvalidUpdateError):
            await UpdateExecutor(connection).execute(UpdateSpec().set("a", 1).using(strategy))
        assert connection.sent == []

    async def test_spec_without_operations(self, connection):
        with pytest.raises(InvalidUpdateError):
            await UpdateExecutor(connection).execute(UpdateSpec().by_id(OID))


class TestUpdateMany:
    async def test_update_many(self, connection):
        connection.respond(RawResponse(matched_count=3, modified_count=2))
        summary = await UpdateExecutor(connection).update_many(
            FilterOperator.eq("isPublished", False), UpdateSpec().set("isPublished", True)
        )
        assert summary == UpdateSummary(matched_count=3, modified_count=2)
        request = connection.sent[0]
        assert request.kind is RequestKind.UPDATE_MANY
        assert request.filter == {"isPublished": False}
        assert request.update == {"$set": {"isPublished": True}}

    async def test_update_many_uses_spec_target(self, connection):
        await UpdateExecutor(connection).update_many(None, UpdateSpec().inc("price", 1).where({"author": "Jerry"}))
        assert connection.sent[0].filter == {"author": "Jerry"}

    async def test_update_many_requires_filter(self, connection):
        with pytest.raises(InvalidUpdateError):
            await UpdateExecutor(connection).update_many(None, UpdateSpec().set("a", 1))


class TestCancellation:
    @pytest.mark.parametrize("strategy", list(UpdateStrategy))
    async def test_cancel_in_flight_send(self, connection, strategy):
        connection.hold()
        connection.respond(RawResponse(documents=[COURSE]), RawResponse(matched_count=1, modified_count=1))
        spec = UpdateSpec().set("author", "New Author").by_id(OID).using(strategy)

        task = asyncio.create_task(UpdateExecutor(connection).execute(spec))
        await connection.entered.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert len(connection.sent) == 1
        assert connection.writes == ([] if strategy is UpdateStrategy.FETCH_MODIFY_SAVE else connection.sent)
