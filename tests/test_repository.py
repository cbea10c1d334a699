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
"""Tests for DocumentRepository wiring against a recording connection."""

import pytest
from bson import ObjectId

from docshape.config.properties import QueryProperties
from docshape.core.config import Config
from docshape.execution.outcome import NOT_FOUND
from docshape.kernel.exceptions import UpdateRejectedError
from docshape.query.filter import FilterUtils
from docshape.query.modifiers import Pageable, QueryModifiers, Sort
from docshape.repository import DocumentRepository
from docshape.store.motor import MotorStoreConnection
from docshape.store.request import RawResponse, RequestKind
from docshape.update.spec import UpdateSpec

OID = "5f8f104d4b25f43cc8641234"


class TestRepositoryReads:
    async def test_find_returns_list(self, connection):
        connection.respond(RawResponse(documents=[{"name": "Node"}]))
        repo = DocumentRepository(connection)
        assert await repo.find(FilterUtils.by(author="Jerry"), QueryModifiers(limit=10)) == [{"name": "Node"}]

    async def test_find_one_limits_to_one(self, connection):
        connection.respond(RawResponse(documents=[{"name": "Node"}]))
        assert await DocumentRepository(connection).find_one({"author": "Jerry"}) == {"name": "Node"}
        assert connection.sent[0].limit == 1

    async def test_find_one_missing(self, connection):
        connection.respond(RawResponse(documents=[]))
        assert await DocumentRepository(connection).find_one() is NOT_FOUND

    async def test_find_by_id(self, connection):
        connection.respond(RawResponse(documents=[{"_id": ObjectId(OID)}]))
        await DocumentRepository(connection).find_by_id(OID)
        assert connection.sent[0].filter == {"_id": ObjectId(OID)}

    async def test_exists(self, connection):
        connection.respond(RawResponse(count=1))
        assert await DocumentRepository(connection).exists({"name": "Node"})
        assert connection.sent[0].limit == 1

    async def test_find_page_issues_count_then_find(self, connection):
        connection.respond(RawResponse(count=25), RawResponse(documents=[{"n": i} for i in range(10)]))
        repo = DocumentRepository(connection)

        page = await repo.find_page(FilterUtils.by(isPublished=True), Pageable(page=2, size=10, sort=Sort.by("name")))

        assert connection.kinds == [RequestKind.COUNT, RequestKind.FIND]
        count, find = connection.sent
        assert count.skip is None and count.limit is None
        assert (find.skip, find.limit) == (10, 10)
        assert page.total == 25
        assert page.page_count == 3
        assert page.has_next
        assert page.next_pageable() == Pageable(page=3, size=10, sort=Sort.by("name"))

    async def test_find_page_clamps_size(self, connection):
        repo = DocumentRepository(connection, query_properties=QueryProperties(max_page_size=50))
        connection.respond(RawResponse(count=0), RawResponse(documents=[]))
        page = await repo.find_page(None, Pageable(page=1, size=500))
        assert page.pageable.size == 50
        assert connection.sent[1].limit == 50

    async def test_find_page_default_size(self, connection):
        repo = DocumentRepository(connection, query_properties=QueryProperties(default_page_size=5))
        connection.respond(RawResponse(count=0), RawResponse(documents=[]))
        page = await repo.find_page()
        assert (page.number, page.pageable.size) == (1, 5)


class TestRepositoryWrites:
    async def test_insert_assigns_id(self, connection):
        oid = ObjectId()
        connection.respond(RawResponse(inserted_id=oid))
        document = {"name": "Node", "tags": ["node"]}
        inserted = await DocumentRepository(connection).insert(document)
        assert inserted == {"name": "Node", "tags": ["node"], "_id": oid}
        assert "_id" not in document

    async def test_insert_rejected(self, connection):
        connection.respond(RawResponse.failure(11000, "duplicate key"))
        with pytest.raises(UpdateRejectedError):
            await DocumentRepository(connection).insert({"_id": 1})

    async def test_update_delegates(self, connection):
        connection.respond(RawResponse(document={"_id": 1, "a": 1}))
        outcome = await DocumentRepository(connection).update(UpdateSpec().set("a", 1).by_id(1))
        assert outcome.committed

    async def test_remove_delegates(self, connection):
        connection.respond(RawResponse(document=None))
        assert await DocumentRepository(connection).remove(OID) is NOT_FOUND


class TestRepositoryFromConfig:
    def test_from_config(self):
        pytest.importorskip("motor")
        config = Config({"docshape": {"store": {"database": "playground", "collection": "courses"}, "query": {"max_page_size": 10}}})
        repo = DocumentRepository.from_config(config)
        try:
            assert isinstance(repo.connection, MotorStoreConnection)
            assert repo.connection.collection.name == "courses"
        finally:
            repo.connection.close()
