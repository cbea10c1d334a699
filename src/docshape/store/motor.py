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
"""Motor-backed store connection.

Every :class:`CompiledRequest` maps onto exactly one collection call.
Transport failures (the ``ConnectionFailure`` family) are raised as
:class:`StoreUnavailableError`; anything else the server refuses comes
back as a failed :class:`RawResponse`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from bson.errors import BSONError
from pymongo import ReturnDocument
from pymongo.errors import ConnectionFailure, OperationFailure, PyMongoError

from docshape.kernel.exceptions import StoreUnavailableError
from docshape.store.request import CompiledRequest, RawResponse, RequestKind

if TYPE_CHECKING:
    from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection

    from docshape.config.properties import StoreProperties

logger = logging.getLogger(__name__)


class MotorStoreConnection:
    """:class:`~docshape.store.port.StoreConnectionPort` over one Motor collection.

    Usage::

        conn = MotorStoreConnection.from_properties(config.bind(StoreProperties))
        executor = QueryExecutor(conn)
        ...
        conn.close()
    """

    def __init__(
        self,
        collection: AsyncIOMotorCollection,  # type: ignore[type-arg]
        client: AsyncIOMotorClient | None = None,  # type: ignore[type-arg]
    ) -> None:
        self._collection = collection
        self._client = client
        self._closed = False

    @classmethod
    def from_properties(cls, props: StoreProperties) -> MotorStoreConnection:
        from motor.motor_asyncio import AsyncIOMotorClient

        client: AsyncIOMotorClient = AsyncIOMotorClient(  # type: ignore[type-arg]
            props.uri,
            serverSelectionTimeoutMS=props.server_selection_timeout_ms,
            minPoolSize=props.min_pool_size,
            maxPoolSize=props.max_pool_size,
        )
        return cls(client[props.database][props.collection], client=client)

    @property
    def collection(self) -> AsyncIOMotorCollection:  # type: ignore[type-arg]
        return self._collection

    def is_connected(self) -> bool:
        return not self._closed

    def close(self) -> None:
        """Close the owned client; later sends raise :class:`StoreUnavailableError`."""
        if self._client is not None:
            self._client.close()
        self._closed = True

    async def send(self, request: CompiledRequest) -> RawResponse:
        if self._closed:
            raise StoreUnavailableError("Store connection is closed", context={"kind": request.kind.value})
        logger.debug("Sending %s to %s", request.kind.value, self._collection.name)
        try:
            return await self._dispatch(request)
        except ConnectionFailure as exc:
            raise StoreUnavailableError(
                f"Store unreachable: {exc}",
                context={"kind": request.kind.value},
            ) from exc
        except OperationFailure as exc:
            return RawResponse.failure(exc.code, str(exc))
        except PyMongoError as exc:
            return RawResponse.failure(None, str(exc))
        except BSONError as exc:
            # unencodable values never reach the server
            return RawResponse.failure(None, str(exc))

    async def _dispatch(self, request: CompiledRequest) -> RawResponse:
        coll = self._collection
        kind = request.kind

        if kind is RequestKind.FIND:
            options: dict[str, Any] = {}
            if request.sort:
                options["sort"] = request.sort
            if request.skip:
                options["skip"] = request.skip
            if request.limit:
                options["limit"] = request.limit
            cursor = coll.find(request.filter, request.projection, **options)
            return RawResponse(documents=await cursor.to_list(length=None))

        if kind is RequestKind.COUNT:
            options = {}
            if request.skip:
                options["skip"] = request.skip
            if request.limit:
                options["limit"] = request.limit
            return RawResponse(count=await coll.count_documents(request.filter, **options))

        if kind is RequestKind.INSERT_ONE:
            result = await coll.insert_one(request.document)
            return RawResponse(inserted_id=result.inserted_id)

        if kind is RequestKind.REPLACE_ONE:
            result = await coll.replace_one(request.filter, request.document)
            return RawResponse(matched_count=result.matched_count, modified_count=result.modified_count)

        if kind is RequestKind.FIND_ONE_AND_UPDATE:
            document = await coll.find_one_and_update(
                request.filter,
                request.update,
                projection=request.projection,
                sort=request.sort,
                return_document=ReturnDocument.AFTER if request.return_updated else ReturnDocument.BEFORE,
            )
            return RawResponse(document=document)

        if kind is RequestKind.UPDATE_MANY:
            result = await coll.update_many(request.filter, request.update)
            return RawResponse(matched_count=result.matched_count, modified_count=result.modified_count)

        if kind is RequestKind.FIND_ONE_AND_DELETE:
            document = await coll.find_one_and_delete(
                request.filter, projection=request.projection, sort=request.sort
            )
            return RawResponse(document=document)

        if kind is RequestKind.DELETE_ONE:
            result = await coll.delete_one(request.filter)
            return RawResponse(deleted_count=result.deleted_count)

        if kind is RequestKind.DELETE_MANY:
            result = await coll.delete_many(request.filter)
            return RawResponse(deleted_count=result.deleted_count)

        raise ValueError(f"Unsupported request kind: {kind!r}")
