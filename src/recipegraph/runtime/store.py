"""
Document store client.

The executor only depends on the DocumentStore protocol. MongoDocumentStore
implements it with PyMongo's asyncio client; filters arrive normalized and
are translated to Mongo query documents here.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional, Protocol

from pymongo import ASCENDING, DESCENDING, AsyncMongoClient
from pymongo.errors import PyMongoError

from ..core.errors import StoreError
from ..core.query_types import NormalizedFilter, NormalizedOrder

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    """Operations the query core and the loader consume."""

    async def find(
        self,
        collection: str,
        filters: list[NormalizedFilter],
        projection: Optional[list[str]] = None,
        order: Optional[list[NormalizedOrder]] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]: ...

    async def find_by_id(
        self,
        collection: str,
        id: Any,
        projection: Optional[list[str]] = None,
    ) -> Optional[dict[str, Any]]: ...

    async def count(self, collection: str, filters: list[NormalizedFilter]) -> int: ...

    async def delete_many(self, collection: str) -> int: ...

    async def insert_many(self, collection: str, documents: list[dict[str, Any]]) -> int: ...

    async def close(self) -> None: ...


# =============================================================================
# Filter translation
# =============================================================================


def build_mongo_filter(filters: list[NormalizedFilter]) -> dict[str, Any]:
    """
    Translate normalized filters into a Mongo query document.

    Input: [NormalizedFilter(field="tags", op="in", value=["soup"]),
            NormalizedFilter(field="_id", op="ne", value="r1")]
    Output: {"tags": {"$in": ["soup"]}, "_id": {"$ne": "r1"}}
    """
    query: dict[str, dict[str, Any]] = {}
    for f in filters:
        condition = query.setdefault(f.field, {})
        if f.op == "eq":
            condition["$eq"] = f.value
        elif f.op == "ne":
            condition["$ne"] = f.value
        elif f.op == "in":
            condition["$in"] = list(f.value)
        elif f.op == "all":
            condition["$all"] = list(f.value)
        elif f.op == "icontains":
            condition["$regex"] = re.escape(str(f.value))
            condition["$options"] = "i"
        elif f.op == "gte":
            condition["$gte"] = f.value
        elif f.op == "lte":
            condition["$lte"] = f.value
        elif f.op == "isnull":
            condition["$eq" if f.value else "$ne"] = None
        else:
            raise ValueError(f"Unsupported filter operator '{f.op}'")
    return query


def build_mongo_sort(order: Optional[list[NormalizedOrder]]) -> list[tuple[str, int]]:
    return [
        (o.field, ASCENDING if o.dir == "asc" else DESCENDING)
        for o in order or []
    ]


def build_mongo_projection(projection: Optional[list[str]]) -> Optional[dict[str, int]]:
    if not projection:
        return None
    return {path: 1 for path in projection}


# =============================================================================
# MongoDB implementation
# =============================================================================


class MongoDocumentStore:
    """
    DocumentStore backed by MongoDB.

    Usage:
        store = MongoDocumentStore("mongodb://localhost:27017", "recipedb")
        recipes = await store.find("recipes", [], projection=["name"], limit=10)
        await store.close()

    The client (and its connection pool) is created lazily and shared by
    every request in the process.
    """

    def __init__(self, uri: str, database: str, *, server_timeout: float = 5.0):
        self.uri = uri
        self.database_name = database
        self.server_timeout = server_timeout
        self._client: AsyncMongoClient | None = None

    def _get_client(self) -> AsyncMongoClient:
        if self._client is None:
            logger.info(f"Connecting to MongoDB database '{self.database_name}'")
            self._client = AsyncMongoClient(
                self.uri,
                serverSelectionTimeoutMS=int(self.server_timeout * 1000),
            )
        return self._client

    def _collection(self, name: str):
        return self._get_client()[self.database_name][name]

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def find(
        self,
        collection: str,
        filters: list[NormalizedFilter],
        projection: Optional[list[str]] = None,
        order: Optional[list[NormalizedOrder]] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        try:
            cursor = self._collection(collection).find(
                build_mongo_filter(filters),
                build_mongo_projection(projection),
            )
            sort = build_mongo_sort(order)
            if sort:
                cursor = cursor.sort(sort)
            if skip:
                cursor = cursor.skip(skip)
            if limit is not None:
                cursor = cursor.limit(limit)
            return [doc async for doc in cursor]
        except PyMongoError as e:
            raise StoreError("find", collection, str(e)) from e

    async def find_by_id(
        self,
        collection: str,
        id: Any,
        projection: Optional[list[str]] = None,
    ) -> Optional[dict[str, Any]]:
        try:
            return await self._collection(collection).find_one(
                {"_id": id}, build_mongo_projection(projection)
            )
        except PyMongoError as e:
            raise StoreError("find_by_id", collection, str(e)) from e

    async def count(self, collection: str, filters: list[NormalizedFilter]) -> int:
        try:
            return await self._collection(collection).count_documents(build_mongo_filter(filters))
        except PyMongoError as e:
            raise StoreError("count", collection, str(e)) from e

    async def delete_many(self, collection: str) -> int:
        try:
            result = await self._collection(collection).delete_many({})
            return result.deleted_count
        except PyMongoError as e:
            raise StoreError("delete_many", collection, str(e)) from e

    async def insert_many(self, collection: str, documents: list[dict[str, Any]]) -> int:
        if not documents:
            return 0
        try:
            result = await self._collection(collection).insert_many(documents)
            return len(result.inserted_ids)
        except PyMongoError as e:
            raise StoreError("insert_many", collection, str(e)) from e
