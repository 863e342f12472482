# foodrescue/repos/mongo.py
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional, List

from bson import ObjectId
from bson.decimal128 import Decimal128
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from foodrescue.errors import Conflict, StorageError


def _oid(s: Any) -> Optional[ObjectId]:
    if isinstance(s, ObjectId):
        return s
    return ObjectId(s) if isinstance(s, str) and ObjectId.is_valid(s) else None


def _to_bson(doc: dict) -> dict:
    out = {}
    for k, v in doc.items():
        if k == "id":
            continue
        out[k] = Decimal128(str(v)) if isinstance(v, Decimal) else v
    return out


def _from_bson(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return None
    out = {"id": str(doc["_id"])}
    for k, v in doc.items():
        if k == "_id":
            continue
        if isinstance(v, Decimal128):
            v = v.to_decimal()
        elif isinstance(v, datetime) and v.tzinfo is None:
            # BSON dates come back naive; they were written as UTC
            v = v.replace(tzinfo=timezone.utc)
        out[k] = v
    return out


@asynccontextmanager
async def _storage_errors(op: str):
    try:
        yield
    except PyMongoError as exc:
        raise StorageError(f"{op} failed: {exc}") from exc


class MongoRepo:
    """Same contract as InMemoryRepo, backed by motor."""

    def __init__(self, db: AsyncIOMotorDatabase, client=None):
        self.db = db
        self._client = client

    async def ensure_indexes(self) -> None:
        # create_index is a no-op when an identical index already exists
        async with _storage_errors("ensure_indexes"):
            await self.db.donations.create_index([("status", ASCENDING)], name="status_1")
            await self.db.donations.create_index([("created_at", DESCENDING)], name="created_at_-1")
            await self.db.shelters.create_index([("name", ASCENDING)], name="name_1", unique=True)
            await self.db.matches.create_index([("matched_at", DESCENDING)], name="matched_at_-1")

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()

    # Donations
    async def insert_donation(self, doc: dict) -> dict:
        body = _to_bson(doc)
        async with _storage_errors("insert_donation"):
            res = await self.db.donations.insert_one(body)
        body["_id"] = res.inserted_id
        return _from_bson(body)

    async def find_donation(self, donation_id: str) -> Optional[dict]:
        oid = _oid(donation_id)
        if oid is None:
            return None
        async with _storage_errors("find_donation"):
            return _from_bson(await self.db.donations.find_one({"_id": oid}))

    async def list_donations(self, status: Optional[str] = None) -> List[dict]:
        q = {} if status is None else {"status": status}
        async with _storage_errors("list_donations"):
            cur = self.db.donations.find(q).sort([("created_at", DESCENDING), ("_id", DESCENDING)])
            return [_from_bson(d) async for d in cur]

    async def count_donations(self) -> int:
        async with _storage_errors("count_donations"):
            return await self.db.donations.count_documents({})

    async def swap_donation_status(self, donation_id: str, expected: str, new: str,
                                   fields: Optional[dict] = None) -> Optional[dict]:
        oid = _oid(donation_id)
        if oid is None:
            return None
        async with _storage_errors("swap_donation_status"):
            doc = await self.db.donations.find_one_and_update(
                {"_id": oid, "status": expected},
                {"$set": {"status": new, **_to_bson(fields or {})}},
                return_document=ReturnDocument.AFTER,
            )
        return _from_bson(doc)

    # Shelters
    async def insert_shelter(self, doc: dict) -> dict:
        body = _to_bson(doc)
        body.setdefault("created_at", datetime.now(timezone.utc))
        try:
            async with _storage_errors("insert_shelter"):
                res = await self.db.shelters.insert_one(body)
        except StorageError as exc:
            if isinstance(exc.__cause__, DuplicateKeyError):
                raise Conflict(f"Shelter '{doc['name']}' already exists") from exc
            raise
        body["_id"] = res.inserted_id
        return _from_bson(body)

    async def find_shelter(self, shelter_id: str) -> Optional[dict]:
        oid = _oid(shelter_id)
        if oid is None:
            return None
        async with _storage_errors("find_shelter"):
            return _from_bson(await self.db.shelters.find_one({"_id": oid}))

    async def find_shelter_by_name(self, name: str) -> Optional[dict]:
        async with _storage_errors("find_shelter_by_name"):
            return _from_bson(await self.db.shelters.find_one({"name": name}))

    async def upsert_shelter_by_name(self, name: str, defaults: dict) -> dict:
        body = _to_bson({**defaults, "name": name})
        body.setdefault("created_at", datetime.now(timezone.utc))
        body.pop("name")
        try:
            async with _storage_errors("upsert_shelter_by_name"):
                doc = await self.db.shelters.find_one_and_update(
                    {"name": name},
                    {"$setOnInsert": body},
                    upsert=True,
                    return_document=ReturnDocument.AFTER,
                )
        except StorageError as exc:
            # two upserts raced on the unique name index; the other one won
            if not isinstance(exc.__cause__, DuplicateKeyError):
                raise
            doc = None
        if doc is None:
            return await self.find_shelter_by_name(name)
        return _from_bson(doc)

    async def list_shelters(self) -> List[dict]:
        async with _storage_errors("list_shelters"):
            cur = self.db.shelters.find({}).sort([("created_at", ASCENDING), ("_id", ASCENDING)])
            return [_from_bson(s) async for s in cur]

    async def count_shelters(self) -> int:
        async with _storage_errors("count_shelters"):
            return await self.db.shelters.count_documents({})

    async def increment_shelter_points(self, shelter_id: str, delta: int) -> Optional[dict]:
        oid = _oid(shelter_id)
        if oid is None:
            return None
        async with _storage_errors("increment_shelter_points"):
            doc = await self.db.shelters.find_one_and_update(
                {"_id": oid},
                {"$inc": {"points": delta}},
                return_document=ReturnDocument.AFTER,
            )
        return _from_bson(doc)

    # Matches
    async def insert_match(self, doc: dict) -> dict:
        body = _to_bson(doc)
        async with _storage_errors("insert_match"):
            res = await self.db.matches.insert_one(body)
        body["_id"] = res.inserted_id
        return _from_bson(body)

    async def delete_match(self, match_id: str) -> None:
        oid = _oid(match_id)
        if oid is None:
            return
        async with _storage_errors("delete_match"):
            await self.db.matches.delete_one({"_id": oid})

    async def list_matches(self) -> List[dict]:
        async with _storage_errors("list_matches"):
            cur = self.db.matches.find({}).sort([("matched_at", DESCENDING), ("_id", DESCENDING)])
            return [_from_bson(m) async for m in cur]
