from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from pymongo.errors import PyMongoError

from reportsync.core.errors import CacheError
from reportsync.utils.mongo import parse_iso, serialize_document, utcnow

logger = logging.getLogger(__name__)


class CacheRepository:
    """
    Key-scoped persisted cache. One document per key:

        {_id: key, value: "<json text>", written_at: iso, refreshed_at: iso}

    `put` and `clear` touch a single document, so a reader never sees a
    half-written value. Every failure surfaces as CacheError.
    """

    def __init__(self, collection):
        self.collection = collection

    async def put(self, key: str, value: Any) -> None:
        try:
            payload = json.dumps(serialize_document(value))
        except (TypeError, ValueError) as exc:
            raise CacheError(key, f"value is not serializable ({exc})") from exc

        try:
            await self.collection.update_one(
                {"_id": key},
                {"$set": {"value": payload, "written_at": utcnow().isoformat()}},
                upsert=True,
            )
        except PyMongoError as exc:
            raise CacheError(key, f"write failed ({exc})") from exc

    async def get(self, key: str) -> Optional[Any]:
        doc = await self._find(key)
        if not doc or doc.get("value") is None:
            return None
        try:
            return json.loads(doc["value"])
        except (TypeError, ValueError) as exc:
            raise CacheError(key, f"stored value is malformed ({exc})") from exc

    async def mark_refreshed(self, key: str, at: Optional[datetime] = None) -> None:
        stamp = (at or utcnow()).isoformat()
        try:
            await self.collection.update_one(
                {"_id": key},
                {"$set": {"refreshed_at": stamp}},
                upsert=True,
            )
        except PyMongoError as exc:
            raise CacheError(key, f"timestamp write failed ({exc})") from exc

    async def refreshed_at(self, key: str) -> Optional[datetime]:
        doc = await self._find(key)
        if not doc:
            return None
        return parse_iso(doc.get("refreshed_at"))

    async def is_stale(self, key: str, ttl: timedelta) -> bool:
        stamp = await self.refreshed_at(key)
        if stamp is None:
            return True
        return utcnow() - stamp > ttl

    async def clear(self, key: str) -> None:
        try:
            await self.collection.delete_one({"_id": key})
        except PyMongoError as exc:
            raise CacheError(key, f"delete failed ({exc})") from exc

    async def _find(self, key: str):
        try:
            return await self.collection.find_one({"_id": key})
        except PyMongoError as exc:
            raise CacheError(key, f"read failed ({exc})") from exc
