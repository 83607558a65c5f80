# fivenews/services/cartoon_cache.py
"""
Cartoon cache keyed by the normalized headline (see clean_for_cartoon)
Also holds the cross-instance rate limit lock for Replicate
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Set

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from fivenews.config import REPLICATE_MIN_INTERVAL_SECONDS

logger = logging.getLogger(__name__)

CARTOON_RETENTION_DAYS = 30
RATE_LIMIT_LOCK_ID = "replicate_api"


class CartoonCacheService:
    """Service for cached cartoon URLs"""

    def __init__(self, database=None, min_interval_seconds: int = REPLICATE_MIN_INTERVAL_SECONDS):
        if database is None:
            from fivenews.db import db as database
        self.collection = database["cartoon_cache"]
        self.lock_collection = database["rate_limit_lock"]
        self.min_interval_seconds = min_interval_seconds

    async def get_cached_cartoon(self, headline_key: str) -> Optional[str]:
        try:
            doc = await self.collection.find_one({"headline": headline_key})
        except PyMongoError as e:
            logger.error(f"Error fetching cached cartoon: {e}")
            return None
        return doc.get("cartoon_url") if doc else None

    async def set_cached_cartoon(self, headline_key: str, cartoon_url: str) -> None:
        try:
            await self.collection.update_one(
                {"headline": headline_key},
                {"$set": {
                    "headline": headline_key,
                    "cartoon_url": cartoon_url,
                    "created_at": datetime.now(timezone.utc),
                }},
                upsert=True,
            )
        except PyMongoError as e:
            logger.error(f"Error caching cartoon: {e}")

    async def delete_cached_cartoon(self, headline_key: str) -> None:
        try:
            await self.collection.delete_one({"headline": headline_key})
        except PyMongoError as e:
            logger.error(f"Error deleting cached cartoon: {e}")

    async def get_cached_cartoons(self, headline_keys: List[str]) -> Dict[str, str]:
        """Cartoon URLs for whichever of the given keys are cached"""
        if not headline_keys:
            return {}
        try:
            cursor = self.collection.find(
                {"headline": {"$in": headline_keys}},
                {"headline": 1, "cartoon_url": 1, "_id": 0},
            )
            return {doc["headline"]: doc.get("cartoon_url") async for doc in cursor}
        except PyMongoError as e:
            logger.error(f"Error fetching cached cartoons: {e}")
            return {}

    async def get_cached_keys(self, headline_keys: List[str]) -> Set[str]:
        return set(await self.get_cached_cartoons(headline_keys))

    async def clear_expired_cartoons(self) -> int:
        cutoff = datetime.now(timezone.utc) - timedelta(days=CARTOON_RETENTION_DAYS)
        try:
            result = await self.collection.delete_many({"created_at": {"$lt": cutoff}})
            return result.deleted_count
        except PyMongoError as e:
            logger.error(f"Error clearing expired cartoon cache: {e}")
            return 0

    async def acquire_rate_limit_lock(self) -> bool:
        """
        Claim the Replicate slot shared by every app instance.

        Succeeds only when the last request is at least min_interval_seconds
        old, and stamps the lock in the same atomic update. When the lock
        document exists but is too recent, the upsert collides on _id.
        """
        now = datetime.now(timezone.utc)
        threshold = now - timedelta(seconds=self.min_interval_seconds)
        try:
            await self.lock_collection.find_one_and_update(
                {"_id": RATE_LIMIT_LOCK_ID, "last_request": {"$lte": threshold}},
                {"$set": {"last_request": now, "updated_at": now}},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
            return True
        except DuplicateKeyError:
            return False
        except PyMongoError as e:
            # The in-process queue still spaces requests out
            logger.warning(f"Rate limit lock unavailable, proceeding: {e}")
            return True

    async def update_rate_limit_lock(self) -> None:
        now = datetime.now(timezone.utc)
        try:
            await self.lock_collection.update_one(
                {"_id": RATE_LIMIT_LOCK_ID},
                {"$set": {"last_request": now, "updated_at": now}},
                upsert=True,
            )
        except PyMongoError as e:
            logger.error(f"Error updating rate limit lock: {e}")
