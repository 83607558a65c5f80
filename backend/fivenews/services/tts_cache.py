# fivenews/services/tts_cache.py
"""
Speech audio cache keyed by (text hash, voice id)
"""
import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from pymongo.errors import PyMongoError

from fivenews.ai_pipeline.headline_filters import as_utc

logger = logging.getLogger(__name__)

TTS_FRESH_HOURS = 24
TTS_RETENTION_DAYS = 30


def hash_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class TTSCacheService:
    """Service for cached speech audio"""

    def __init__(self, database=None):
        if database is None:
            from fivenews.db import db as database
        self.collection = database["tts_cache"]

    async def get_cached_tts(self, text: str, voice_id: str) -> Optional[str]:
        """Cached audio URL, or None when missing or older than a day"""
        try:
            doc = await self.collection.find_one({
                "text_hash": hash_text(text),
                "voice_id": voice_id,
            })
        except PyMongoError as e:
            logger.error(f"Error fetching cached TTS: {e}")
            return None

        if not doc:
            return None

        created_at = doc.get("created_at")
        if not created_at or datetime.now(timezone.utc) - as_utc(created_at) > timedelta(hours=TTS_FRESH_HOURS):
            logger.info("TTS cache is too old, generating fresh audio")
            return None

        return doc.get("audio_url")

    async def set_cached_tts(self, text: str, voice_id: str, audio_url: str) -> None:
        text_hash = hash_text(text)
        try:
            await self.collection.update_one(
                {"text_hash": text_hash, "voice_id": voice_id},
                {"$set": {
                    "text_hash": text_hash,
                    "voice_id": voice_id,
                    "audio_url": audio_url,
                    "created_at": datetime.now(timezone.utc),
                }},
                upsert=True,
            )
            logger.info("TTS cached successfully")
        except PyMongoError as e:
            logger.error(f"Error caching TTS: {e}")

    async def clear_expired_tts_cache(self) -> int:
        cutoff = datetime.now(timezone.utc) - timedelta(days=TTS_RETENTION_DAYS)
        try:
            result = await self.collection.delete_many({"created_at": {"$lt": cutoff}})
            return result.deleted_count
        except PyMongoError as e:
            logger.error(f"Error clearing expired TTS cache: {e}")
            return 0
