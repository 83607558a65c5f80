# fivenews/services/news_cache.py
"""
Single global cache of the last served article list
Used when the headlines collection is empty or unreachable
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from fivenews.ai_pipeline.feed_config import MAX_HEADLINE_AGE_DAYS
from fivenews.ai_pipeline.headline_filters import as_utc

logger = logging.getLogger(__name__)

NEWS_CACHE_RETENTION_DAYS = 7


def _published_at(article: Dict) -> Optional[datetime]:
    value = article.get("publishedAt")
    if isinstance(value, datetime):
        return as_utc(value)
    try:
        return as_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError:
        return None


class NewsCacheService:
    """Service for the global news cache"""

    def __init__(self, database=None):
        if database is None:
            from fivenews.db import db as database
        self.collection = database["news_cache"]

    async def get_cached_news(self) -> Optional[List[Dict]]:
        """
        Most recent cache entry, limited to articles from the last few days

        Returns:
            Articles sorted newest first, or None when nothing is cached
        """
        try:
            cursor = self.collection.find({}, {"_id": 0}).sort("created_at", DESCENDING).limit(1)
            entries = await cursor.to_list(length=1)
        except PyMongoError as e:
            logger.error(f"Error fetching cached news: {e}")
            return None

        if not entries:
            logger.info("No cached news found")
            return None

        cutoff = datetime.now(timezone.utc) - timedelta(days=MAX_HEADLINE_AGE_DAYS)
        recent = []
        for article in entries[0].get("articles") or []:
            published = _published_at(article)
            if published and published > cutoff:
                recent.append((published, article))

        recent.sort(key=lambda pair: pair[0], reverse=True)
        logger.info(f"Retrieved {len(recent)} articles from global cache "
                    f"(created: {entries[0].get('created_at')})")
        return [article for _, article in recent]

    async def set_cached_news(self, articles: List[Dict]) -> None:
        """Replace every cache entry with one global entry"""
        now = datetime.now(timezone.utc)
        try:
            await self.collection.delete_many({})
            await self.collection.insert_one({
                "date": now.strftime("%Y-%m-%d"),
                "page": 0,
                "articles": articles,
                "created_at": now,
            })
            logger.info(f"News cached in global cache with {len(articles)} articles")
        except PyMongoError as e:
            logger.error(f"Error caching news: {e}")

    async def clear_expired_news_cache(self) -> int:
        cutoff = datetime.now(timezone.utc) - timedelta(days=NEWS_CACHE_RETENTION_DAYS)
        try:
            result = await self.collection.delete_many({"created_at": {"$lt": cutoff}})
            return result.deleted_count
        except PyMongoError as e:
            logger.error(f"Error clearing expired news cache: {e}")
            return 0

    async def clear_news_cache(self) -> int:
        """Delete every entry so the next request refetches"""
        try:
            result = await self.collection.delete_many({})
            return result.deleted_count
        except PyMongoError as e:
            logger.error(f"Error clearing news cache: {e}")
            return 0
