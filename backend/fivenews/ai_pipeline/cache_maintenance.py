"""
5News Cache Maintenance Module
Purges expired cartoon, news and TTS cache entries
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fivenews.services.cartoon_cache import CartoonCacheService
from fivenews.services.news_cache import NewsCacheService
from fivenews.services.tts_cache import TTSCacheService

logger = logging.getLogger(__name__)


class CacheMaintenanceService:
    def __init__(self, database=None):
        if database is None:
            from fivenews.db import db as database
        self.cartoon_cache = CartoonCacheService(database)
        self.news_cache = NewsCacheService(database)
        self.tts_cache = TTSCacheService(database)

    async def cleanup_all_caches(self) -> Dict[str, Any]:
        """Execute one cleanup pass over every cache"""
        logger.info("=" * 80)
        logger.info("Starting cache cleanup")
        logger.info("=" * 80)

        stats = {"start_time": datetime.now(timezone.utc)}

        logger.info("[1/3] Cleaning up cartoon cache...")
        stats["cartoons_deleted"] = await self.cartoon_cache.clear_expired_cartoons()

        logger.info("[2/3] Cleaning up news cache...")
        stats["news_entries_deleted"] = await self.news_cache.clear_expired_news_cache()

        logger.info("[3/3] Cleaning up TTS cache...")
        stats["tts_entries_deleted"] = await self.tts_cache.clear_expired_tts_cache()

        stats["end_time"] = datetime.now(timezone.utc)
        stats["duration_seconds"] = (stats["end_time"] - stats["start_time"]).total_seconds()

        logger.info(f"Cartoons deleted: {stats['cartoons_deleted']}")
        logger.info(f"News cache entries deleted: {stats['news_entries_deleted']}")
        logger.info(f"TTS cache entries deleted: {stats['tts_entries_deleted']}")
        logger.info(f"Duration: {stats['duration_seconds']:.2f} seconds")
        return stats


async def main():
    """Main entry point for manual execution"""
    logging.basicConfig(level=logging.INFO)
    await CacheMaintenanceService().cleanup_all_caches()


if __name__ == "__main__":
    asyncio.run(main())
