# backend/fivenews/scripts/cleanup_cache.py
"""
Purge expired cartoon, news and TTS cache entries
Run with: python -m fivenews.scripts.cleanup_cache
"""
import asyncio
import logging

from fivenews.ai_pipeline.cache_maintenance import CacheMaintenanceService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def main():
    """Main entry point"""
    logger.info("Starting cache cleanup...")
    stats = await CacheMaintenanceService().cleanup_all_caches()
    total = stats["cartoons_deleted"] + stats["news_entries_deleted"] + stats["tts_entries_deleted"]
    logger.info(f"✅ Cache cleanup completed, {total} entries removed")
    return 0


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    exit(exit_code)
