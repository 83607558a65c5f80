# backend/fivenews/scripts/clear_news_cache.py
"""
Delete the global news cache so the next /api/news request refetches
Run with: python -m fivenews.scripts.clear_news_cache
"""
import asyncio
import logging

from fivenews.services.news_cache import NewsCacheService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def main():
    """Main entry point"""
    response = input("This will DELETE the cached news feed. Are you sure? (yes/no): ")
    if response.lower() != 'yes':
        logger.info("Operation cancelled.")
        return 0

    deleted = await NewsCacheService().clear_news_cache()
    logger.info(f"✅ Cleared {deleted} news cache entries")
    return 0


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    exit(exit_code)
