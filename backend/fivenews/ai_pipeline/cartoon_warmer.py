"""
5News Cartoon Warmer
Pre-generates cartoons for the latest headlines so the feed rarely waits on Replicate
"""
import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING

from fivenews.ai_pipeline.headline_filters import clean_for_cartoon
from fivenews.config import (
    CARTOON_WARM_LIMIT,
    CARTOON_WARM_MAX_NEW,
    CARTOON_WARM_MIN_DELAY_SECONDS,
)
from fivenews.services.cartoon_cache import CartoonCacheService
from fivenews.services.replicate_service import ReplicateService, RequestQueue
from fivenews.services.storage_service import StorageService

logger = logging.getLogger(__name__)


class CartoonWarmer:
    def __init__(
        self,
        database=None,
        replicate: Optional[ReplicateService] = None,
        storage: Optional[StorageService] = None,
        cartoon_cache: Optional[CartoonCacheService] = None,
    ):
        if database is None:
            from fivenews.db import db as database
        self.headlines_collection = database["headlines"]
        # warm_cartoons spaces requests itself
        self.replicate = replicate or ReplicateService(queue=RequestQueue(0, max_jitter_seconds=0))
        self.storage = storage or StorageService()
        self.cartoon_cache = cartoon_cache or CartoonCacheService(database)

    async def latest_keys(self, limit: int) -> List[str]:
        """Unique cartoon keys of the newest headlines, newest first"""
        cursor = self.headlines_collection.find({}, {"title": 1}).sort("published_at", DESCENDING).limit(limit)
        keys = []
        async for headline in cursor:
            key = clean_for_cartoon(headline.get("title", ""))
            if key and key not in keys:
                keys.append(key)
        return keys

    async def warm_one(self, key: str) -> str:
        """Generate, store and cache one cartoon, returning its URL"""
        image_url = await self.replicate.generate_image(key)
        await self.cartoon_cache.update_rate_limit_lock()

        if self.storage.is_configured:
            image_url = await self.storage.store_cartoon(key, image_url)
            logger.info(f"[warm] stored -> {image_url}")

        await self.cartoon_cache.set_cached_cartoon(key, image_url)
        return image_url

    async def warm_cartoons(
        self,
        limit: int = CARTOON_WARM_LIMIT,
        max_new: int = CARTOON_WARM_MAX_NEW,
        min_delay_seconds: float = CARTOON_WARM_MIN_DELAY_SECONDS,
    ) -> Dict[str, Any]:
        """
        Generate missing cartoons for the latest headlines

        Args:
            limit: How many of the newest headlines to consider
            max_new: Most cartoons to generate in this run
            min_delay_seconds: Minimum spacing between generation starts

        Returns:
            Stats dict with unique_keys, cached, missing, generated and failed
        """
        logger.info(f"[warm] fetching latest {limit} headlines...")
        keys = await self.latest_keys(limit)

        stats = {"unique_keys": len(keys), "cached": 0, "missing": 0, "generated": 0, "failed": 0}
        if not keys:
            logger.info("[warm] no headlines found")
            return stats

        cached = await self.cartoon_cache.get_cached_keys(keys)
        missing = [k for k in keys if k not in cached]
        stats["cached"] = len(cached)
        stats["missing"] = len(missing)
        logger.info(f"[warm] cached: {len(cached)}, missing: {len(missing)}")

        to_generate = missing[:max_new]
        logger.info(f"[warm] generating up to {len(to_generate)} new cartoons this run")

        last_start = None
        for key in to_generate:
            if last_start is not None:
                wait = min_delay_seconds - (time.monotonic() - last_start)
                if wait > 0:
                    logger.info(f"[warm] waiting {wait:.1f}s to respect rate limits...")
                    await asyncio.sleep(wait)
            last_start = time.monotonic()

            try:
                logger.info(f"[warm] generating: {key}")
                await self.warm_one(key)
                stats["generated"] += 1
            except Exception as e:
                logger.error(f"[warm] FAILED for \"{key}\": {e}")
                stats["failed"] += 1

        logger.info(f"[warm] done: {stats}")
        return stats


async def main():
    """Main entry point"""
    logging.basicConfig(level=logging.INFO)
    warmer = CartoonWarmer()
    await warmer.warm_cartoons()


if __name__ == "__main__":
    asyncio.run(main())
