# fivenews/controllers/cartoon_controller.py
"""
5News Cartoon Controller
Cache lookup and validation, rate limiting, Replicate generation and durable storage
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

import aiohttp
from pymongo import DESCENDING

from fivenews.ai_pipeline.headline_filters import clean_for_cartoon
from fivenews.db import db
from fivenews.services.cartoon_cache import CartoonCacheService
from fivenews.services.replicate_service import (
    CartoonGenerationError,
    ReplicateCreditsError,
    ReplicateRateLimitError,
    ReplicateService,
)
from fivenews.services.storage_service import StorageService

logger = logging.getLogger(__name__)

VALIDATION_TIMEOUT_SECONDS = 5
LOCK_RETRY_AFTER_SECONDS = 15
REPLICATE_RETRY_AFTER_SECONDS = 60
LATEST_HEADLINES_LIMIT = 40
MAX_PER_RUN = 4

cartoon_cache = CartoonCacheService(db)
replicate_service = ReplicateService()
storage_service = StorageService()
headlines_collection = db["headlines"]

CartoonResponse = Tuple[Dict[str, Any], int]


async def validate_cartoon_url(url: str) -> bool:
    """Cheap ranged GET to check a cached image URL has not expired"""
    timeout = aiohttp.ClientTimeout(total=VALIDATION_TIMEOUT_SECONDS)
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url, headers={"Range": "bytes=0-1"}) as response:
                if response.status == 404:
                    return False
                return response.status < 400
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.warning(f"Cached cartoon validation failed: {e}")
        return False


async def _cached_fallback(key: str, reason: str) -> Optional[Dict[str, Any]]:
    cached = await cartoon_cache.get_cached_cartoon(key)
    if not cached:
        return None
    logger.info(f"Returning cached cartoon as fallback ({reason})")
    return {
        "cartoonUrl": cached,
        "success": True,
        "cached": True,
        "fallback": True,
        "warning": f"Using cached image - {reason}",
    }


async def _persist(key: str, image_url: str) -> str:
    """Copy to durable storage when configured, then cache"""
    if storage_service.is_configured:
        try:
            image_url = await storage_service.store_cartoon(key, image_url)
        except Exception as e:
            logger.warning(f"Durable storage failed, caching Replicate URL: {e}")
    await cartoon_cache.set_cached_cartoon(key, image_url)
    return image_url


async def cartoonize(headline: Optional[str]) -> CartoonResponse:
    """
    Get or generate the cartoon for a headline

    Returns:
        Tuple of (response body, HTTP status)
    """
    if not headline or not isinstance(headline, str):
        return {"error": "Headline is required"}, 400

    key = clean_for_cartoon(headline)
    if not key:
        return {"error": "Invalid headline after cleaning"}, 400

    if not replicate_service.is_configured:
        logger.error("Replicate API token not found in environment")
        return {"error": "Replicate API key not configured"}, 500

    cached = await cartoon_cache.get_cached_cartoon(key)
    if cached:
        if await validate_cartoon_url(cached):
            return {"cartoonUrl": cached, "success": True, "cached": True}, 200
        logger.info("Cached cartoon URL expired, deleting and regenerating")
        await cartoon_cache.delete_cached_cartoon(key)

    if not await cartoon_cache.acquire_rate_limit_lock():
        logger.info("Rate limit: too soon since last request")
        fallback = await _cached_fallback(key, "rate limited")
        if fallback:
            return fallback, 200
        return {"error": "Rate limit exceeded", "retryAfter": LOCK_RETRY_AFTER_SECONDS, "success": False}, 429

    try:
        image_url = await replicate_service.generate_image(key)
    except ReplicateCreditsError:
        logger.error("Replicate credits exhausted")
        return {"cartoonUrl": None, "success": False, "cached": False, "fallback": True}, 200
    except ReplicateRateLimitError:
        logger.error("Replicate API rate limit exceeded (429)")
        fallback = await _cached_fallback(key, "rate limited")
        if fallback:
            return fallback, 200
        return {"error": "Rate limit exceeded", "retryAfter": REPLICATE_RETRY_AFTER_SECONDS, "success": False}, 429
    except (CartoonGenerationError, aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.error(f"Error generating cartoon for '{key}': {e}")
        fallback = await _cached_fallback(key, "generation failed")
        if fallback:
            return fallback, 200
        return {"error": "Failed to generate cartoon image", "details": str(e)}, 500

    await cartoon_cache.update_rate_limit_lock()
    cartoon_url = await _persist(key, image_url)
    return {"cartoonUrl": cartoon_url, "success": True, "cached": False}, 200


async def cartoonize_batch(headlines: List[str]) -> List[Dict[str, Any]]:
    """Generate cartoons for many headlines, one result per headline"""
    results = []
    for headline in headlines:
        key = clean_for_cartoon(headline)
        if not key:
            results.append({"headline": headline, "status": "failed", "error": "Invalid headline"})
            continue

        cached = await cartoon_cache.get_cached_cartoon(key)
        if cached:
            results.append({"headline": headline, "status": "cached", "cartoonUrl": cached})
            continue

        try:
            image_url = await replicate_service.generate_image(key)
            await cartoon_cache.update_rate_limit_lock()
            cartoon_url = await _persist(key, image_url)
            results.append({"headline": headline, "status": "success", "cartoonUrl": cartoon_url})
        except (CartoonGenerationError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Batch cartoon failed for '{headline}': {e}")
            results.append({"headline": headline, "status": "failed", "error": str(e)})

    return results


async def generate_latest_cartoons() -> Dict[str, Any]:
    """Warm a small batch of the newest stored headlines"""
    cursor = headlines_collection.find({}, {"title": 1}).sort("published_at", DESCENDING).limit(LATEST_HEADLINES_LIMIT)
    headlines = [h async for h in cursor]
    if not headlines:
        return {"success": False, "error": "No headlines found in database"}

    logger.info(f"Found {len(headlines)} headlines to process")
    results = []
    for row in headlines[:MAX_PER_RUN]:
        key = clean_for_cartoon(row.get("title", ""))
        if not key:
            continue

        existing = await cartoon_cache.get_cached_cartoon(key)
        if existing:
            results.append({"headline": key, "status": "already_cached", "cartoonUrl": existing})
            continue

        body, status_code = await cartoonize(key)
        results.append({
            "headline": key,
            "status": "success" if body.get("success") and status_code == 200 else "failed",
            "cartoonUrl": body.get("cartoonUrl"),
            "error": body.get("error"),
        })

    stats = {
        "total": len(results),
        "success": sum(1 for r in results if r["status"] == "success"),
        "already_cached": sum(1 for r in results if r["status"] == "already_cached"),
        "failed": sum(1 for r in results if r["status"] == "failed"),
    }
    logger.info(f"Cartoon generation stats: {stats}")
    return {"success": True, "results": results, "stats": stats}
