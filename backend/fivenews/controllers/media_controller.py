# fivenews/controllers/media_controller.py
from datetime import datetime
from typing import Dict, Tuple

import aiohttp

PROXY_TIMEOUT_SECONDS = 10
PROXY_USER_AGENT = "Mozilla/5.0 (compatible; 5news-bot/1.0)"

DAILY_CALL_LIMIT = 100
ESTIMATED_CALLS_PER_HOUR = 4


async def fetch_image(image_url: str) -> Tuple[int, bytes, str]:
    """
    Fetch an image for the same-origin proxy

    Returns:
        Tuple of (status, body, content_type)

    Raises:
        asyncio.TimeoutError: upstream took longer than PROXY_TIMEOUT_SECONDS
    """
    timeout = aiohttp.ClientTimeout(total=PROXY_TIMEOUT_SECONDS)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        async with session.get(image_url, headers={"User-Agent": PROXY_USER_AGENT}) as response:
            content_type = response.headers.get("Content-Type", "image/png")
            return response.status, await response.read(), content_type


def estimate_usage(now: datetime = None) -> Dict:
    """Rough daily API usage, assuming a steady call rate since midnight"""
    now = now or datetime.now()
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    hours_since_start = (now - start_of_day).total_seconds() / 3600

    used = int(hours_since_start * ESTIMATED_CALLS_PER_HOUR)
    return {
        "totalDailyLimit": DAILY_CALL_LIMIT,
        "estimatedCallsUsed": used,
        "remainingCalls": max(0, DAILY_CALL_LIMIT - used),
        "percentageUsed": round(used / DAILY_CALL_LIMIT * 100),
        "cacheStrategy": {
            "duration": "30 minutes",
            "description": "Headlines are refreshed every 30 minutes and served from the database",
        },
    }
