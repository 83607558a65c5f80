# fivenews/controllers/news_controller.py
"""
5News feed controller
Serves stored headlines, falling back to the global news cache and then a live RSS fetch
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List

from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from fivenews.ai_pipeline.feed_config import MAX_HEADLINE_AGE_DAYS
from fivenews.ai_pipeline.headline_filters import as_utc, clean_for_cartoon
from fivenews.ai_pipeline.ingestion import HeadlineIngestionService
from fivenews.db import db
from fivenews.services.cartoon_cache import CartoonCacheService
from fivenews.services.news_cache import NewsCacheService

logger = logging.getLogger(__name__)

PAGE_SIZE = 20
MAX_STORED_HEADLINES = 200

headlines_collection = db["headlines"]
news_cache = NewsCacheService(db)
cartoon_cache = CartoonCacheService(db)
ingestion_service = HeadlineIngestionService(db)


class NewsUnavailableError(Exception):
    """No headlines could be found in storage, cache or the live feeds"""


def headline_to_article(headline: Dict) -> Dict:
    """Map a stored headline to the article shape the feed UI expects"""
    published_at = headline.get("published_at")
    if isinstance(published_at, datetime):
        published_at = as_utc(published_at).isoformat()

    description = headline.get("description") or ""
    return {
        "id": headline.get("id") or str(headline.get("_id", "")),
        "title": headline.get("title", ""),
        "description": description,
        "url": headline.get("url", ""),
        "urlToImage": None,
        "publishedAt": published_at or "",
        "source": {"id": None, "name": headline.get("source") or ""},
        "content": description,
        "cartoonUrl": None,
    }


async def get_stored_headlines() -> List[Dict]:
    """Recent headlines from the headlines collection, newest first"""
    cutoff = datetime.now(timezone.utc) - timedelta(days=MAX_HEADLINE_AGE_DAYS)
    cursor = (
        headlines_collection
        .find({"published_at": {"$gte": cutoff}})
        .sort("published_at", DESCENDING)
        .limit(MAX_STORED_HEADLINES)
    )
    return [headline_to_article(h) async for h in cursor]


async def fetch_live_articles() -> List[Dict]:
    headlines = await ingestion_service.fetch_fresh_headlines()
    articles = [headline_to_article(h) for h in headlines]
    if articles:
        await news_cache.set_cached_news(articles)
    return articles


async def attach_cartoons(articles: List[Dict]) -> List[Dict]:
    """Fill cartoonUrl from the cartoon cache where one exists"""
    keys = {a["id"]: clean_for_cartoon(a.get("title", "")) for a in articles}
    cached = await cartoon_cache.get_cached_cartoons([k for k in keys.values() if k])
    for article in articles:
        article["cartoonUrl"] = cached.get(keys[article["id"]]) or article.get("cartoonUrl")
    return articles


async def get_news(page: int = 1, refresh: bool = False) -> Dict:
    """
    Get one page of kid-friendly headlines

    Args:
        page: 1-based page number
        refresh: Skip stored headlines and the cache and fetch live

    Returns:
        {articles, totalResults, hasMore, source}

    Raises:
        NewsUnavailableError: the live fetch returned nothing
    """
    articles: List[Dict] = []
    source = "live"

    if not refresh:
        try:
            articles = await get_stored_headlines()
            source = "headlines"
        except PyMongoError as e:
            logger.error(f"Error reading stored headlines: {e}")

        if not articles:
            articles = await news_cache.get_cached_news() or []
            source = "cache"

    if not articles:
        logger.info("Fetching live headlines from RSS")
        articles = await fetch_live_articles()
        source = "live"
        if not articles:
            raise NewsUnavailableError("No headlines available")

    start = (page - 1) * PAGE_SIZE
    page_articles = [dict(a) for a in articles[start:start + PAGE_SIZE]]
    await attach_cartoons(page_articles)

    logger.info(f"Serving page {page} ({len(page_articles)} of {len(articles)} articles from {source})")
    return {
        "articles": page_articles,
        "totalResults": len(articles),
        "hasMore": start + PAGE_SIZE < len(articles),
        "source": source,
    }
