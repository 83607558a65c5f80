"""
5News Headline Ingestion Module
Fetches Google News RSS feeds, filters headlines for kids, and stores them in MongoDB
"""
import asyncio
import hashlib
import logging
import random
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import aiohttp
import feedparser
from bs4 import BeautifulSoup
from pymongo import UpdateOne

from fivenews.ai_pipeline.feed_config import (
    DEFAULT_SOURCE_NAME,
    FEED_TIMEOUT_SECONDS,
    MAX_HEADLINE_AGE_DAYS,
    REQUEST_HEADERS,
    RSS_FEEDS,
    USER_AGENTS,
)
from fivenews.ai_pipeline.headline_filters import (
    clean_title,
    dedupe_headlines,
    extract_date_from_url,
    is_recent,
    rejection_reason,
    should_include_headline,
    split_source_suffix,
)
from fivenews.config import ALLOWED_SOURCES

logger = logging.getLogger(__name__)


class HeadlineIngestionService:
    def __init__(self, database=None, feeds: Optional[List[Dict]] = None, whitelist: Optional[List[str]] = None):
        """Use the shared Motor database unless one is injected"""
        if database is None:
            from fivenews.db import db as database
        self.db = database
        self.headlines_collection = self.db["headlines"]
        self.feeds = feeds if feeds is not None else RSS_FEEDS
        self.whitelist = whitelist if whitelist is not None else ALLOWED_SOURCES

    async def fetch_feed_text(self, feed_url: str) -> Optional[str]:
        """Download a feed with a browser User-Agent"""
        headers = dict(REQUEST_HEADERS)
        headers["User-Agent"] = random.choice(USER_AGENTS)
        timeout = aiohttp.ClientTimeout(total=FEED_TIMEOUT_SECONDS)

        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(feed_url, headers=headers) as response:
                if response.status != 200:
                    logger.warning(f"  Feed {feed_url} returned HTTP {response.status}")
                    return None
                return await response.text()

    def _entry_published_at(self, entry: Dict, url: str) -> datetime:
        """Entry date, else a date found in the URL, else now"""
        parsed = entry.get("published_parsed") or entry.get("updated_parsed")
        if parsed:
            return datetime(*parsed[:6], tzinfo=timezone.utc)

        from_url = extract_date_from_url(url)
        if from_url:
            return from_url

        return datetime.now(timezone.utc)

    def _entry_source(self, entry: Dict, raw_title: str) -> Dict[str, Optional[str]]:
        source = entry.get("source") or {}
        name = source.get("title") if hasattr(source, "get") else None
        href = source.get("href") if hasattr(source, "get") else None
        return {
            "name": (name or split_source_suffix(raw_title) or DEFAULT_SOURCE_NAME).strip(),
            "url": href,
        }

    def parse_entry(self, entry: Dict, fetched_at: datetime) -> Optional[Dict[str, Any]]:
        """Parse one RSS entry into a headline document"""
        raw_title = (entry.get("title") or "").strip()
        url = (entry.get("link") or "").strip()

        if not raw_title or not url:
            return None

        if not should_include_headline(raw_title):
            logger.debug(f"  [REJECTED] {raw_title[:60]} - live or video")
            return None

        description = entry.get("summary", "") or entry.get("description", "")
        description = BeautifulSoup(description, "html.parser").get_text(separator=" ", strip=True)
        description = re.sub(r"\s+", " ", description).strip()

        source = self._entry_source(entry, raw_title)

        return {
            "id": f"headline-{hashlib.md5(url.encode('utf-8')).hexdigest()[:16]}",
            "title": clean_title(raw_title),
            "url": url,
            "description": description,
            "source": source["name"],
            "source_url": source["url"],
            "published_at": self._entry_published_at(entry, url),
            "fetched_at": fetched_at,
        }

    def parse_feed(self, feed_text: str) -> List[Dict[str, Any]]:
        """Parse RSS text into headline documents"""
        feed = feedparser.parse(feed_text)
        if feed.get("bozo") and not feed.entries:
            logger.warning(f"  Unparseable feed: {feed.get('bozo_exception')}")
            return []

        fetched_at = datetime.now(timezone.utc)
        headlines = []
        for entry in feed.entries:
            headline = self.parse_entry(entry, fetched_at)
            if headline:
                headlines.append(headline)
        return headlines

    def filter_headlines(self, headlines: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        kept = []
        for headline in headlines:
            reason = rejection_reason(headline, self.whitelist)
            if reason:
                logger.info(f"  [REJECTED] {headline.get('title', '')[:60]} - {reason}")
                continue
            kept.append(headline)
        return kept

    async def fetch_fresh_headlines(self) -> List[Dict[str, Any]]:
        """Fetch all feeds, then filter, dedupe, sort newest first and keep the last few days"""
        headlines = []

        for feed_info in self.feeds:
            feed_name = feed_info.get("name", feed_info.get("url", "Unknown Feed"))
            try:
                feed_text = await self.fetch_feed_text(feed_info["url"])
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.error(f"Error fetching feed {feed_name}: {e}")
                continue

            if not feed_text:
                continue

            parsed = self.parse_feed(feed_text)
            headlines.extend(parsed)
            logger.info(f"Fetched {len(parsed)} headlines from {feed_name}")

        filtered = self.filter_headlines(headlines)
        unique = dedupe_headlines(filtered)
        unique.sort(key=lambda h: h["published_at"], reverse=True)
        recent = [h for h in unique if is_recent(h["published_at"])]

        logger.info(f"Processed {len(recent)} recent headlines from {len(headlines)} total")
        return recent

    async def store_headlines(self, headlines: List[Dict[str, Any]]) -> int:
        """Drop headlines past retention, then upsert the new ones by URL"""
        cutoff = datetime.now(timezone.utc) - timedelta(days=MAX_HEADLINE_AGE_DAYS)
        deleted = await self.headlines_collection.delete_many({"published_at": {"$lt": cutoff}})
        logger.info(f"Cleared {deleted.deleted_count} old headlines")

        if not headlines:
            return 0

        operations = [
            UpdateOne({"url": h["url"]}, {"$set": h}, upsert=True)
            for h in headlines
        ]
        result = await self.headlines_collection.bulk_write(operations, ordered=False)
        stored = result.upserted_count + result.modified_count
        logger.info(f"Stored {stored} headlines ({result.upserted_count} new)")
        return stored

    async def run_ingestion(self) -> Dict[str, Any]:
        """Run a full fetch + store cycle"""
        logger.info("=" * 80)
        logger.info("Starting 5News Headline Ingestion")
        logger.info("=" * 80)

        stats = {
            "fetched": 0,
            "stored": 0,
            "start_time": datetime.now(timezone.utc),
        }

        headlines = await self.fetch_fresh_headlines()
        stats["fetched"] = len(headlines)

        if headlines:
            stats["stored"] = await self.store_headlines(headlines)
        else:
            logger.warning("No headlines fetched, skipping update")

        stats["end_time"] = datetime.now(timezone.utc)
        stats["duration_seconds"] = (stats["end_time"] - stats["start_time"]).total_seconds()

        logger.info(f"Ingestion done: {stats['fetched']} fetched, {stats['stored']} stored "
                    f"in {stats['duration_seconds']:.2f} seconds")
        return stats


async def main():
    """Main entry point"""
    logging.basicConfig(level=logging.INFO)
    service = HeadlineIngestionService()
    await service.run_ingestion()


if __name__ == "__main__":
    asyncio.run(main())
