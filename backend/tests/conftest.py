import os

# Config is read at import time
os.environ["MONGODB_URI"] = "mongodb://localhost:27017"
os.environ["MONGODB_DB_NAME"] = "fivenews_test"
os.environ["CRON_SECRET_KEY"] = "test-cron-secret"
os.environ["REPLICATE_API_TOKEN"] = "test-replicate-token"
os.environ["ELEVENLABS_API_KEY"] = "test-elevenlabs-key"
os.environ["OPENAI_API_KEY"] = "test-openai-key"
os.environ["EXPLAIN_PROVIDER"] = "openai"
os.environ["TTS_PROVIDER"] = "elevenlabs"
os.environ["ALLOWED_SOURCES"] = "ABC News"
os.environ["FIREBASE_STORAGE_BUCKET"] = ""

from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

import pytest
from unittest.mock import MagicMock, AsyncMock


class AsyncCursor:
    """Stand-in for a Motor cursor over a fixed list of documents"""

    def __init__(self, docs):
        self.docs = list(docs)

    def sort(self, *args, **kwargs):
        return self

    def limit(self, n):
        self.docs = self.docs[:n]
        return self

    async def to_list(self, length=None):
        return self.docs if length is None else self.docs[:length]

    def __aiter__(self):
        self._iter = iter(self.docs)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


def make_collection(docs=None):
    collection = MagicMock()
    collection.find = MagicMock(return_value=AsyncCursor(docs or []))
    collection.find_one = AsyncMock(return_value=None)
    collection.update_one = AsyncMock()
    collection.delete_one = AsyncMock()
    collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=0))
    collection.insert_one = AsyncMock()
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.bulk_write = AsyncMock(return_value=MagicMock(upserted_count=0, modified_count=0))
    return collection


class FakeDatabase:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = make_collection()
        return self.collections[name]


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def sample_rss():
    now = datetime.now(timezone.utc)
    dates = [format_datetime(now - timedelta(hours=h), usegmt=True) for h in (1, 2, 3, 4)]
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>ABC News - Google News</title>
    <item>
      <title>City opens new public library for children - ABC News</title>
      <link>https://abcnews.go.com/US/city-opens-library/story?id=1</link>
      <pubDate>{dates[0]}</pubDate>
      <description>&lt;a href="https://abcnews.go.com"&gt;A new library&lt;/a&gt; opened downtown.</description>
      <source url="https://abcnews.go.com">ABC News</source>
    </item>
    <item>
      <title>Home team wins championship game - ABC News</title>
      <link>https://abcnews.go.com/Sports/home-team/story?id=2</link>
      <pubDate>{dates[1]}</pubDate>
      <source url="https://abcnews.go.com">ABC News</source>
    </item>
    <item>
      <title>WATCH: Storm hits the coast - ABC News</title>
      <link>https://abcnews.go.com/US/video/storm-3</link>
      <pubDate>{dates[2]}</pubDate>
      <source url="https://abcnews.go.com">ABC News</source>
    </item>
    <item>
      <title>Scientists find new frog species - Other Paper</title>
      <link>https://otherpaper.example.com/frogs</link>
      <pubDate>{dates[3]}</pubDate>
      <source url="https://otherpaper.example.com">Other Paper</source>
    </item>
  </channel>
</rss>
"""


@pytest.fixture
def make_cursor():
    return AsyncCursor
