import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch, AsyncMock, MagicMock

from pymongo.errors import ServerSelectionTimeoutError

from fivenews.controllers import news_controller, speech_controller
from fivenews.controllers.news_controller import NewsUnavailableError, headline_to_article
from fivenews.services.audio_service import SpeechGenerationError, SpeechPermissionError


def make_headline(n):
    return {
        "id": f"headline-{n}",
        "title": f"Story number {n} about the town",
        "description": f"Description {n}",
        "url": f"https://abcnews.go.com/US/story-{n}",
        "source": "ABC News",
        "published_at": datetime.now(timezone.utc) - timedelta(minutes=n),
    }


class TestNewsController:
    @pytest.fixture(autouse=True)
    def setup_controller(self, make_cursor):
        self.collection = MagicMock()
        self.collection.find.return_value = make_cursor([make_headline(n) for n in range(25)])
        self.news_cache = MagicMock()
        self.news_cache.get_cached_news = AsyncMock(return_value=None)
        self.news_cache.set_cached_news = AsyncMock()
        self.cartoon_cache = MagicMock()
        self.cartoon_cache.get_cached_cartoons = AsyncMock(return_value={})
        self.ingestion = MagicMock()
        self.ingestion.fetch_fresh_headlines = AsyncMock(return_value=[])

        with patch.object(news_controller, "headlines_collection", self.collection), \
                patch.object(news_controller, "news_cache", self.news_cache), \
                patch.object(news_controller, "cartoon_cache", self.cartoon_cache), \
                patch.object(news_controller, "ingestion_service", self.ingestion):
            yield

    def test_headline_to_article(self):
        article = headline_to_article(make_headline(1))

        assert article["source"] == {"id": None, "name": "ABC News"}
        assert article["content"] == "Description 1"
        assert article["publishedAt"].endswith("+00:00")
        assert article["cartoonUrl"] is None

    @pytest.mark.asyncio
    async def test_pages_stored_headlines(self):
        first = await news_controller.get_news(page=1)
        second = await news_controller.get_news(page=2)

        assert first["source"] == "headlines"
        assert len(first["articles"]) == 20
        assert first["totalResults"] == 25
        assert first["hasMore"] is True
        assert len(second["articles"]) == 5
        assert second["hasMore"] is False

    @pytest.mark.asyncio
    async def test_attaches_cached_cartoons(self):
        self.cartoon_cache.get_cached_cartoons.return_value = {
            "Story number 0 about the town": "https://img/0.png"
        }

        news = await news_controller.get_news()

        assert news["articles"][0]["cartoonUrl"] == "https://img/0.png"
        assert news["articles"][1]["cartoonUrl"] is None

    @pytest.mark.asyncio
    async def test_falls_back_to_news_cache(self, make_cursor):
        self.collection.find.return_value = make_cursor([])
        self.news_cache.get_cached_news.return_value = [headline_to_article(make_headline(1))]

        news = await news_controller.get_news()

        assert news["source"] == "cache"
        assert news["totalResults"] == 1

    @pytest.mark.asyncio
    async def test_store_error_falls_back(self):
        self.collection.find.side_effect = ServerSelectionTimeoutError("down")
        self.news_cache.get_cached_news.return_value = [headline_to_article(make_headline(1))]

        news = await news_controller.get_news()

        assert news["source"] == "cache"

    @pytest.mark.asyncio
    async def test_refresh_fetches_live_and_caches(self):
        self.ingestion.fetch_fresh_headlines.return_value = [make_headline(3)]

        news = await news_controller.get_news(refresh=True)

        assert news["source"] == "live"
        self.collection.find.assert_not_called()
        self.news_cache.set_cached_news.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_nothing_available(self, make_cursor):
        self.collection.find.return_value = make_cursor([])

        with pytest.raises(NewsUnavailableError):
            await news_controller.get_news()


class TestSpeechController:
    @pytest.fixture(autouse=True)
    def setup_controller(self):
        self.audio = MagicMock()
        self.audio.is_configured = True
        self.audio.default_voice = "voice-1"
        self.audio.synthesize = AsyncMock(return_value=b"mp3")
        self.cache = MagicMock()
        self.cache.get_cached_tts = AsyncMock(return_value=None)
        self.cache.set_cached_tts = AsyncMock()

        with patch.object(speech_controller, "audio_service", self.audio), \
                patch.object(speech_controller, "tts_cache", self.cache):
            yield

    @pytest.mark.asyncio
    async def test_generates_and_caches(self):
        body, status = await speech_controller.text_to_speech("Hello")

        assert status == 200
        assert body["cached"] is False
        assert body["audioUrl"] == "data:audio/mpeg;base64,bXAz"
        self.cache.set_cached_tts.assert_awaited_once_with("Hello", "voice-1", body["audioUrl"])

    @pytest.mark.asyncio
    async def test_cache_hit(self):
        self.cache.get_cached_tts.return_value = "data:audio/mpeg;base64,AAA"

        body, status = await speech_controller.text_to_speech("Hello")

        assert body == {"audioUrl": "data:audio/mpeg;base64,AAA", "cached": True}
        self.audio.synthesize.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_configured(self):
        self.audio.is_configured = False

        body, status = await speech_controller.text_to_speech("Hello")

        assert status == 500

    @pytest.mark.asyncio
    async def test_permission_error(self):
        self.audio.synthesize.side_effect = SpeechPermissionError("401")

        body, status = await speech_controller.text_to_speech("Hello")

        assert status == 401
        assert body["fallback"] is True

    @pytest.mark.asyncio
    async def test_generation_error(self):
        self.audio.synthesize.side_effect = SpeechGenerationError("500")

        body, status = await speech_controller.text_to_speech("Hello")

        assert status == 500
        self.cache.set_cached_tts.assert_not_awaited()
