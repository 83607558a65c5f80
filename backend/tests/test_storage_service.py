import hashlib

import pytest
from unittest.mock import patch, AsyncMock, MagicMock

from fivenews.services.storage_service import (
    CACHE_CONTROL,
    StorageNotConfiguredError,
    StorageService,
    storage_path_for,
)

REPLICATE_URL = "https://replicate.delivery/out.png"


class FakeResponse:
    def __init__(self, body, content_type):
        self.body = body
        self.headers = {"Content-Type": content_type}

    def raise_for_status(self):
        pass

    async def read(self):
        return self.body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.requests = []

    def get(self, url, headers=None):
        self.requests.append((url, headers))
        return self.response

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class TestStoragePath:
    def test_jpeg_content_type_uses_jpg(self):
        digest = hashlib.sha1("Storm hits coast".encode("utf-8")).hexdigest()

        assert storage_path_for("Storm hits coast", "image/jpeg") == f"cartoons/{digest}.jpg"

    def test_other_content_types_use_png(self):
        assert storage_path_for("Storm hits coast", "image/webp").endswith(".png")
        assert storage_path_for("Storm hits coast", None).endswith(".png")

    def test_same_key_same_path(self):
        assert storage_path_for("Storm hits coast", "image/png") == storage_path_for("Storm hits coast", "image/png")
        assert storage_path_for("Storm hits coast", "image/png") != storage_path_for("Zoo panda", "image/png")


class TestStorageService:
    @pytest.fixture(autouse=True)
    def setup_service(self):
        self.service = StorageService(bucket_name="fivenews-test.appspot.com")

    @pytest.mark.asyncio
    async def test_not_configured(self):
        service = StorageService(bucket_name="")

        assert service.is_configured is False
        with pytest.raises(StorageNotConfiguredError):
            await service.store_cartoon("Storm hits coast", REPLICATE_URL)

    @pytest.mark.asyncio
    async def test_download_image_sends_bot_user_agent(self):
        session = FakeSession(FakeResponse(b"jpeg-bytes", "image/jpeg"))
        with patch("fivenews.services.storage_service.aiohttp.ClientSession", MagicMock(return_value=session)):
            data, content_type = await self.service.download_image(REPLICATE_URL)

        assert (data, content_type) == (b"jpeg-bytes", "image/jpeg")
        url, headers = session.requests[0]
        assert url == REPLICATE_URL
        assert headers["User-Agent"] == "5news-bot/1.0"

    @pytest.mark.asyncio
    async def test_store_cartoon_uploads_to_hashed_path(self):
        download = AsyncMock(return_value=(b"jpeg-bytes", "image/jpeg; charset=binary"))
        upload = MagicMock(return_value="https://storage.googleapis.com/bucket/cartoons/abc.jpg")

        with patch.object(self.service, "download_image", download), \
                patch.object(self.service, "_upload", upload):
            url = await self.service.store_cartoon("Storm hits coast", REPLICATE_URL)

        assert url == "https://storage.googleapis.com/bucket/cartoons/abc.jpg"
        download.assert_awaited_once_with(REPLICATE_URL)
        path, data, content_type = upload.call_args.args
        assert path == storage_path_for("Storm hits coast", "image/jpeg")
        assert data == b"jpeg-bytes"
        assert content_type == "image/jpeg"

    @pytest.mark.asyncio
    async def test_store_cartoon_defaults_to_png(self):
        download = AsyncMock(return_value=(b"bytes", "application/octet-stream"))
        upload = MagicMock(return_value="https://storage.googleapis.com/bucket/cartoons/abc.png")

        with patch.object(self.service, "download_image", download), \
                patch.object(self.service, "_upload", upload):
            await self.service.store_cartoon("Storm hits coast", REPLICATE_URL)

        path, _, content_type = upload.call_args.args
        assert path.endswith(".png")
        assert content_type == "image/png"

    def test_upload_sets_cache_control_and_makes_public(self):
        blob = MagicMock(public_url="https://storage.googleapis.com/bucket/cartoons/abc.png")
        bucket = MagicMock()
        bucket.blob.return_value = blob
        self.service._bucket = bucket

        url = self.service._upload("cartoons/abc.png", b"bytes", "image/png")

        assert url == blob.public_url
        bucket.blob.assert_called_once_with("cartoons/abc.png")
        assert blob.cache_control == CACHE_CONTROL
        blob.upload_from_string.assert_called_once_with(b"bytes", content_type="image/png")
        blob.make_public.assert_called_once()
