# fivenews/services/storage_service.py
"""
Storage service for durable cartoon images
Replicate delivery URLs expire, so generated images are copied to Firebase Storage
"""
import asyncio
import hashlib
import json
import logging
import os
from typing import Optional, Tuple

import aiohttp
import firebase_admin
from firebase_admin import credentials, storage

from fivenews.config import FIREBASE_SERVICE_ACCOUNT_KEY, FIREBASE_STORAGE_BUCKET
from fivenews.monitor import thread_monitor

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT_SECONDS = 15
DOWNLOAD_USER_AGENT = "5news-bot/1.0"
CACHE_CONTROL = "public, max-age=31536000"


class StorageNotConfiguredError(Exception):
    """Firebase Storage bucket or credentials are missing"""


def _init_firebase(bucket_name: str) -> None:
    if firebase_admin._apps:
        return

    options = {"storageBucket": bucket_name}
    key = FIREBASE_SERVICE_ACCOUNT_KEY
    if key and os.path.exists(key):
        firebase_admin.initialize_app(credentials.Certificate(key), options)
    elif key:
        firebase_admin.initialize_app(credentials.Certificate(json.loads(key)), options)
    else:
        firebase_admin.initialize_app(options=options)
    logger.info("Firebase initialized")


def is_jpeg(content_type: str) -> bool:
    content_type = (content_type or "").lower()
    return "jpeg" in content_type or "jpg" in content_type


def storage_path_for(key: str, content_type: str) -> str:
    """cartoons/<sha1 of the cartoon key>.<ext>"""
    ext = "jpg" if is_jpeg(content_type) else "png"
    digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
    return f"cartoons/{digest}.{ext}"


class StorageService:
    """Service for managing cartoon uploads to Firebase Storage"""

    def __init__(self, bucket_name: Optional[str] = FIREBASE_STORAGE_BUCKET):
        """
        Initialize the storage service

        Args:
            bucket_name: Firebase Storage bucket name, None disables storage
        """
        self.bucket_name = bucket_name
        self._bucket = None

    @property
    def is_configured(self) -> bool:
        return bool(self.bucket_name)

    @property
    def bucket(self):
        if not self.is_configured:
            raise StorageNotConfiguredError("FIREBASE_STORAGE_BUCKET is not set")
        if self._bucket is None:
            _init_firebase(self.bucket_name)
            self._bucket = storage.bucket(self.bucket_name)
        return self._bucket

    async def download_image(self, image_url: str) -> Tuple[bytes, str]:
        """
        Download a generated image

        Returns:
            Tuple of (image_bytes, content_type)
        """
        timeout = aiohttp.ClientTimeout(total=DOWNLOAD_TIMEOUT_SECONDS)
        headers = {"User-Agent": DOWNLOAD_USER_AGENT}
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(image_url, headers=headers) as response:
                response.raise_for_status()
                content_type = response.headers.get("Content-Type", "image/png")
                return await response.read(), content_type

    def _upload(self, path: str, data: bytes, content_type: str) -> str:
        thread_monitor.start_task()
        try:
            blob = self.bucket.blob(path)
            blob.cache_control = CACHE_CONTROL
            blob.upload_from_string(data, content_type=content_type)
            blob.make_public()
            return blob.public_url
        finally:
            thread_monitor.end_task()

    async def store_cartoon(self, key: str, image_url: str) -> str:
        """
        Copy a generated cartoon into the bucket

        Args:
            key: The cartoon key (cleaned headline)
            image_url: Temporary Replicate delivery URL

        Returns:
            Public URL of the stored image
        """
        if not self.is_configured:
            raise StorageNotConfiguredError("FIREBASE_STORAGE_BUCKET is not set")

        data, content_type = await self.download_image(image_url)
        path = storage_path_for(key, content_type)
        content_type = "image/jpeg" if is_jpeg(content_type) else "image/png"

        loop = asyncio.get_running_loop()
        public_url = await loop.run_in_executor(None, self._upload, path, data, content_type)
        logger.info(f"Stored cartoon at {path}")
        return public_url
