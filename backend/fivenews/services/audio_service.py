# fivenews/services/audio_service.py
"""
Speech generation for explanations
ElevenLabs by default, Google Cloud TTS as an alternative provider
"""
import asyncio
import base64
import concurrent.futures
import json
import logging
import os
from typing import List, Optional, Tuple

import aiohttp
from google.auth.exceptions import DefaultCredentialsError
from google.cloud import texttospeech
from google.oauth2 import service_account

from fivenews.config import (
    ELEVENLABS_API_KEY,
    ELEVENLABS_VOICE_ID,
    GOOGLE_TTS_VOICE,
    TTS_PROVIDER,
)
from fivenews.monitor import thread_monitor

logger = logging.getLogger(__name__)

ELEVENLABS_TTS_URL = "https://api.elevenlabs.io/v1/text-to-speech/{voice_id}"
ELEVENLABS_MODEL_ID = "eleven_monolingual_v1"


class SpeechGenerationError(Exception):
    """The speech provider failed or is not configured"""


class SpeechPermissionError(SpeechGenerationError):
    """The provider rejected the API key (HTTP 401)"""


def to_data_url(audio: bytes) -> str:
    return "data:audio/mpeg;base64," + base64.b64encode(audio).decode("ascii")


class AudioService:
    """Service for generating MP3 audio from text"""

    def __init__(self, provider: str = TTS_PROVIDER):
        self.provider = (provider or "elevenlabs").lower()
        self._tts_client = None
        # Create thread pool for blocking Google TTS calls
        self.executor = concurrent.futures.ThreadPoolExecutor(max_workers=2)

    @property
    def is_configured(self) -> bool:
        if self.provider == "google":
            return True
        return bool(ELEVENLABS_API_KEY)

    @property
    def default_voice(self) -> str:
        return GOOGLE_TTS_VOICE if self.provider == "google" else ELEVENLABS_VOICE_ID

    @property
    def tts_client(self):
        """Google TTS client with inline credentials when provided"""
        if self._tts_client is None:
            raw = os.getenv("GOOGLE_APPLICATION_CREDENTIALS", "")
            if raw.strip().startswith("{"):
                creds_dict = json.loads(raw)
                credentials = service_account.Credentials.from_service_account_info(creds_dict)
                self._tts_client = texttospeech.TextToSpeechClient(credentials=credentials)
            else:
                try:
                    self._tts_client = texttospeech.TextToSpeechClient()
                except DefaultCredentialsError as e:
                    raise SpeechGenerationError(f"Google TTS credentials missing: {e}") from e
        return self._tts_client

    def chunk_text(self, text: str, max_chars: int = 4000) -> List[str]:
        """
        Split text into chunks for TTS processing

        Args:
            text: The text to split
            max_chars: Maximum characters per chunk

        Returns:
            List of text chunks
        """
        chunks = []
        while len(text) > max_chars:
            # Try to split at sentence end
            split_at = text.rfind(".", 0, max_chars)
            if split_at == -1:
                split_at = text.rfind(" ", 0, max_chars)
                if split_at == -1:
                    split_at = max_chars
            chunks.append(text[:split_at + 1].strip())
            text = text[split_at + 1:].strip()

        if text:
            chunks.append(text)

        return chunks

    async def _post_elevenlabs(self, text: str, voice_id: str) -> Tuple[int, bytes]:
        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": ELEVENLABS_API_KEY,
        }
        payload = {
            "text": text,
            "model_id": ELEVENLABS_MODEL_ID,
            "voice_settings": {"stability": 0.5, "similarity_boost": 0.5},
        }
        async with aiohttp.ClientSession() as session:
            async with session.post(
                ELEVENLABS_TTS_URL.format(voice_id=voice_id), json=payload, headers=headers
            ) as response:
                return response.status, await response.read()

    async def _synthesize_elevenlabs(self, text: str, voice_id: str) -> bytes:
        if not ELEVENLABS_API_KEY:
            raise SpeechGenerationError("ElevenLabs API key not configured")

        status, body = await self._post_elevenlabs(text, voice_id)
        if status == 401:
            raise SpeechPermissionError("API key missing permissions")
        if status != 200:
            raise SpeechGenerationError(f"ElevenLabs API error: {status}")
        return body

    def _synthesize_chunk(self, text_chunk: str, voice_name: str) -> bytes:
        thread_monitor.start_task()
        try:
            response = self.tts_client.synthesize_speech(
                input=texttospeech.SynthesisInput(text=text_chunk),
                voice=texttospeech.VoiceSelectionParams(language_code="en-US", name=voice_name),
                audio_config=texttospeech.AudioConfig(audio_encoding=texttospeech.AudioEncoding.MP3),
            )
            return response.audio_content
        finally:
            thread_monitor.end_task()

    async def _synthesize_google(self, text: str, voice_name: str) -> bytes:
        loop = asyncio.get_running_loop()
        full_audio = b""
        for chunk in self.chunk_text(text):
            # Run in thread pool
            full_audio += await loop.run_in_executor(
                self.executor, self._synthesize_chunk, chunk, voice_name
            )
        return full_audio

    async def synthesize(self, text: str, voice_id: Optional[str] = None) -> bytes:
        """
        Generate MP3 audio for text

        Raises:
            SpeechPermissionError: provider rejected the key
            SpeechGenerationError: any other provider failure
        """
        voice = voice_id or self.default_voice
        logger.info(f"Generating speech ({self.provider}, voice {voice}) for: {text[:100]}...")

        if self.provider == "google":
            return await self._synthesize_google(text, voice)
        return await self._synthesize_elevenlabs(text, voice)

    async def cleanup(self):
        """Clean up thread pool"""
        self.executor.shutdown(wait=True)
