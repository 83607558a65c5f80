# fivenews/controllers/speech_controller.py
"""
Explanations and text-to-speech for the feed's "explain like I'm 5" panel
"""
import logging
from typing import Any, Dict, Tuple

from fivenews.db import db
from fivenews.services.audio_service import (
    AudioService,
    SpeechGenerationError,
    SpeechPermissionError,
    to_data_url,
)
from fivenews.services.explain_service import ExplainService
from fivenews.services.tts_cache import TTSCacheService

logger = logging.getLogger(__name__)

explain_service = ExplainService()
audio_service = AudioService()
tts_cache = TTSCacheService(db)


async def explain_story(title: str, content: str) -> Dict[str, str]:
    """Raises ExplainError when the model is unavailable"""
    explanation = await explain_service.explain(title, content)
    return {"explanation": explanation}


async def text_to_speech(text: str) -> Tuple[Dict[str, Any], int]:
    """
    Cached or freshly generated speech as a data URL

    Returns:
        Tuple of (response body, HTTP status)
    """
    if not audio_service.is_configured:
        return {"error": "Text-to-speech API key not configured"}, 500

    voice_id = audio_service.default_voice
    cached = await tts_cache.get_cached_tts(text, voice_id)
    if cached:
        logger.info("Using cached TTS audio")
        return {"audioUrl": cached, "cached": True}, 200

    try:
        audio = await audio_service.synthesize(text, voice_id)
    except SpeechPermissionError:
        logger.error("TTS provider rejected the API key (401)")
        return {"error": "API key missing permissions", "fallback": True}, 401
    except SpeechGenerationError as e:
        logger.error(f"Error generating speech: {e}")
        return {"error": "Failed to generate speech"}, 500

    audio_url = to_data_url(audio)
    await tts_cache.set_cached_tts(text, voice_id, audio_url)
    logger.info("Successfully generated speech audio")
    return {"audioUrl": audio_url, "cached": False}, 200
