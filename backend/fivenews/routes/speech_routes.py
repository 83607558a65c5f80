# fivenews/routes/speech_routes.py
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from fivenews.controllers.speech_controller import explain_story, text_to_speech
from fivenews.services.explain_service import ExplainError

logger = logging.getLogger(__name__)

router = APIRouter()


class ExplainRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None


class TTSRequest(BaseModel):
    text: Optional[str] = None


@router.post("/explain")
async def explain(request: ExplainRequest):
    """Explain a story like the reader is 5 years old"""
    if not request.title or not request.content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Title and content are required"
        )

    try:
        return await explain_story(request.title, request.content)
    except ExplainError as e:
        logger.error(f"Error generating explanation: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate explanation"
        )


@router.post("/tts")
async def tts(request: TTSRequest):
    """Speak text aloud, returned as a data:audio/mpeg URL"""
    if not request.text:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Text is required"
        )

    try:
        body, status_code = await text_to_speech(request.text)
        return JSONResponse(status_code=status_code, content=body)
    except Exception as e:
        logger.error(f"Error generating speech: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate speech"
        )
