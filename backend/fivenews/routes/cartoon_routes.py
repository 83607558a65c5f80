# fivenews/routes/cartoon_routes.py
import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from fivenews.controllers import cartoon_controller

logger = logging.getLogger(__name__)

router = APIRouter()


# -------------------- Pydantic Models --------------------
class CartoonizeRequest(BaseModel):
    headline: Optional[str] = Field(None, description="Headline to illustrate")


class CartoonizeBatchRequest(BaseModel):
    headlines: Optional[List[str]] = Field(None, description="Headlines to illustrate")


# -------------------- Routes --------------------
@router.post("/cartoonize")
async def cartoonize(request: CartoonizeRequest):
    """
    Get the cartoon for a headline, generating one when it is not cached

    Returns 429 with retryAfter when Replicate is rate limited and nothing is cached.
    """
    try:
        body, status_code = await cartoon_controller.cartoonize(request.headline)
        return JSONResponse(status_code=status_code, content=body)
    except Exception as e:
        logger.error(f"Error generating cartoon: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to generate cartoon image", "details": str(e)}
        )


@router.put("/cartoonize")
async def cartoonize_batch(request: CartoonizeBatchRequest):
    """Generate cartoons for a list of headlines"""
    if request.headlines is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Headlines array is required"
        )

    if not cartoon_controller.replicate_service.is_configured:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Replicate API key not configured"
        )

    try:
        results = await cartoon_controller.cartoonize_batch(request.headlines)
        return {"success": True, "results": results}
    except Exception as e:
        logger.error(f"Error in background generation: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process background generation"
        )


@router.post("/generate-cartoons")
async def generate_cartoons():
    """Warm cartoons for a few of the newest headlines"""
    try:
        return await cartoon_controller.generate_latest_cartoons()
    except Exception as e:
        logger.error(f"Error generating cartoons: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate cartoons"
        )
