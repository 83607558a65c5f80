# fivenews/routes/cron_routes.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from fivenews.controllers import cron_controller
from fivenews.middleware.cron_auth import verify_cron_secret

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_cron_secret)])


@router.get("/fetch-headlines")
async def fetch_headlines():
    """
    Fetch RSS feeds and store the filtered headlines

    Called by the cron service every 30 minutes.
    Requires Authorization: Bearer <CRON_SECRET_KEY>.
    """
    try:
        result = await cron_controller.fetch_headlines()
    except Exception as e:
        logger.error(f"Error in scheduled headline fetch: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch headlines"
        )

    if result is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No headlines fetched"
        )
    return result


@router.get("/generate-cartoons")
async def generate_cartoons():
    """Warm cartoons for the newest headlines"""
    try:
        return await cron_controller.generate_cartoons()
    except Exception as e:
        logger.error(f"Cron job error: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Cron job failed"
        )


@router.post("/cleanup-cache")
async def cleanup_cache():
    """Purge expired cartoon, news and TTS cache entries"""
    try:
        return await cron_controller.cleanup_caches()
    except Exception as e:
        logger.error(f"Cache cleanup error: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Cache cleanup failed"
        )
