# fivenews/routes/news_routes.py
import logging

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import JSONResponse

from fivenews.controllers.news_controller import NewsUnavailableError, get_news
from fivenews.models.news import NewsResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/news", response_model=NewsResponse)
async def list_news(
    page: int = Query(1, ge=1, description="1-based page number"),
    refresh: bool = Query(False, description="Skip stored headlines and fetch live")
):
    """
    Get kid-friendly headlines, 20 per page

    Served from the headlines collection, then the global news cache,
    then a live RSS fetch.
    """
    try:
        return await get_news(page=page, refresh=refresh)
    except NewsUnavailableError as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": str(e), "articles": [], "totalResults": 0, "hasMore": False}
        )
    except Exception as e:
        logger.error(f"Error fetching news: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch news"
        )
