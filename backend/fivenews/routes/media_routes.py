# fivenews/routes/media_routes.py
import asyncio
import logging
from typing import Optional

import aiohttp
from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import JSONResponse, Response

from fivenews.controllers.media_controller import estimate_usage, fetch_image

logger = logging.getLogger(__name__)

router = APIRouter()

PROXY_HEADERS = {
    "Cache-Control": "public, max-age=31536000",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET",
    "Access-Control-Allow-Headers": "Content-Type",
}


@router.get("/proxy-image")
async def proxy_image(url: Optional[str] = Query(None, description="Image URL to proxy")):
    """Serve a remote image from this origin so the browser can cache it"""
    if not url:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Image URL is required"}
        )

    try:
        upstream_status, body, content_type = await fetch_image(url)
    except asyncio.TimeoutError:
        return JSONResponse(
            status_code=status.HTTP_408_REQUEST_TIMEOUT,
            content={"error": "Image fetch timeout"}
        )
    except aiohttp.ClientError as e:
        logger.error(f"Error proxying image: {str(e)}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to proxy image"}
        )

    if upstream_status >= 400:
        logger.error(f"Failed to fetch image - Status: {upstream_status}, URL: {url}")
        return JSONResponse(
            status_code=upstream_status,
            content={"error": f"Failed to fetch image: {upstream_status}"}
        )

    return Response(content=body, media_type=content_type, headers=PROXY_HEADERS)


@router.get("/usage")
async def usage():
    """Estimated daily API usage"""
    try:
        return estimate_usage()
    except Exception as e:
        logger.error(f"Error getting usage info: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get usage info"
        )
