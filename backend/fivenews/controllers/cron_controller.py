# fivenews/controllers/cron_controller.py
"""
Jobs triggered by an external cron service
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fivenews.ai_pipeline.cache_maintenance import CacheMaintenanceService
from fivenews.ai_pipeline.cartoon_warmer import CartoonWarmer
from fivenews.ai_pipeline.ingestion import HeadlineIngestionService
from fivenews.db import db

logger = logging.getLogger(__name__)

ingestion_service = HeadlineIngestionService(db)
cartoon_warmer = CartoonWarmer(db)
maintenance_service = CacheMaintenanceService(db)


async def fetch_headlines() -> Optional[Dict[str, Any]]:
    """Run one ingestion, returning None when the feeds gave nothing"""
    logger.info("Starting scheduled headline fetch...")
    stats = await ingestion_service.run_ingestion()

    if not stats["fetched"]:
        logger.warning("No headlines fetched, skipping update")
        return None

    logger.info(f"Successfully updated {stats['fetched']} headlines")
    return {
        "success": True,
        "headlinesCount": stats["fetched"],
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


async def generate_cartoons() -> Dict[str, Any]:
    stats = await cartoon_warmer.warm_cartoons()
    message = "No headlines found" if not stats["unique_keys"] else "Cartoons generated successfully"
    return {"success": True, "message": message, "stats": stats}


async def cleanup_caches() -> Dict[str, Any]:
    stats = await maintenance_service.cleanup_all_caches()
    return {
        "success": True,
        "cartoonsDeleted": stats["cartoons_deleted"],
        "newsEntriesDeleted": stats["news_entries_deleted"],
        "ttsEntriesDeleted": stats["tts_entries_deleted"],
        "timestamp": stats["end_time"].isoformat(),
    }
