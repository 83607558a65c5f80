# fivenews/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from fivenews.db import ensure_indexes
from fivenews.monitor import thread_monitor
from fivenews.routes import (
    cartoon_routes,
    cron_routes,
    media_routes,
    news_routes,
    speech_routes,
)

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="5News Backend")

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def create_indexes():
    try:
        await ensure_indexes()
    except PyMongoError as e:
        logger.error(f"Could not create MongoDB indexes: {e}")


@app.get("/")
def root():
    return {"message": "Welcome to 5News Backend!"}


@app.get("/health")
def health():
    return {"status": "ok", **thread_monitor.get_stats()}


# Routers
app.include_router(news_routes.router, prefix="/api", tags=["news"])
app.include_router(cartoon_routes.router, prefix="/api", tags=["cartoons"])
app.include_router(speech_routes.router, prefix="/api", tags=["speech"])
app.include_router(media_routes.router, prefix="/api", tags=["media"])
app.include_router(cron_routes.router, prefix="/api/cron", tags=["cron"])
