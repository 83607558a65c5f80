# fivenews/db.py

import certifi
from motor.motor_asyncio import AsyncIOMotorClient
from fivenews.config import MONGODB_URI, MONGODB_DB_NAME

client_options = {
    "serverSelectionTimeoutMS": 10000,
    "connectTimeoutMS": 20000,
    "tz_aware": True,
}
# Hosted clusters need certifi's CA bundle for SSL verification
if MONGODB_URI.startswith("mongodb+srv"):
    client_options["tlsCAFile"] = certifi.where()

client = AsyncIOMotorClient(MONGODB_URI, **client_options)

db = client[MONGODB_DB_NAME]


async def ensure_indexes():
    """Create the unique keys the caches rely on"""
    await db["headlines"].create_index("url", unique=True)
    await db["headlines"].create_index("published_at")
    await db["news_cache"].create_index("created_at")
    await db["cartoon_cache"].create_index("headline", unique=True)
    await db["cartoon_cache"].create_index("created_at")
    await db["tts_cache"].create_index([("text_hash", 1), ("voice_id", 1)], unique=True)
    await db["tts_cache"].create_index("created_at")
