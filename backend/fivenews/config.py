# fivenews/config.py
import os

from dotenv import load_dotenv

# On the host, environment variables are set directly; .env is for local runs
load_dotenv()

MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DB_NAME = os.getenv("MONGODB_DB_NAME", "fivenews")

# Explanations
EXPLAIN_PROVIDER = os.getenv("EXPLAIN_PROVIDER", "openai")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

# Cartoons
REPLICATE_API_TOKEN = os.getenv("REPLICATE_API_TOKEN")
REPLICATE_MIN_INTERVAL_SECONDS = int(os.getenv("REPLICATE_MIN_INTERVAL_SECONDS", "15"))

# Speech
TTS_PROVIDER = os.getenv("TTS_PROVIDER", "elevenlabs")
ELEVENLABS_API_KEY = os.getenv("ELEVENLABS_API_KEY")
ELEVENLABS_VOICE_ID = os.getenv("ELEVENLABS_VOICE_ID", "EXAVITQu4vr4xnSDxMaL")  # Sarah
GOOGLE_TTS_VOICE = os.getenv("GOOGLE_TTS_VOICE", "en-US-Chirp3-HD-Achernar")

# Durable cartoon storage
FIREBASE_SERVICE_ACCOUNT_KEY = os.getenv("FIREBASE_SERVICE_ACCOUNT_KEY")
FIREBASE_STORAGE_BUCKET = os.getenv("FIREBASE_STORAGE_BUCKET")

# Cron endpoints
CRON_SECRET_KEY = os.getenv("CRON_SECRET_KEY")

# Comma separated list of source names; "*" allows every source
ALLOWED_SOURCES = [
    s.strip()
    for s in os.getenv("ALLOWED_SOURCES", "ABC News").split(",")
    if s.strip() and s.strip() != "*"
]

# Background cartoon warming
CARTOON_WARM_LIMIT = int(os.getenv("CARTOON_WARM_LIMIT", "60"))
CARTOON_WARM_MAX_NEW = int(os.getenv("CARTOON_WARM_MAX_NEW", "12"))
CARTOON_WARM_MIN_DELAY_SECONDS = int(os.getenv("CARTOON_WARM_MIN_DELAY_SECONDS", "16"))
