# /backend/fivenews/ai_pipeline/feed_config.py
"""
RSS Feed Configuration for 5News
Google News searches plus the keyword lists that keep the feed kid-friendly
"""

# Configuration Constants
FETCH_INTERVAL_MINUTES = 30
MAX_HEADLINE_AGE_DAYS = 4
FEED_TIMEOUT_SECONDS = 15
DEFAULT_SOURCE_NAME = "ABC News"

RSS_FEEDS = [
    {
        "name": "Google News - ABC News (en-US)",
        "url": "https://news.google.com/rss/search?q=ABC+News&hl=en-US&gl=US&ceid=US:en&num=50",
    },
    {
        "name": "Google News - ABC News (en)",
        "url": "https://news.google.com/rss/search?q=ABC+News&hl=en&gl=US&ceid=US:en&num=50",
    },
]

# Google News serves an empty feed to obvious bots
USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
]

REQUEST_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

# Titles containing any of these are live blogs or video pages
EXCLUDE_PATTERNS = [
    "video",
    "live",
    "watch",
    "livestream",
    "live stream",
    "live coverage",
    "live updates",
    "breaking live",
    "latest news",
    "live breaking",
    "watch live",
]

BLOCKED_WORDS = ["rail"]

BLOCKED_SOURCE_NAMES = [
    "risbb.cc",
    "cult of mac",
    "bleeding cool",
    "smbc-comics.com",
    "sporting news",
]

BLOCKED_DOMAINS = [
    "risbb.cc",
    "cultofmac.com",
    "bleedingcool.com",
    "smbc-comics.com",
    "sportingnews.com",
]

SPORTS_KEYWORDS = [
    "nfl", "nba", "mlb", "nhl", "ncaa", "championship", "tournament", "playoff",
    "coach", "player", "team", "game", "match", "score", "win", "loss", "victory",
    "league", "season", "draft", "trade", "contract", "salary", "transfer",
]

FINANCE_KEYWORDS = [
    "stock market", "trading", "investment", "bitcoin", "crypto", "cryptocurrency",
    "ethereum", "nasdaq", "dow", "s&p", "federal reserve", "interest rate",
    "earnings", "revenue", "profit", "quarterly", "annual", "dividend",
    "portfolio", "fund", "etf", "mutual fund", "hedge fund", "wall street",
]

TV_SHOW_KEYWORDS = [
    "bachelor", "bachelorette", "survivor", "big brother", "american idol",
    "the voice", "dancing with the stars", "masked singer", "talent show", "game show",
]

# URL path segments that mark a sports section regardless of the title
SPORTS_URL_MARKERS = [
    "/sports/", "/sport/", "/nfl/", "/nba/", "/mlb/", "/nhl/", "/ncaa/",
    "/soccer/", "/football/", "/golf/", "/tennis/",
]
