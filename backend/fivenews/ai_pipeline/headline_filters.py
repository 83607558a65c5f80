# /backend/fivenews/ai_pipeline/headline_filters.py
"""
Headline curation heuristics
Pure functions shared by ingestion, the news endpoint and the cartoon cache
"""
import re
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from fivenews.ai_pipeline.feed_config import (
    BLOCKED_DOMAINS,
    BLOCKED_SOURCE_NAMES,
    BLOCKED_WORDS,
    EXCLUDE_PATTERNS,
    FINANCE_KEYWORDS,
    MAX_HEADLINE_AGE_DAYS,
    SPORTS_KEYWORDS,
    SPORTS_URL_MARKERS,
    TV_SHOW_KEYWORDS,
)

PARENTHETICAL_RE = re.compile(r"\s*\([^)]*\)")
SOURCE_SUFFIX_RE = re.compile(r"\s+-\s+((?:(?!\s-\s).)+)$")

# Date fragments commonly found in article URLs
URL_DATE_PATTERNS = [
    re.compile(r"/((?:19|20)\d{2})/(\d{1,2})/(\d{1,2})(?:/|$)"),
    re.compile(r"/((?:19|20)\d{2})-(\d{2})-(\d{2})(?!\d)"),
    re.compile(r"(?<!\d)((?:19|20)\d{2})(\d{2})(\d{2})(?!\d)"),
]


def _keyword_pattern(keywords: Iterable[str]) -> re.Pattern:
    """Whole-word match that also accepts plural and third-person forms (players, coaches, wins)"""
    alternatives = "|".join(re.escape(k) for k in sorted(keywords, key=len, reverse=True))
    return re.compile(rf"(?<!\w)(?:{alternatives})(?:e?s)?(?!\w)", re.IGNORECASE)


SPORTS_RE = _keyword_pattern(SPORTS_KEYWORDS)
EXCLUDED_KEYWORDS_RE = _keyword_pattern(SPORTS_KEYWORDS + FINANCE_KEYWORDS + TV_SHOW_KEYWORDS)


def strip_parentheticals(title: str) -> str:
    """Remove '(...)' groups, e.g. '(VIDEO)' or '(Updated)'"""
    return PARENTHETICAL_RE.sub("", title or "").strip()


def strip_source_suffix(title: str) -> str:
    """Google News titles end with ' - Source Name'"""
    return SOURCE_SUFFIX_RE.sub("", title or "").strip()


def split_source_suffix(title: str) -> Optional[str]:
    """Return the ' - Source Name' suffix of a Google News title, if any"""
    match = SOURCE_SUFFIX_RE.search(title or "")
    if not match:
        return None
    return match.group(1).strip() or None


def clean_title(title: str) -> str:
    """Title as displayed in the feed"""
    return strip_source_suffix(strip_parentheticals(title))


def clean_for_cartoon(title) -> str:
    """
    Normalize a headline into its cartoon cache key.

    Every read and write of the cartoon cache goes through this function,
    so two spellings of the same headline share one image.
    """
    text = str(title) if title is not None else ""
    text = re.sub(r"\s*\([^)]*\)\s*", " ", text)
    text = SOURCE_SUFFIX_RE.sub("", text)
    text = re.sub(r"[\"']", "", text)
    text = re.sub(r"[^\w\s]", " ", text, flags=re.ASCII)
    text = re.sub(r"\s+", " ", text)
    return text.strip()


def normalize_title(title: str) -> str:
    """Dedup key for titles"""
    return re.sub(r"\s+", " ", (title or "").lower()).strip()


def should_include_headline(title: str) -> bool:
    """Reject live blogs and video pages"""
    title_lower = (title or "").lower()
    return not any(pattern in title_lower for pattern in EXCLUDE_PATTERNS)


def is_single_word(title: str) -> bool:
    return len(strip_parentheticals(title).split()) <= 1


def contains_blocked_word(title: str) -> bool:
    title_lower = strip_parentheticals(title).lower()
    return any(word in title_lower for word in BLOCKED_WORDS)


def is_blocked_source(source_name: Optional[str], *urls: Optional[str]) -> bool:
    """Match blocked source names or any blocked domain in the given URLs"""
    name = (source_name or "").lower()
    if any(blocked in name for blocked in BLOCKED_SOURCE_NAMES):
        return True
    for url in urls:
        url_lower = (url or "").lower()
        if any(domain in url_lower for domain in BLOCKED_DOMAINS):
            return True
    return False


def is_whitelisted_source(source_name: Optional[str], whitelist: Optional[List[str]]) -> bool:
    """An empty whitelist allows every source"""
    if not whitelist:
        return True
    name = (source_name or "").strip().lower()
    return any(name == allowed.strip().lower() for allowed in whitelist)


def has_excluded_keyword(*texts: Optional[str]) -> bool:
    """Sports, finance or TV-show keyword anywhere in the texts"""
    return any(EXCLUDED_KEYWORDS_RE.search(text) for text in texts if text)


def is_sports_story(title: Optional[str], url: Optional[str] = None) -> bool:
    url_lower = (url or "").lower()
    if any(marker in url_lower for marker in SPORTS_URL_MARKERS):
        return True
    return bool(title and SPORTS_RE.search(title))


def extract_date_from_url(url: Optional[str]) -> Optional[datetime]:
    """
    Find a publication date embedded in an article URL.

    Recognises /2024/05/12/, /2024-05-12 and 20240512 fragments.
    Impossible dates (month 13, Feb 30) are ignored.
    """
    if not url:
        return None

    for pattern in URL_DATE_PATTERNS:
        for match in pattern.finditer(url):
            year, month, day = (int(part) for part in match.groups())
            try:
                return datetime(year, month, day, tzinfo=timezone.utc)
            except ValueError:
                continue
    return None


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_recent(
    published_at: datetime,
    now: Optional[datetime] = None,
    max_age_days: int = MAX_HEADLINE_AGE_DAYS,
) -> bool:
    now = as_utc(now) if now else datetime.now(timezone.utc)
    return as_utc(published_at) > now - timedelta(days=max_age_days)


def dedupe_headlines(headlines: List[Dict]) -> List[Dict]:
    """Keep the first headline per normalized title or URL"""
    seen_titles = set()
    seen_urls = set()
    unique = []

    for headline in headlines:
        title_key = normalize_title(headline.get("title", ""))
        url_key = (headline.get("url") or "").strip()
        if title_key in seen_titles or (url_key and url_key in seen_urls):
            continue
        seen_titles.add(title_key)
        if url_key:
            seen_urls.add(url_key)
        unique.append(headline)

    return unique


def rejection_reason(headline: Dict, whitelist: Optional[List[str]] = None) -> Optional[str]:
    """Return why a headline is filtered out, or None when it passes"""
    title = headline.get("title", "")
    url = headline.get("url", "")
    source = headline.get("source", "")

    if not title or not url:
        return "missing title or url"
    if is_single_word(title):
        return "single word"
    if contains_blocked_word(title):
        return "blocked word"
    if not should_include_headline(title):
        return "live or video"
    if is_blocked_source(source, url, headline.get("source_url")):
        return "blocked source"
    if not is_whitelisted_source(source, whitelist):
        return f"source not whitelisted ({source})"
    if is_sports_story(title, url):
        return "sports story"
    if has_excluded_keyword(title, headline.get("description")):
        return "excluded keyword"
    return None


def passes_filters(headline: Dict, whitelist: Optional[List[str]] = None) -> bool:
    return rejection_reason(headline, whitelist) is None
