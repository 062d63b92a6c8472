# session_clock/news.py
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import feedparser
import pytz
import requests
from bs4 import BeautifulSoup
from loguru import logger

from session_clock.utils.errors import FeedError, MalformedResponse, NetworkUnavailable

ENTRIES_PER_FEED = 20


# ─────────────────────────────────────────────
# Utilities
# ─────────────────────────────────────────────
def clean_html(raw_html: str) -> str:
    """Strip HTML tags from text."""
    if not raw_html:
        return ""
    text = BeautifulSoup(raw_html, "html.parser").get_text(" ")
    return " ".join(text.split())


def fetch_feed(source: str, url: str, timeout: float = 10.0):
    """Download and parse one RSS/Atom feed."""
    try:
        res = requests.get(url, timeout=timeout, headers={"User-Agent": "session-clock/1.0"})
    except requests.RequestException as e:
        raise NetworkUnavailable(f"{source}: {e}", source=source)

    if res.status_code != 200:
        raise MalformedResponse(f"{source}: HTTP {res.status_code}", source=source)

    feed = feedparser.parse(res.content)
    if feed.bozo and not feed.entries:
        raise MalformedResponse(f"{source}: unparseable feed ({feed.get('bozo_exception')})", source=source)
    return feed


def _published_at(entry) -> Optional[datetime]:
    published = entry.get("published_parsed") or entry.get("updated_parsed")
    if not published:
        return None
    return datetime(*published[:6], tzinfo=pytz.utc)


def fetch_recent_news(feeds: Dict[str, str], keywords=None, hours: int = 12,
                      max_items: int = 8, timeout: float = 10.0, now: Optional[datetime] = None):
    """
    Fetch, clean and keyword-filter headlines from several feeds, newest first.

    A failing source is logged and skipped. If every source fails, MalformedResponse is
    raised when all of them returned garbage, NetworkUnavailable otherwise,
    so the caller can keep its previous headlines.
    """
    keywords = [k.lower() for k in (keywords or [])]
    now = now or datetime.now(pytz.utc)
    cutoff = now - timedelta(hours=hours)
    news_items = []
    errors: List[FeedError] = []

    for source, url in feeds.items():
        try:
            feed = fetch_feed(source, url, timeout=timeout)
        except FeedError as e:
            logger.warning(f"⚠️ Failed to fetch from {source}: {e}")
            errors.append(e)
            continue

        for entry in feed.entries[:ENTRIES_PER_FEED]:
            title = clean_html(entry.get("title", ""))
            if not title:
                continue
            summary = clean_html(entry.get("summary", ""))
            published = _published_at(entry)

            if published and published < cutoff:
                continue
            # Match any keyword
            if keywords and not any(k in f"{title} {summary}".lower() for k in keywords):
                continue

            news_items.append({
                "source": source,
                "title": title,
                "summary": summary,
                "link": entry.get("link", ""),
                "published": published,
            })

    if feeds and len(errors) == len(feeds):
        message = f"All {len(feeds)} news sources failed"
        if all(isinstance(e, MalformedResponse) for e in errors):
            raise MalformedResponse(message, source="news")
        raise NetworkUnavailable(message, source="news")

    oldest = datetime.min.replace(tzinfo=pytz.utc)
    news_items.sort(key=lambda n: n["published"] or oldest, reverse=True)
    logger.info(f"📰 Collected {len(news_items)} relevant news items.")
    return news_items[:max_items]


class NewsFeed:
    """
    Latest-value cache of headlines. Stale is acceptable: failures keep the old list.
    """
    def __init__(self, feeds: Dict[str, str], keywords=None, hours: int = 12,
                 max_items: int = 8, timeout: float = 10.0, fetcher=fetch_recent_news):
        self.feeds = dict(feeds)
        self.keywords = list(keywords or [])
        self.hours = hours
        self.max_items = max_items
        self.timeout = timeout
        self._fetcher = fetcher
        self.items: List[dict] = []
        self.last_error: Optional[FeedError] = None

    def refresh(self) -> bool:
        if not self.feeds:
            return False
        try:
            items = self._fetcher(self.feeds, keywords=self.keywords, hours=self.hours,
                                  max_items=self.max_items, timeout=self.timeout)
        except FeedError as e:
            self.last_error = e
            logger.warning(f"⚠️ News refresh failed [{e.category}]: {e}; keeping {len(self.items)} cached items.")
            return False

        self.items = items
        self.last_error = None
        return True
