# session_clock/utils/config.py
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv
from loguru import logger

from session_clock.utils.errors import ConfigError

# =============================
# ✅ Base & Load environment
# =============================
BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_PATH = BASE_DIR / ".env"

if ENV_PATH.exists():
    load_dotenv(dotenv_path=ENV_PATH, override=False)
    logger.debug(f"Loaded environment from {ENV_PATH}")

# Logging is configured before settings are parsed, so these stay raw strings
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE", "")

DEFAULT_NEWS_FEEDS = (
    "ForexLive=https://www.forexlive.com/feed/news,"
    "Investing.com=https://www.investing.com/rss/news_1.rss,"
    "FXStreet=https://www.fxstreet.com/rss/news"
)
DEFAULT_NEWS_KEYWORDS = "forex,fx,usd,eur,gbp,jpy,aud,fed,ecb,boj,rba,cpi,rates"


def _env_number(name: str, default, cast=float, minimum=None):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")
    if not math.isfinite(value):
        raise ConfigError(f"{name} must be a finite number, got {raw!r}")
    if minimum is not None and value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


def _env_optional_hour(name: str):
    value = _env_number(name, None, cast=int)
    if value is not None and not 0 <= value < 24:
        raise ConfigError(f"{name} must be an hour in [0, 24), got {value}")
    return value


def parse_news_feeds(raw: str) -> dict:
    """Parse `name=url,name=url` into an ordered mapping."""
    feeds = {}
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        name, sep, url = chunk.partition("=")
        if not sep or not name.strip() or not url.strip():
            raise ConfigError(f"NEWS_FEEDS entry must look like name=url, got {chunk!r}")
        feeds[name.strip()] = url.strip()
    return feeds


@dataclass(frozen=True)
class Settings:
    # Clock & Sessions
    local_timezone: str
    sessions_file: str
    volatility_start: Optional[int]
    volatility_end: Optional[int]
    # Timers (seconds)
    tick_seconds: float
    news_refresh_seconds: float
    rates_refresh_seconds: float
    # External feeds
    http_timeout: float
    rates_api_url: str
    news_feeds: Dict[str, str]
    news_keywords: List[str]
    news_lookback_hours: int
    news_max_items: int
    # Output
    html_output: str


def load_settings() -> Settings:
    """Read and type-check the environment. Raises ConfigError on any bad value."""
    return Settings(
        local_timezone=os.getenv("LOCAL_TIMEZONE", "UTC"),
        sessions_file=os.getenv("SESSIONS_FILE", ""),
        volatility_start=_env_optional_hour("VOLATILITY_START"),
        volatility_end=_env_optional_hour("VOLATILITY_END"),
        tick_seconds=_env_number("TICK_SECONDS", 1.0, minimum=0.1),
        news_refresh_seconds=_env_number("NEWS_REFRESH_SECONDS", 300.0, minimum=1),
        rates_refresh_seconds=_env_number("RATES_REFRESH_SECONDS", 60.0, minimum=1),
        http_timeout=_env_number("HTTP_TIMEOUT", 10.0, minimum=0.1),
        rates_api_url=os.getenv("RATES_API_URL", "https://open.er-api.com/v6/latest/USD"),
        news_feeds=parse_news_feeds(os.getenv("NEWS_FEEDS", DEFAULT_NEWS_FEEDS)),
        news_keywords=[k.strip().lower() for k in os.getenv(
            "NEWS_KEYWORDS", DEFAULT_NEWS_KEYWORDS).split(",") if k.strip()],
        news_lookback_hours=_env_number("NEWS_LOOKBACK_HOURS", 12, cast=int, minimum=1),
        news_max_items=_env_number("NEWS_MAX_ITEMS", 8, cast=int, minimum=1),
        html_output=os.getenv("HTML_OUTPUT", ""),
    )


# =============================
# ✅ Validation
# =============================
def validate_env(settings: Settings):
    if (settings.volatility_start is None) != (settings.volatility_end is None):
        raise ConfigError("VOLATILITY_START and VOLATILITY_END must be set together")
    if not settings.news_feeds:
        logger.warning("⚠️ NEWS_FEEDS is empty. Headlines panel will stay blank.")
    if not settings.rates_api_url:
        logger.warning("⚠️ RATES_API_URL is empty. Pair prices will show placeholders.")
    if settings.sessions_file:
        logger.info(f"🗂️ Session table will be loaded from {settings.sessions_file}")
    logger.success("✅ Environment validated successfully.")


__all__ = [
    "BASE_DIR", "ENV_PATH", "LOG_LEVEL", "LOG_FILE",
    "Settings", "load_settings", "parse_news_feeds", "validate_env",
]
