# session_clock/run_dashboard.py
import argparse
import sys
from typing import Optional

from loguru import logger

from session_clock.analytics import SessionAnalytics, analyze
from session_clock.clock import Clock, ClockReading, SystemClock
from session_clock.dashboard import render_html, render_text, write_html
from session_clock.news import NewsFeed
from session_clock.rates import RatesFeed
from session_clock.scheduler import FEED_EXECUTOR, Scheduler
from session_clock.utils import config
from session_clock.utils.config import Settings
from session_clock.utils.errors import ConfigError
from session_clock.utils.sessions import load_sessions, resolve_volatility_window

CLEAR_SCREEN = "\033[2J\033[H"


def configure_logging(level: str = "INFO", log_file: str = ""):
    logger.remove()
    logger.add(sys.stderr, level=level)
    if log_file:
        logger.add(log_file, level=level, rotation="5 MB", retention=3)


class SessionClockApp:
    """
    Holds the latest-value caches (clock readings, news, rates) and renders
    a fresh analytics snapshot on every tick.
    """
    def __init__(self, sessions, window, clock: Clock, news: Optional[NewsFeed] = None,
                 rates: Optional[RatesFeed] = None, local_mode: bool = False,
                 html_path: str = "", terminal: bool = True, out=None):
        self.sessions = tuple(sessions)
        self.window = window
        self.clock = clock
        self.news = news
        self.rates = rates
        self.local_mode = local_mode
        self.html_path = html_path
        self.terminal = terminal
        self.out = out or sys.stdout
        self.utc: Optional[ClockReading] = None
        self.local: Optional[ClockReading] = None
        self.analytics: Optional[SessionAnalytics] = None
        self._active_ids = None

    def tick(self) -> SessionAnalytics:
        self.utc, self.local = self.clock.sample()
        self.analytics = analyze(self.sessions, self.utc, self.window)
        self._log_transitions()

        headlines = self.news.items if self.news else None
        if self.terminal:
            text = render_text(self.utc, self.local, self.analytics, self.local_mode, self.rates, headlines)
            prefix = CLEAR_SCREEN if getattr(self.out, "isatty", lambda: False)() else ""
            print(prefix + text, file=self.out, flush=True)
        if self.html_path:
            page = render_html(self.utc, self.local, self.analytics, self.local_mode, self.rates, headlines)
            write_html(self.html_path, page)
        return self.analytics

    def _log_transitions(self):
        active_ids = [s.id for s in self.analytics.active_sessions]
        if active_ids != self._active_ids:
            logger.info(f"🌍 Active sessions at {self.utc.hhmm()} UTC: {active_ids or 'none'}")
            self._active_ids = active_ids

    def build_scheduler(self, scheduler: Optional[Scheduler] = None,
                        tick_seconds: float = 1.0, news_seconds: float = 300.0,
                        rates_seconds: float = 60.0) -> Scheduler:
        """
        Feed refreshes go to the feed pool; the tick only reads whatever the
        caches hold at that moment, so a slow fetch never delays it.
        """
        scheduler = scheduler or Scheduler()
        if self.rates is not None:
            scheduler.every(rates_seconds, "rates", self.rates.refresh, executor=FEED_EXECUTOR)
        if self.news is not None:
            scheduler.every(news_seconds, "news", self.news.refresh, executor=FEED_EXECUTOR)
        scheduler.every(tick_seconds, "tick", self.tick)
        return scheduler


def build_app(args, settings: Settings) -> SessionClockApp:
    config.validate_env(settings)
    sessions = load_sessions(args.sessions or settings.sessions_file)
    window = resolve_volatility_window(sessions, settings.volatility_start, settings.volatility_end)
    if window:
        logger.info(f"⚡ Volatility window: {window.name} {window.start:02d}:00-{window.end:02d}:00 UTC")

    news = None if args.no_news else NewsFeed(
        settings.news_feeds, keywords=settings.news_keywords, hours=settings.news_lookback_hours,
        max_items=settings.news_max_items, timeout=settings.http_timeout)
    rates = None if args.no_rates else RatesFeed(settings.rates_api_url, timeout=settings.http_timeout)

    return SessionClockApp(
        sessions, window, SystemClock(args.timezone or settings.local_timezone),
        news=news, rates=rates, local_mode=args.local,
        html_path=args.html or settings.html_output, terminal=not args.no_terminal,
    )


def parse_args(argv=None):
    p = argparse.ArgumentParser(prog="session-clock", description="Global forex trading session dashboard")
    p.add_argument("--once", action="store_true", help="Render a single frame and exit")
    p.add_argument("--local", action="store_true", help="Show local time instead of UTC")
    p.add_argument("--timezone", default="", help="IANA zone for local mode (overrides LOCAL_TIMEZONE)")
    p.add_argument("--html", default="", help="Also write a self-refreshing HTML dashboard to this path")
    p.add_argument("--sessions", default="", help="JSON file with the session table")
    p.add_argument("--no-news", action="store_true", help="Skip the news feed")
    p.add_argument("--no-rates", action="store_true", help="Skip live pair prices")
    p.add_argument("--no-terminal", action="store_true", help="Do not print the text dashboard")
    p.add_argument("--log-level", default=config.LOG_LEVEL, help="loguru level (DEBUG, INFO, ...)")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level.upper(), config.LOG_FILE)
    try:
        settings = config.load_settings()
        app = build_app(args, settings)
    except ConfigError as e:
        logger.error(f"❌ Configuration error: {e}")
        return 2

    if args.once:
        if app.rates is not None:
            app.rates.refresh()
        if app.news is not None:
            app.news.refresh()
        app.tick()
        return 0

    scheduler = app.build_scheduler(
        tick_seconds=settings.tick_seconds,
        news_seconds=settings.news_refresh_seconds,
        rates_seconds=settings.rates_refresh_seconds,
    )
    try:
        scheduler.start()
    except KeyboardInterrupt:
        logger.info("👋 Session clock stopped by user.")
    finally:
        scheduler.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
