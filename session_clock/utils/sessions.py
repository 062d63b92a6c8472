# session_clock/utils/sessions.py
import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Tuple

from loguru import logger

from session_clock.utils.errors import ConfigError

PAIR_RE = re.compile(r"^[A-Z]{3}/[A-Z]{3}$")


@dataclass(frozen=True)
class Session:
    """
    Static trading-session definition. Hours are UTC, `close <= open` wraps midnight.
    """
    id: str
    name: str
    region: str
    open: int
    close: int
    color: str = "#a1a1aa"
    currency_pairs: Tuple[str, ...] = ()

    @property
    def wraps(self) -> bool:
        return self.close <= self.open

    @property
    def duration(self) -> int:
        return 24 - self.open + self.close if self.wraps else self.close - self.open


@dataclass(frozen=True)
class VolatilityWindow:
    start: int
    end: int
    name: str = "London-NY Overlap"
    description: str = "Highest volatility period"


TRADING_SESSIONS = (
    Session("sydney", "Sydney", "Asia-Pacific", 22, 7, "#00f2ff", ("AUD/USD", "NZD/USD", "AUD/JPY")),
    Session("tokyo", "Tokyo", "Asia", 0, 9, "#8b5cf6", ("USD/JPY", "EUR/JPY", "GBP/JPY")),
    Session("singapore", "Singapore", "Asia", 1, 10, "#ec4899", ("USD/SGD", "AUD/USD", "USD/JPY")),
    Session("frankfurt", "Frankfurt", "Europe", 7, 16, "#3b82f6", ("EUR/USD", "EUR/CHF", "EUR/JPY")),
    Session("london", "London", "Europe", 8, 17, "#f59e0b", ("EUR/USD", "GBP/USD", "EUR/GBP")),
    Session("newyork", "New York", "North America", 13, 22, "#10b981", ("USD/CAD", "EUR/USD", "GBP/USD")),
)


# ─────────────────────────────────────────────
# Validation
# ─────────────────────────────────────────────
def _check_hour(session_id: str, field: str, value) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"Session '{session_id}': {field} must be an integer hour, got {value!r}")
    if not 0 <= value < 24:
        raise ConfigError(f"Session '{session_id}': {field} must be in [0, 24), got {value}")
    return value


def validate_sessions(sessions: Iterable[Session]) -> Tuple[Session, ...]:
    """Reject out-of-range hours, duplicate ids and malformed pair symbols."""
    sessions = tuple(sessions)
    if not sessions:
        raise ConfigError("Session table is empty")

    seen = set()
    for s in sessions:
        if not s.id:
            raise ConfigError("Session id must not be empty")
        if s.id in seen:
            raise ConfigError(f"Duplicate session id '{s.id}'")
        seen.add(s.id)
        _check_hour(s.id, "open", s.open)
        _check_hour(s.id, "close", s.close)
        for pair in s.currency_pairs:
            if not PAIR_RE.match(pair):
                raise ConfigError(f"Session '{s.id}': bad currency pair {pair!r} (expected AAA/BBB)")
        if s.open == s.close:
            logger.warning(f"⚠️ Session '{s.id}' has open == close ({s.open}); treated as a 24h session.")
    return sessions


def session_from_dict(raw: dict) -> Session:
    try:
        session_id = str(raw["id"])
        return Session(
            id=session_id,
            name=str(raw.get("name", session_id)),
            region=str(raw.get("region", "")),
            open=raw["open"],
            close=raw["close"],
            color=str(raw.get("color", "#a1a1aa")),
            currency_pairs=tuple(raw.get("currencyPairs", raw.get("currency_pairs", ()))),
        )
    except (KeyError, TypeError) as e:
        raise ConfigError(f"Invalid session entry {raw!r}: missing or bad field {e}")


def load_sessions(path: Optional[str] = None) -> Tuple[Session, ...]:
    """
    Load and validate the session table.

    Without a path the built-in table is used. A JSON file may hold either a
    list of sessions or an object with a "sessions" list.
    """
    if not path:
        return validate_sessions(TRADING_SESSIONS)

    file_path = Path(path)
    try:
        payload = json.loads(file_path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read sessions file {file_path}: {e}")
    except json.JSONDecodeError as e:
        raise ConfigError(f"Sessions file {file_path} is not valid JSON: {e}")

    entries = payload.get("sessions") if isinstance(payload, dict) else payload
    if not isinstance(entries, list):
        raise ConfigError(f"Sessions file {file_path} must contain a list of sessions")

    sessions = validate_sessions(session_from_dict(e) for e in entries)
    logger.info(f"🗂️ Loaded {len(sessions)} sessions from {file_path}")
    return sessions


# ─────────────────────────────────────────────
# Overlap derivation
# ─────────────────────────────────────────────
def covered_hours(session: Session) -> set:
    if not session.wraps:
        return set(range(session.open, session.close))
    return set(range(session.open, 24)) | set(range(0, session.close))


def find_session(sessions: Iterable[Session], session_id: str) -> Optional[Session]:
    return next((s for s in sessions if s.id == session_id), None)


def derive_overlap(sessions: Iterable[Session], first_id: str = "london", second_id: str = "newyork",
                   name: str = "London-NY Overlap",
                   description: str = "Highest volatility period") -> Optional[VolatilityWindow]:
    """
    Intersect the open hours of two named sessions.

    Returns None when either session is missing or they never overlap.
    Raises ConfigError when the intersection is split into two windows.
    """
    sessions = tuple(sessions)
    first = find_session(sessions, first_id)
    second = find_session(sessions, second_id)
    if first is None or second is None:
        logger.warning(f"⚠️ Cannot derive overlap: session '{first_id}' or '{second_id}' not configured.")
        return None

    shared = covered_hours(first) & covered_hours(second)
    if not shared:
        logger.info(f"No overlap between '{first_id}' and '{second_id}'.")
        return None
    if len(shared) == 24:
        return VolatilityWindow(0, 0, name, description)

    starts = [h for h in sorted(shared) if (h - 1) % 24 not in shared]
    if len(starts) != 1:
        raise ConfigError(f"Overlap of '{first_id}' and '{second_id}' is not one contiguous window: {sorted(shared)}")

    start = starts[0]
    end = start
    while end % 24 in shared:
        end += 1
    return VolatilityWindow(start, end % 24, name, description)


def resolve_volatility_window(sessions: Iterable[Session], start: Optional[int] = None,
                              end: Optional[int] = None) -> Optional[VolatilityWindow]:
    """Explicit start/end win over the derived London/New York intersection."""
    if start is not None and end is not None:
        return VolatilityWindow(start, end, "Configured Overlap", "Configured volatility window")
    return derive_overlap(sessions)


__all__ = [
    "Session", "VolatilityWindow", "TRADING_SESSIONS",
    "validate_sessions", "session_from_dict", "load_sessions",
    "covered_hours", "find_session", "derive_overlap", "resolve_volatility_window",
]
