# session_clock/analytics.py
"""
Session analytics engine.

Pure functions of (sessions, UTC hour-of-day). Nothing here reads the clock
or keeps state between ticks, so every call can be recomputed from scratch.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple, Union

from session_clock.clock import ClockReading
from session_clock.utils.sessions import Session, VolatilityWindow

POWER_HOUR_MINUTES = 60


class SessionState(Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class Countdown:
    hours: int
    minutes: int

    def __str__(self) -> str:
        return f"{self.hours}h {self.minutes}m"


@dataclass(frozen=True)
class SessionStatus:
    status: SessionState
    countdown: str
    progress: float
    is_power_hour: bool
    hours_to_transition: float

    @property
    def is_open(self) -> bool:
        return self.status is SessionState.OPEN


@dataclass(frozen=True)
class SessionAnalytics:
    now_utc: float
    statuses: Dict[str, SessionStatus]
    active_sessions: List[Session]
    is_volatile: bool
    volatility_window: Optional[VolatilityWindow] = None
    sessions: Tuple[Session, ...] = field(default_factory=tuple)


# ─────────────────────────────────────────────
# Interval arithmetic
# ─────────────────────────────────────────────
def in_window(open_hour: float, close_hour: float, now: float) -> bool:
    """Half-open [open, close) on a 24h circle. close <= open wraps midnight."""
    if close_hour > open_hour:
        return open_hour <= now < close_hour
    return now >= open_hour or now < close_hour


def is_open(session: Session, now: float) -> bool:
    return in_window(session.open, session.close, now)


def hours_until_close(session: Session, now: float) -> float:
    remaining = session.close - now
    # <= keeps the degenerate open == close session at a full 24h at its anchor hour
    if remaining <= 0:
        remaining += 24
    return remaining


def hours_until_open(session: Session, now: float) -> float:
    until = session.open - now
    if until < 0:
        until += 24
    return until


def session_progress(session: Session, now: float) -> float:
    if not is_open(session, now):
        return 0.0
    duration = session.duration
    pct = (duration - hours_until_close(session, now)) / duration * 100
    return min(100.0, max(0.0, pct))


def is_power_hour(session: Session, now: float) -> bool:
    if not is_open(session, now):
        return False
    minutes_since_open = ((now - session.open + 24) % 24) * 60
    minutes_until_close = hours_until_close(session, now) * 60
    return minutes_since_open <= POWER_HOUR_MINUTES or minutes_until_close <= POWER_HOUR_MINUTES


def countdown_from_hours(hours: float) -> Countdown:
    """Floor hours and floor minutes of the remainder; the epsilon keeps 0.5h at 30m despite float noise."""
    total_seconds = max(0, int(hours * 3600 + 1e-6))
    total_minutes = total_seconds // 60
    return Countdown(total_minutes // 60, total_minutes % 60)


def is_volatile_window(window: Optional[VolatilityWindow], now: float) -> bool:
    if window is None:
        return False
    return in_window(window.start, window.end, now)


# ─────────────────────────────────────────────
# Per-session status & full snapshot
# ─────────────────────────────────────────────
def session_status(session: Session, now: float) -> SessionStatus:
    if is_open(session, now):
        remaining = hours_until_close(session, now)
        return SessionStatus(
            status=SessionState.OPEN,
            countdown=str(countdown_from_hours(remaining)),
            progress=session_progress(session, now),
            is_power_hour=is_power_hour(session, now),
            hours_to_transition=remaining,
        )

    until = hours_until_open(session, now)
    return SessionStatus(
        status=SessionState.CLOSED,
        countdown=str(countdown_from_hours(until)),
        progress=0.0,
        is_power_hour=False,
        hours_to_transition=until,
    )


def _as_hours(now: Union[ClockReading, float]) -> float:
    value = now.total_hours if isinstance(now, ClockReading) else float(now)
    if math.isnan(value) or not 0 <= value < 24:
        raise ValueError(f"hour-of-day must be in [0, 24), got {value}")
    return value


def active_sessions(sessions: Iterable[Session], now: Union[ClockReading, float]) -> List[Session]:
    hour = _as_hours(now)
    return [s for s in sessions if is_open(s, hour)]


def analyze(sessions: Iterable[Session], now: Union[ClockReading, float],
            window: Optional[VolatilityWindow] = None) -> SessionAnalytics:
    """
    Compute every session's status plus the active list and volatility flag.

    `now` is a UTC ClockReading or a UTC hour-of-day in [0, 24).
    """
    hour = _as_hours(now)
    sessions = tuple(sessions)
    statuses = {s.id: session_status(s, hour) for s in sessions}
    return SessionAnalytics(
        now_utc=hour,
        statuses=statuses,
        active_sessions=[s for s in sessions if statuses[s.id].is_open],
        is_volatile=is_volatile_window(window, hour),
        volatility_window=window,
        sessions=sessions,
    )
