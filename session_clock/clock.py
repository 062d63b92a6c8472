# session_clock/clock.py
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple

import pytz
from loguru import logger

from session_clock.utils.errors import ConfigError


# ─────────────────────────────────────────────
# Readings
# ─────────────────────────────────────────────
@dataclass(frozen=True)
class ClockReading:
    """Wall-clock snapshot in a single zone. `total_hours` drives all interval math."""
    hours: int
    minutes: int
    seconds: int
    total_hours: float
    timezone: str = "UTC"

    def hhmm(self) -> str:
        return f"{self.hours:02d}:{self.minutes:02d}"

    def hhmmss(self) -> str:
        return f"{self.hours:02d}:{self.minutes:02d}:{self.seconds:02d}"


def resolve_timezone(name: str):
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        raise ConfigError(f"Unknown timezone '{name}' (expected an IANA name like 'Europe/Berlin')")


def reading_from_datetime(moment: datetime, tz=pytz.utc) -> ClockReading:
    """Convert an aware datetime into a ClockReading in `tz`. Naive input is taken as UTC."""
    if moment.tzinfo is None:
        moment = pytz.utc.localize(moment)
    local = moment.astimezone(tz)
    total = local.hour + local.minute / 60 + local.second / 3600
    return ClockReading(
        hours=local.hour,
        minutes=local.minute,
        seconds=local.second,
        total_hours=total,
        timezone=getattr(tz, "zone", None) or str(tz),
    )


# ─────────────────────────────────────────────
# Clock sources
# ─────────────────────────────────────────────
class Clock:
    """
    Base clock interface. Subclasses return aware UTC datetimes.
    """
    def __init__(self, local_timezone: str = "UTC"):
        self.local_tz = resolve_timezone(local_timezone)

    def now(self) -> datetime:
        raise NotImplementedError

    def utc_reading(self, moment: Optional[datetime] = None) -> ClockReading:
        return reading_from_datetime(moment or self.now(), pytz.utc)

    def local_reading(self, moment: Optional[datetime] = None) -> ClockReading:
        return reading_from_datetime(moment or self.now(), self.local_tz)

    def sample(self) -> Tuple[ClockReading, ClockReading]:
        """Sample once, return (utc, local) readings of the same instant."""
        moment = self.now()
        return self.utc_reading(moment), self.local_reading(moment)


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(pytz.utc)


class FixedClock(Clock):
    """
    Clock for tests and replays. Time moves only when set or advanced.
    """
    def __init__(self, start_time: datetime, local_timezone: str = "UTC"):
        super().__init__(local_timezone)
        self._current_time = start_time if start_time.tzinfo else pytz.utc.localize(start_time)

    def now(self) -> datetime:
        return self._current_time

    def set(self, new_time: datetime) -> None:
        self._current_time = new_time if new_time.tzinfo else pytz.utc.localize(new_time)

    def advance(self, delta: timedelta) -> None:
        self._current_time += delta
        logger.debug(f"FixedClock advanced to {self._current_time.isoformat()}")
