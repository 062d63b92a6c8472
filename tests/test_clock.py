from datetime import datetime, timedelta

import pytest
import pytz

from session_clock.clock import ClockReading, FixedClock, SystemClock, reading_from_datetime
from session_clock.utils.errors import ConfigError


def test_system_clock_returns_aware_utc():
    now = SystemClock().now()

    assert isinstance(now, datetime)
    assert now.utcoffset() == timedelta(0)


def test_utc_reading_components(fixed_clock):
    reading = fixed_clock.utc_reading()

    assert (reading.hours, reading.minutes, reading.seconds) == (14, 30, 15)
    assert reading.total_hours == pytest.approx(14 + 30 / 60 + 15 / 3600)
    assert reading.timezone == "UTC"
    assert reading.hhmm() == "14:30"


def test_local_reading_uses_configured_zone(fixed_clock):
    reading = fixed_clock.local_reading()

    # Tokyo is UTC+9 with no DST
    assert (reading.hours, reading.minutes) == (23, 30)
    assert reading.timezone == "Asia/Tokyo"


def test_sample_reads_one_instant(fixed_clock):
    utc, local = fixed_clock.sample()

    assert utc.seconds == local.seconds
    assert (local.hours - utc.hours) % 24 == 9


def test_naive_datetime_taken_as_utc():
    reading = reading_from_datetime(datetime(2026, 3, 1, 23, 59, 59))

    assert reading.hhmmss() == "23:59:59"
    assert 0 <= reading.total_hours < 24


def test_local_reading_follows_dst():
    summer = FixedClock(datetime(2026, 7, 1, 12, 0, tzinfo=pytz.utc), "Europe/London")
    winter = FixedClock(datetime(2026, 1, 1, 12, 0, tzinfo=pytz.utc), "Europe/London")

    assert summer.local_reading().hours == 13
    assert winter.local_reading().hours == 12


def test_fixed_clock_set_and_advance(fixed_clock):
    fixed_clock.advance(timedelta(minutes=30))
    assert fixed_clock.utc_reading().hhmmss() == "15:00:15"

    fixed_clock.set(datetime(2026, 1, 13, 0, 0))
    assert fixed_clock.utc_reading() == ClockReading(0, 0, 0, 0.0, "UTC")


def test_unknown_timezone_rejected():
    with pytest.raises(ConfigError, match="Unknown timezone"):
        SystemClock("Mars/Olympus_Mons")
