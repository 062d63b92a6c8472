# ============================================================
# IMPORTS
# ============================================================

import json
from datetime import datetime

import pytest
import pytz

from session_clock.clock import FixedClock
from session_clock.utils.sessions import Session, TRADING_SESSIONS, derive_overlap


# ============================================================
# TEST HELPERS
# ============================================================

class FakeResponse:
    """
    Minimal stand-in for requests.Response.
    """
    def __init__(self, status_code=200, payload=None, content=b""):
        self.status_code = status_code
        self._payload = payload
        self.content = content if content else json.dumps(payload).encode() if payload is not None else b""

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


def make_session(open_hour, close_hour, session_id="test", pairs=("EUR/USD",)):
    return Session(session_id, session_id.title(), "Test", open_hour, close_hour, "#ffffff", tuple(pairs))


# ============================================================
# PYTEST FIXTURES
# ============================================================

@pytest.fixture
def sessions():
    return TRADING_SESSIONS


@pytest.fixture
def tokyo(sessions):
    return next(s for s in sessions if s.id == "tokyo")


@pytest.fixture
def sydney(sessions):
    return next(s for s in sessions if s.id == "sydney")


@pytest.fixture
def london(sessions):
    return next(s for s in sessions if s.id == "london")


@pytest.fixture
def overlap(sessions):
    return derive_overlap(sessions)


@pytest.fixture
def fixed_clock():
    """
    Clock frozen at 2026-01-12 14:30:15 UTC, local zone Asia/Tokyo.
    """
    return FixedClock(datetime(2026, 1, 12, 14, 30, 15, tzinfo=pytz.utc), "Asia/Tokyo")
