import pytest

from session_clock import run_dashboard
from session_clock.scheduler import Scheduler

OFFLINE = ["--no-news", "--no-rates", "--no-terminal"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("TICK_SECONDS", "VOLATILITY_START", "VOLATILITY_END", "LOG_FILE"):
        monkeypatch.delenv(name, raising=False)


# ============================================================
# TESTS — EXIT CODES
# ============================================================

def test_once_renders_and_exits_zero():
    assert run_dashboard.main(["--once", *OFFLINE]) == 0


@pytest.mark.parametrize("raw", ["abc", "nan", "inf"])
def test_bad_tick_seconds_exits_with_config_error(monkeypatch, raw):
    monkeypatch.setenv("TICK_SECONDS", raw)

    assert run_dashboard.main(["--once", *OFFLINE]) == 2


def test_half_volatility_override_exits_with_config_error(monkeypatch):
    monkeypatch.setenv("VOLATILITY_START", "13")

    assert run_dashboard.main(["--once", *OFFLINE]) == 2


def test_unknown_timezone_exits_with_config_error():
    assert run_dashboard.main(["--once", "--timezone", "Mars/Olympus", *OFFLINE]) == 2


# ============================================================
# TESTS — SCHEDULED RUN
# ============================================================

def test_keyboard_interrupt_stops_scheduler(monkeypatch):
    stopped = []

    def interrupted(self):
        raise KeyboardInterrupt

    monkeypatch.setattr(Scheduler, "start", interrupted)
    monkeypatch.setattr(Scheduler, "stop", lambda self: stopped.append(self))

    assert run_dashboard.main(OFFLINE) == 0
    assert len(stopped) == 1
    assert [j.id for j in stopped[0].jobs] == ["tick"]
