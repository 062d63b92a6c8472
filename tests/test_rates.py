import pytest
import requests

from session_clock import rates as rates_module
from session_clock.rates import RatesFeed, fetch_usd_rates, format_price, pair_price, parse_rates
from session_clock.utils.errors import MalformedResponse, NetworkUnavailable

from conftest import FakeResponse

RATES = {"USD": 1.0, "EUR": 0.8, "GBP": 0.5, "JPY": 150.0}


# ============================================================
# TESTS — PAIR PRICING
# ============================================================

def test_direct_pair():
    assert pair_price("USD/JPY", RATES) == pytest.approx(150.0)


def test_inverse_pair():
    assert pair_price("EUR/USD", RATES) == pytest.approx(1.25)


def test_cross_pair():
    assert pair_price("EUR/GBP", RATES) == pytest.approx(0.625)
    assert pair_price("GBP/JPY", RATES) == pytest.approx(300.0)


def test_missing_leg_returns_none():
    assert pair_price("AUD/USD", RATES) is None
    assert pair_price("EUR/NZD", RATES) is None


def test_bad_pair_symbol():
    with pytest.raises(ValueError):
        pair_price("EURUSD", RATES)


def test_format_price():
    assert format_price("EUR/USD", 1.25) == "1.25000"
    assert format_price("USD/JPY", 150.0) == "150.000"
    assert format_price("AUD/USD", None) == "--"


# ============================================================
# TESTS — PAYLOAD PARSING
# ============================================================

def test_parse_rates_adds_usd():
    parsed = parse_rates({"result": "success", "rates": {"eur": "0.9"}})
    assert parsed == {"EUR": 0.9, "USD": 1.0}


@pytest.mark.parametrize("payload", [
    [],
    {"result": "error", "error-type": "invalid-key"},
    {"result": "success"},
    {"result": "success", "rates": {}},
    {"result": "success", "rates": {"EUR": "abc"}},
    {"result": "success", "rates": {"EUR": 0}},
    {"result": "success", "rates": {"EUR": True}},
])
def test_parse_rates_rejects_malformed(payload):
    with pytest.raises(MalformedResponse):
        parse_rates(payload)


def test_fetch_maps_network_error(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("down")

    monkeypatch.setattr(rates_module.requests, "get", boom)

    with pytest.raises(NetworkUnavailable):
        fetch_usd_rates("https://rates.test")


def test_fetch_maps_http_error(monkeypatch):
    monkeypatch.setattr(rates_module.requests, "get", lambda *a, **k: FakeResponse(503, {"result": "error"}))

    with pytest.raises(MalformedResponse):
        fetch_usd_rates("https://rates.test")


def test_fetch_maps_invalid_json(monkeypatch):
    monkeypatch.setattr(rates_module.requests, "get", lambda *a, **k: FakeResponse(200, None, b"<html>"))

    with pytest.raises(MalformedResponse):
        fetch_usd_rates("https://rates.test")


def test_fetch_ok(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return FakeResponse(200, {"result": "success", "rates": {"EUR": 0.8}})

    monkeypatch.setattr(rates_module.requests, "get", fake_get)

    assert fetch_usd_rates("https://rates.test", timeout=3) == {"EUR": 0.8, "USD": 1.0}
    assert calls == [("https://rates.test", 3)]


# ============================================================
# TESTS — LATEST-VALUE CACHE
# ============================================================

def test_feed_placeholder_before_first_success():
    def failing(url, timeout):
        raise NetworkUnavailable("down")

    feed = RatesFeed("https://rates.test", fetcher=failing)

    assert feed.refresh() is False
    assert feed.display_price("EUR/USD") == "--"
    assert isinstance(feed.last_error, NetworkUnavailable)


def test_feed_keeps_last_good_rates_on_failure():
    responses = [RATES, MalformedResponse("bad")]

    def fetcher(url, timeout):
        result = responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    feed = RatesFeed("https://rates.test", fetcher=fetcher)

    assert feed.refresh() is True
    assert feed.refresh() is False
    assert feed.rates == RATES
    assert feed.display_price("EUR/USD") == "1.25000"


def test_feed_without_url_is_noop():
    feed = RatesFeed("")
    assert feed.refresh() is False
    assert feed.rates == {}
