# session_clock/rates.py
"""
Exchange-rate collaborator.

Rates are kept as "units of currency per 1 USD", the shape most free rate
APIs return for a USD base. Any pair price is derived from that table:

  * direct      USD/XXX  -> rates[XXX]
  * inverse     XXX/USD  -> 1 / rates[XXX]
  * cross       AAA/BBB  -> rates[BBB] / rates[AAA]
"""
from typing import Dict, Optional

import requests
from loguru import logger

from session_clock.utils.errors import FeedError, MalformedResponse, NetworkUnavailable

PLACEHOLDER = "--"


# ─────────────────────────────────────────────
# Pair pricing
# ─────────────────────────────────────────────
def split_pair(pair: str):
    base, sep, quote = pair.upper().partition("/")
    if not sep or len(base) != 3 or len(quote) != 3:
        raise ValueError(f"Pair must look like AAA/BBB, got {pair!r}")
    return base, quote


def _usd_rate(code: str, rates: Dict[str, float]) -> Optional[float]:
    if code == "USD":
        return 1.0
    value = rates.get(code)
    if not value:
        return None
    return value


def pair_price(pair: str, rates: Dict[str, float]) -> Optional[float]:
    """Price of one unit of base in quote currency, or None if a leg is missing."""
    base, quote = split_pair(pair)
    base_rate = _usd_rate(base, rates)
    quote_rate = _usd_rate(quote, rates)
    if base_rate is None or quote_rate is None:
        return None
    return quote_rate / base_rate


def format_price(pair: str, price: Optional[float]) -> str:
    if price is None:
        return PLACEHOLDER
    _, quote = split_pair(pair)
    return f"{price:.3f}" if quote == "JPY" else f"{price:.5f}"


# ─────────────────────────────────────────────
# Fetching
# ─────────────────────────────────────────────
def parse_rates(payload) -> Dict[str, float]:
    """Validate a rates payload and return {code: units-per-USD}."""
    if not isinstance(payload, dict):
        raise MalformedResponse("Rates payload is not a JSON object", source="rates")
    if payload.get("result", "success") != "success":
        raise MalformedResponse(f"Rates API reported {payload.get('result')!r}", source="rates")

    raw = payload.get("rates")
    if not isinstance(raw, dict) or not raw:
        raise MalformedResponse("Rates payload has no 'rates' mapping", source="rates")

    rates = {}
    for code, value in raw.items():
        if isinstance(value, bool):
            raise MalformedResponse(f"Rate for {code} is not numeric: {value!r}", source="rates")
        try:
            rate = float(value)
        except (TypeError, ValueError):
            raise MalformedResponse(f"Rate for {code} is not numeric: {value!r}", source="rates")
        if rate <= 0:
            raise MalformedResponse(f"Rate for {code} must be positive, got {rate}", source="rates")
        rates[str(code).upper()] = rate
    rates["USD"] = 1.0
    return rates


def fetch_usd_rates(url: str, timeout: float = 10.0) -> Dict[str, float]:
    try:
        res = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise NetworkUnavailable(f"Rates request failed: {e}", source="rates")

    if res.status_code != 200:
        raise MalformedResponse(f"Rates API returned HTTP {res.status_code}", source="rates")
    try:
        payload = res.json()
    except ValueError as e:
        raise MalformedResponse(f"Rates API returned invalid JSON: {e}", source="rates")
    return parse_rates(payload)


class RatesFeed:
    """
    Latest-value cache for USD cross rates. A failed refresh keeps the last good table.
    """
    def __init__(self, url: str, timeout: float = 10.0, fetcher=fetch_usd_rates):
        self.url = url
        self.timeout = timeout
        self._fetcher = fetcher
        self.rates: Dict[str, float] = {}
        self.last_error: Optional[FeedError] = None

    def refresh(self) -> bool:
        if not self.url:
            return False
        try:
            rates = self._fetcher(self.url, timeout=self.timeout)
        except FeedError as e:
            self.last_error = e
            stale = "keeping previous rates" if self.rates else "no rates yet"
            logger.warning(f"⚠️ Rates refresh failed [{e.category}]: {e} ({stale})")
            return False

        self.rates = rates
        self.last_error = None
        logger.info(f"💱 Rates refreshed ({len(rates)} currencies).")
        return True

    def price(self, pair: str) -> Optional[float]:
        return pair_price(pair, self.rates)

    def display_price(self, pair: str) -> str:
        return format_price(pair, self.price(pair))
