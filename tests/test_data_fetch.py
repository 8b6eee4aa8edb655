import os
import sys
import unittest

import requests

# Allow `import core.*` like the app does when running `python app/main.py`.
REPO_ROOT = os.path.dirname(os.path.dirname(__file__))
APP_DIR = os.path.join(REPO_ROOT, "app")
if APP_DIR not in sys.path:
    sys.path.insert(0, APP_DIR)

from core.data_fetch import FetchError, fetch_market_chart, market_chart_url, parse_prices
from core.models import PricePoint


class _FakeResponse:
    def __init__(self, payload=None, status_code: int = 200, json_error: Exception = None) -> None:
        self._payload = payload
        self.status_code = status_code
        self._json_error = json_error

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")

    def json(self):
        if self._json_error is not None:
            raise self._json_error
        return self._payload


class _FakeSession:
    def __init__(self, response=None, exc: Exception = None) -> None:
        self.response = response
        self.exc = exc
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, dict(params or {}), timeout))
        if self.exc is not None:
            raise self.exc
        return self.response


class ParsePricesTests(unittest.TestCase):
    def test_preserves_count_values_and_order(self):
        raw = [[3000, 10.5], [1000, 9.0], [2000, 11.25], [4000, 12]]
        series = parse_prices({"prices": raw, "market_caps": [], "total_volumes": []})
        self.assertEqual(len(series), len(raw))
        self.assertEqual([p.time for p in series], [3000, 1000, 2000, 4000])
        self.assertEqual([p.price for p in series], [10.5, 9.0, 11.25, 12.0])
        self.assertIsInstance(series, tuple)

    def test_empty_prices_yields_empty_series(self):
        self.assertEqual(parse_prices({"prices": []}), ())

    def test_missing_prices_field_raises(self):
        with self.assertRaises(FetchError):
            parse_prices({"error": "coin not found"})

    def test_non_pair_entry_raises(self):
        with self.assertRaises(FetchError):
            parse_prices({"prices": [[1000, 1.0], [2000]]})
        with self.assertRaises(FetchError):
            parse_prices({"prices": [[1000, "abc"]]})

    def test_points_are_immutable(self):
        point = parse_prices({"prices": [[1000, 1.0]]})[0]
        with self.assertRaises(Exception):
            point.price = 2.0  # type: ignore[misc]


class FetchMarketChartTests(unittest.TestCase):
    def test_scenario_two_points(self):
        session = _FakeSession(_FakeResponse({"prices": [[1000, 50000], [2000, 50100]]}))
        series = fetch_market_chart("bitcoin", "usd", "1", session=session)
        self.assertEqual(series, (PricePoint(1000, 50000.0), PricePoint(2000, 50100.0)))

    def test_request_url_and_params(self):
        session = _FakeSession(_FakeResponse({"prices": []}))
        fetch_market_chart("dogecoin", "jpy", "365", session=session)
        self.assertEqual(len(session.calls), 1)
        url, params, timeout = session.calls[0]
        self.assertEqual(url, "https://api.coingecko.com/api/v3/coins/dogecoin/market_chart")
        self.assertEqual(params, {"vs_currency": "jpy", "days": "365"})
        self.assertIsNone(timeout)

    def test_parameters_are_forwarded_unvalidated(self):
        session = _FakeSession(_FakeResponse({"prices": []}))
        fetch_market_chart("not a coin", "eur", "9", session=session, base_url="http://localhost:9/api/", timeout=3.0)
        url, params, timeout = session.calls[0]
        self.assertEqual(url, "http://localhost:9/api/coins/not a coin/market_chart")
        self.assertEqual(params, {"vs_currency": "eur", "days": "9"})
        self.assertEqual(timeout, 3.0)

    def test_network_error_becomes_fetch_error(self):
        session = _FakeSession(exc=requests.ConnectionError("offline"))
        with self.assertRaises(FetchError):
            fetch_market_chart("bitcoin", "usd", "1", session=session)

    def test_http_error_becomes_fetch_error(self):
        session = _FakeSession(_FakeResponse({"prices": []}, status_code=429))
        with self.assertRaises(FetchError):
            fetch_market_chart("bitcoin", "usd", "1", session=session)

    def test_invalid_json_becomes_fetch_error(self):
        session = _FakeSession(_FakeResponse(json_error=ValueError("Expecting value")))
        with self.assertRaises(FetchError):
            fetch_market_chart("bitcoin", "usd", "1", session=session)

    def test_malformed_body_becomes_fetch_error(self):
        session = _FakeSession(_FakeResponse(["not", "an", "object"]))
        with self.assertRaises(FetchError):
            fetch_market_chart("bitcoin", "usd", "1", session=session)

    def test_market_chart_url_strips_trailing_slash(self):
        self.assertEqual(market_chart_url("ethereum", "https://example.test/v3/"), "https://example.test/v3/coins/ethereum/market_chart")


if __name__ == "__main__":
    unittest.main()
