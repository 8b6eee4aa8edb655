import logging
from typing import Any, List, Optional

import requests

from core.config import COINGECKO_BASE_URL
from core.models import PricePoint, Series

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised for any failed market-chart request: network, HTTP status or body shape."""


def market_chart_url(asset: str, base_url: str = COINGECKO_BASE_URL) -> str:
    return f"{base_url.rstrip('/')}/coins/{asset}/market_chart"


def parse_prices(payload: Any) -> Series:
    try:
        raw = payload["prices"]
    except (KeyError, TypeError) as exc:
        raise FetchError("Response has no 'prices' field") from exc
    if not isinstance(raw, list):
        raise FetchError(f"Unexpected 'prices' type: {type(raw).__name__}")
    points: List[PricePoint] = []
    for idx, pair in enumerate(raw):
        if not isinstance(pair, (list, tuple)) or len(pair) < 2:
            raise FetchError(f"Malformed price entry at index {idx}: {pair!r}")
        try:
            points.append(PricePoint(time=int(pair[0]), price=float(pair[1])))
        except (ValueError, TypeError) as exc:
            raise FetchError(f"Malformed price entry at index {idx}: {pair!r}") from exc
    return tuple(points)


def fetch_market_chart(
    asset: str,
    currency: str,
    range_code: str,
    *,
    session: Optional[requests.Session] = None,
    base_url: str = COINGECKO_BASE_URL,
    timeout: Optional[float] = None,
) -> Series:
    url = market_chart_url(asset, base_url)
    params = {"vs_currency": currency, "days": range_code}
    http = session if session is not None else requests
    logger.debug("GET %s params=%s", url, params)
    try:
        resp = http.get(url, params=params, timeout=timeout)
        resp.raise_for_status()
        payload = resp.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Market chart request failed for %s/%s/%s: %s", asset, currency, range_code, exc)
        raise FetchError(str(exc)) from exc
    try:
        return parse_prices(payload)
    except FetchError as exc:
        logger.warning("Market chart response malformed for %s/%s/%s: %s", asset, currency, range_code, exc)
        raise
