from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.models import Selection

COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"

# id -> label, in menu order.
ASSETS = {
    "bitcoin": "Bitcoin",
    "ethereum": "Ethereum",
    "dogecoin": "Dogecoin",
}

CURRENCIES = {
    "usd": "USD",
    "jpy": "JPY",
}

RANGES = {
    "1": "Last 1 Day",
    "7": "Last 1 Week",
    "30": "Last 1 Month",
    "365": "Last 1 Year",
}

INTERVALS_MS = {
    60_000: "1 min",
    300_000: "5 min",
    900_000: "15 min",
    1_800_000: "30 min",
    3_600_000: "1 hour",
}

LOCALES = ("en-US", "ja-JP")
CHART_STYLES = ("area", "line")


@dataclass
class AppConfig:
    asset: str = "bitcoin"
    currency: str = "usd"
    range_code: str = "1"
    interval_ms: int = 300_000
    locale: str = "en-US"
    chart_style: str = "area"
    base_url: str = COINGECKO_BASE_URL
    # None keeps the transport default (no timeout).
    request_timeout: Optional[float] = None

    def initial_selection(self) -> Selection:
        return Selection(
            asset=self.asset,
            currency=self.currency,
            range_code=self.range_code,
            interval_ms=int(self.interval_ms),
        )
