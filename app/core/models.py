from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Tuple


@dataclass(frozen=True)
class PricePoint:
    time: int
    price: float


Series = Tuple[PricePoint, ...]


@dataclass(frozen=True)
class Selection:
    asset: str
    currency: str
    range_code: str
    interval_ms: int

    def with_asset(self, asset: str) -> "Selection":
        return replace(self, asset=asset)

    def with_currency(self, currency: str) -> "Selection":
        return replace(self, currency=currency)

    def with_range(self, range_code: str) -> "Selection":
        return replace(self, range_code=range_code)

    def with_interval(self, interval_ms: int) -> "Selection":
        return replace(self, interval_ms=int(interval_ms))


class FetchStatus(Enum):
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"
