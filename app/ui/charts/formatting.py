from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Optional

DEFAULT_LOCALE = "en-US"


def _to_datetime(ts_ms: float, tz: Optional[tzinfo] = None) -> datetime:
    return datetime.fromtimestamp(float(ts_ms) / 1000.0, tz=tz)


def _clock_12h(dt: datetime) -> tuple[int, str]:
    hour = dt.hour % 12 or 12
    return hour, ("AM" if dt.hour < 12 else "PM")


def format_hour_minute(ts_ms: float, locale: str = DEFAULT_LOCALE, tz: Optional[tzinfo] = None) -> str:
    dt = _to_datetime(ts_ms, tz)
    if locale == "ja-JP":
        return f"{dt.hour:02d}:{dt.minute:02d}"
    hour, suffix = _clock_12h(dt)
    return f"{hour:02d}:{dt.minute:02d} {suffix}"


def format_month_day(ts_ms: float, locale: str = DEFAULT_LOCALE, tz: Optional[tzinfo] = None) -> str:
    dt = _to_datetime(ts_ms, tz)
    return f"{dt.month:02d}/{dt.day:02d}"


def format_tick(ts_ms: float, range_code: str, locale: str = DEFAULT_LOCALE, tz: Optional[tzinfo] = None) -> str:
    """Axis label for a time value: hour:minute for the one-day range, month/day otherwise."""
    if range_code == "1":
        return format_hour_minute(ts_ms, locale, tz)
    return format_month_day(ts_ms, locale, tz)


def format_tooltip_time(ts_ms: float, locale: str = DEFAULT_LOCALE, tz: Optional[tzinfo] = None) -> str:
    dt = _to_datetime(ts_ms, tz)
    if locale == "ja-JP":
        return f"{dt.year}/{dt.month}/{dt.day} {dt.hour}:{dt.minute:02d}:{dt.second:02d}"
    hour, suffix = _clock_12h(dt)
    return f"{dt.month}/{dt.day}/{dt.year} {hour}:{dt.minute:02d}:{dt.second:02d} {suffix}"


def format_price(value: float) -> str:
    abs_val = abs(value)
    if abs_val >= 1000:
        return f"{value:,.0f}"
    if abs_val >= 1:
        return f"{value:,.2f}"
    if abs_val >= 0.01:
        return f"{value:.4f}"
    return f"{value:.6f}"
