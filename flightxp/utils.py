from __future__ import annotations

import asyncio
import re as _re
from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from typing import Any, Optional, Pattern, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# Regex helpers

FLIGHT_PATTERN: Pattern[str] = _re.compile(r"^([A-Z]{3}|[A-Z0-9]{2})\d{1,5}[A-Z]?$")
_IDENT_SPLIT_RE: Pattern[str] = _re.compile(
    r"^([A-Z]{3}|[A-Z0-9]{2})?(\d{1,5})([A-Z]?)$"
)
_WS_RE: Pattern[str] = _re.compile(r"\s+")


def normalize_flight_number(raw: str) -> str:
    """ "qp 1457 " -> "QP1457". Strips every whitespace run and uppercases."""
    return _WS_RE.sub("", raw or "").upper()


def is_valid_flight_number(fn: str) -> bool:
    return bool(FLIGHT_PATTERN.match(fn))


def split_ident(ident: str) -> Tuple[Optional[str], str, Optional[str]]:
    """
    Returns: (airline_prefix, numeric_part, suffix)
    QP1457 -> ("QP", "1457", None)
    AKJ1457A -> ("AKJ", "1457", "A")
    1457 -> (None, "1457", None)
    """
    m = _IDENT_SPLIT_RE.match(ident.strip().upper())
    if not m:
        return None, ident.strip().upper(), None
    return (m.group(1), m.group(2), m.group(3) or None)


@lru_cache(maxsize=256)
def iso_day_window_utc(year: int, month: int, day: int) -> Tuple[str, str]:
    start = datetime(year, month, day, tzinfo=timezone.utc)
    end = start + timedelta(days=1)
    return (
        start.isoformat().replace("+00:00", "Z"),
        end.isoformat().replace("+00:00", "Z"),
    )


@lru_cache(maxsize=128)
def get_zone(name: Optional[str]) -> Optional[ZoneInfo]:
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def parse_timestamp(value: Any, tz_name: Optional[str] = None) -> Optional[datetime]:
    """
    Accepts what providers send for a moment in time:
      - ISO-8601 with Z or an offset           -> aware datetime
      - "2024-03-01 06:05+05:30" (AeroDataBox) -> aware datetime
      - naive ISO string                       -> localized to tz_name, else UTC
      - epoch seconds (int/float, FR24)        -> aware UTC datetime
    Returns None for anything unparseable.
    """
    if value is None or value == "" or value == 0:
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(float(value), tz=timezone.utc)
    if not isinstance(value, str):
        return None
    s = value.strip().replace("Z", "+00:00")
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=get_zone(tz_name) or timezone.utc)
    return dt


def localize_clock_time(day: date, hhmm: time, tz_name: Optional[str]) -> datetime:
    return datetime.combine(day, hhmm, tzinfo=get_zone(tz_name) or timezone.utc)


def minutes_between(start: Optional[datetime], end: Optional[datetime]) -> Optional[int]:
    if start is None or end is None:
        return None
    delta = (end - start).total_seconds() / 60.0
    if delta <= 0:
        return None
    return int(round(delta))


class _AsyncTokenBucket:
    """Simple async token bucket limiter shared by API clients."""

    def __init__(self, rate: float, burst: int):
        self.rate = float(rate)
        self.capacity = float(burst)
        self.tokens = float(burst)
        self.t: Optional[float] = None
        self._lock = asyncio.Lock()

    async def acquire(self, n: float = 1.0) -> None:
        async with self._lock:
            now = asyncio.get_running_loop().time()
            if self.t is None:
                self.t = now
            # Refill
            self.tokens = min(self.capacity, self.tokens + (now - self.t) * self.rate)
            self.t = now
            if self.tokens < n:
                wait = (n - self.tokens) / self.rate
                await asyncio.sleep(wait)
                self.tokens = 0.0
                self.t = asyncio.get_running_loop().time()
            else:
                self.tokens -= n
