from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional

import pytest

from flightxp.adapters import SourceAdapter
from flightxp.airports import airport_ref
from flightxp.cache import FlightCache
from flightxp.config import ResolverSettings
from flightxp.models import PartialFlightRecord
from flightxp.quota import QuotaTracker
from flightxp.stores import InMemoryCacheStore, InMemoryQuotaStore, InMemoryUserStatsStore


class FrozenClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeAdapter(SourceAdapter):
    """
    Scripted adapter. `result` is a record, None (no data) or an exception
    instance to raise; `results` scripts successive calls.
    """

    def __init__(
        self,
        name: str,
        result: Any = None,
        *,
        delay: float = 0.0,
        results: Optional[List[Any]] = None,
        rate_limited: bool = False,
        telemetry: bool = False,
    ) -> None:
        self.name = name
        self.result = result
        self.results = list(results) if results is not None else None
        self.delay = delay
        self.rate_limited = rate_limited
        self.telemetry = telemetry
        self.calls = 0

    async def _fetch(self, flight_number: str, flight_date: str) -> Optional[PartialFlightRecord]:
        self.calls += 1
        result = self.results.pop(0) if self.results else self.result
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(result, BaseException):
            raise result
        if isinstance(result, PartialFlightRecord):
            return result.model_copy(update={"flight_number": flight_number, "date": flight_date})
        return result


def make_record(
    source: str,
    origin: Optional[str] = "BOM",
    destination: Optional[str] = "BLR",
    **fields: Any,
) -> PartialFlightRecord:
    return PartialFlightRecord(
        source=source,
        flight_number=fields.pop("flight_number", "QP1457"),
        date=fields.pop("date", "2024-03-01"),
        origin=airport_ref(origin) if origin else None,
        destination=airport_ref(destination) if destination else None,
        **fields,
    )


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def cache(clock: FrozenClock) -> FlightCache:
    return FlightCache(InMemoryCacheStore(), ttl_seconds=365 * 86400.0, clock=clock)


@pytest.fixture
def quota(clock: FrozenClock) -> QuotaTracker:
    return QuotaTracker(daily_limit=100, store=InMemoryQuotaStore(), clock=clock, name="aerodatabox")


@pytest.fixture
def settings() -> ResolverSettings:
    return ResolverSettings(
        adapter_timeout_s=0.5,
        race_ceiling_s=1.0,
        sequential_timeout_s=0.5,
        telemetry_grace_s=0.2,
        cache_ttl_s=365 * 86400.0,
        synthesized_ttl_s=6 * 3600.0,
    )


@pytest.fixture
def stats_store() -> InMemoryUserStatsStore:
    return InMemoryUserStatsStore()
