"""
TTL cache for resolved flights.

Keyed by normalized flight number and date ("QP1457_2024-03-01"). Entries
older than their TTL are misses and are never served stale.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from .config import CACHE_TTL_DAYS
from .logging_utils import log_event
from .models import CacheEntry, EnrichedFlight
from .quota import Clock, utc_now
from .stores import CacheStore, InMemoryCacheStore

logger = logging.getLogger("flightxp.cache")


def cache_key(flight_number: str, flight_date: str) -> str:
    return f"{flight_number}_{flight_date}"


class FlightCache:
    def __init__(
        self,
        store: Optional[CacheStore] = None,
        ttl_seconds: float = CACHE_TTL_DAYS * 86400.0,
        clock: Clock = utc_now,
    ) -> None:
        self.store = store if store is not None else InMemoryCacheStore()
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    def get(self, flight_number: str, flight_date: str) -> Optional[EnrichedFlight]:
        key = cache_key(flight_number, flight_date)
        raw = self.store.get(key)
        if raw is None:
            return None
        try:
            entry = CacheEntry.model_validate_json(raw)
        except ValidationError as e:
            log_event(logger, "cache_entry_corrupt", level=logging.WARNING, key=key, error=str(e))
            self.store.delete(key)
            return None
        if not entry.is_fresh(self.clock()):
            log_event(logger, "cache_expired", level=logging.DEBUG, key=key)
            return None
        return entry.payload

    def put(
        self,
        flight: EnrichedFlight,
        ttl_seconds: Optional[float] = None,
    ) -> CacheEntry:
        key = cache_key(flight.flight_number, flight.date)
        entry = CacheEntry(
            key=key,
            payload=flight,
            created_at=self.clock(),
            ttl_seconds=self.ttl_seconds if ttl_seconds is None else ttl_seconds,
        )
        self.store.set(key, entry.model_dump_json())
        return entry

    def invalidate(self, flight_number: str, flight_date: str) -> None:
        self.store.delete(cache_key(flight_number, flight_date))
