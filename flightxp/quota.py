"""
Daily quota for the costliest provider class.

One shared counter keyed by UTC calendar day. The clock and the backing
store are injected so rollover and concurrent consumption can be simulated.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from .config import AERODATABOX_DAILY_QUOTA
from .logging_utils import log_event
from .stores import InMemoryQuotaStore, QuotaStore

logger = logging.getLogger("flightxp.quota")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class QuotaTracker:
    def __init__(
        self,
        daily_limit: int = AERODATABOX_DAILY_QUOTA,
        store: Optional[QuotaStore] = None,
        clock: Clock = utc_now,
        name: str = "rate_limited",
    ) -> None:
        self.daily_limit = daily_limit
        self.store = store if store is not None else InMemoryQuotaStore()
        self.clock = clock
        self.name = name
        self._last_day: Optional[str] = None

    def day_key(self) -> str:
        now = self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        day = now.astimezone(timezone.utc).strftime("%Y-%m-%d")
        if day != self._last_day:
            if self._last_day is not None:
                log_event(logger, "quota_day_rollover", quota=self.name, previous=self._last_day, day=day)
                prune = getattr(self.store, "prune", None)
                if callable(prune):
                    prune(f"{self.name}:", f"{self.name}:{day}")
            self._last_day = day
        return f"{self.name}:{day}"

    def used(self) -> int:
        return self.store.get(self.day_key())

    def remaining(self) -> int:
        return max(0, self.daily_limit - self.used())

    def try_acquire(self) -> bool:
        """Consume one attempt; False once today's cap is reached."""
        count = self.store.increment_if_below(self.day_key(), self.daily_limit)
        if count is None:
            log_event(
                logger,
                "quota_exhausted",
                level=logging.WARNING,
                quota=self.name,
                limit=self.daily_limit,
            )
            return False
        return True
