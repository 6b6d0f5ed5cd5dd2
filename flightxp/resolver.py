"""
Resolution orchestrator.

    cache -> race every adapter -> sequential retry of the stragglers
          -> synthesize from route patterns -> NotFound

The ladder is an explicit state machine (ResolutionAttempt) so each rung
can be observed and tested on its own.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Sequence, Set, Tuple, Union

from .adapters import FetchOutcome, SourceAdapter
from .aeroapi_client import AeroAPIAdapter
from .aerodatabox_client import AeroDataBoxAdapter
from .cache import FlightCache
from .config import (
    AERODATABOX_KEY,
    FLIGHTAWARE_API_KEY,
    FLIGHTRADAR24_API_KEY,
    SEARCH_ENABLED,
    ResolverSettings,
)
from .errors import ResolutionExhausted
from .fr24_client import FR24Adapter
from .logging_utils import get_request_id, log_event, new_request_id, set_request_id
from .models import (
    EnrichedFlight,
    FailureKind,
    NotFound,
    PartialFlightRecord,
    ProviderFailure,
)
from .normalizer import normalize
from .opensky_client import OpenSkyAdapter
from .quota import QuotaTracker
from .search_client import SearchResultAdapter
from .synthesizer import synthesize
from .utils import normalize_flight_number

logger = logging.getLogger("flightxp.resolver")


# ─────────────────────────────────────────────
# STATE MACHINE
# ─────────────────────────────────────────────


class ResolutionState(str, Enum):
    PENDING = "pending"
    RACING = "racing"
    EXHAUSTED_CONCURRENT = "exhausted_concurrent"
    RETRYING_SEQUENTIAL = "retrying_sequential"
    SYNTHESIZING = "synthesizing"
    RESOLVED = "resolved"
    FAILED = "failed"


_TRANSITIONS: Dict[ResolutionState, Set[ResolutionState]] = {
    ResolutionState.PENDING: {ResolutionState.RACING, ResolutionState.RESOLVED},
    ResolutionState.RACING: {ResolutionState.RESOLVED, ResolutionState.EXHAUSTED_CONCURRENT},
    ResolutionState.EXHAUSTED_CONCURRENT: {
        ResolutionState.RETRYING_SEQUENTIAL,
        ResolutionState.SYNTHESIZING,
    },
    ResolutionState.RETRYING_SEQUENTIAL: {ResolutionState.RESOLVED, ResolutionState.SYNTHESIZING},
    ResolutionState.SYNTHESIZING: {ResolutionState.RESOLVED, ResolutionState.FAILED},
    ResolutionState.RESOLVED: set(),
    ResolutionState.FAILED: set(),
}

# Outcomes worth a second, slower attempt
_RETRYABLE_KINDS = {FailureKind.TIMEOUT, FailureKind.TRANSPORT}


class ResolutionAttempt:
    """Book-keeping for one resolve() call: state history, per-adapter outcomes, winner."""

    def __init__(self, flight_number: str, flight_date: str) -> None:
        self.flight_number = flight_number
        self.flight_date = flight_date
        self.state = ResolutionState.PENDING
        self.history: List[ResolutionState] = [ResolutionState.PENDING]
        self.outcomes: Dict[str, FetchOutcome] = {}
        self.skipped: List[str] = []
        self.retry_queue: List[str] = []
        self.winner: Optional[PartialFlightRecord] = None
        self.synthesized = False
        self.from_cache = False

    def advance(self, new_state: ResolutionState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"illegal resolution transition {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.history.append(new_state)

    def record(self, name: str, outcome: FetchOutcome) -> None:
        self.outcomes[name] = outcome

    @property
    def failures(self) -> List[ProviderFailure]:
        return [o for o in self.outcomes.values() if isinstance(o, ProviderFailure)]

    @property
    def attempted(self) -> List[str]:
        return list(self.outcomes.keys())


# ─────────────────────────────────────────────
# ORCHESTRATOR
# ─────────────────────────────────────────────


class FlightResolver:
    def __init__(
        self,
        adapters: Sequence[SourceAdapter],
        *,
        cache: Optional[FlightCache] = None,
        quota: Optional[QuotaTracker] = None,
        settings: Optional[ResolverSettings] = None,
    ) -> None:
        self.settings = settings or ResolverSettings()
        self.adapters: List[SourceAdapter] = [a for a in adapters if not a.telemetry]
        self.telemetry: List[SourceAdapter] = [a for a in adapters if a.telemetry]
        self.cache = cache or FlightCache(ttl_seconds=self.settings.cache_ttl_s)
        self.quota = quota or QuotaTracker()
        self.last_attempt: Optional[ResolutionAttempt] = None

    @classmethod
    def from_env(
        cls,
        *,
        cache: Optional[FlightCache] = None,
        quota: Optional[QuotaTracker] = None,
        settings: Optional[ResolverSettings] = None,
    ) -> "FlightResolver":
        """Register every adapter whose credentials are present in the environment."""
        settings = settings or ResolverSettings()
        timeout = settings.adapter_timeout_s
        adapters: List[SourceAdapter] = []
        if AERODATABOX_KEY:
            adapters.append(AeroDataBoxAdapter(AERODATABOX_KEY, timeout_s=timeout))
        if FLIGHTAWARE_API_KEY:
            adapters.append(AeroAPIAdapter(FLIGHTAWARE_API_KEY, timeout_s=timeout))
        if FLIGHTRADAR24_API_KEY:
            adapters.append(FR24Adapter(FLIGHTRADAR24_API_KEY, timeout_s=timeout))
        if SEARCH_ENABLED:
            adapters.append(SearchResultAdapter(timeout_s=timeout))
        adapters.append(OpenSkyAdapter(timeout_s=timeout))

        for name, key in (
            ("aerodatabox", AERODATABOX_KEY),
            ("aeroapi", FLIGHTAWARE_API_KEY),
            ("fr24", FLIGHTRADAR24_API_KEY),
        ):
            if not key:
                log_event(logger, "adapter_not_configured", adapter=name)

        return cls(adapters, cache=cache, quota=quota, settings=settings)

    async def aclose(self) -> None:
        for adapter in [*self.adapters, *self.telemetry]:
            await adapter.aclose()

    async def __aenter__(self) -> "FlightResolver":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ---------------- adapter calls ----------------

    def _admit(self, adapter: SourceAdapter, attempt: ResolutionAttempt) -> bool:
        """Quota gate for rate-limited adapters; every admitted call consumes one unit."""
        if not adapter.rate_limited:
            return True
        if self.quota.try_acquire():
            return True
        attempt.skipped.append(adapter.name)
        attempt.record(adapter.name, adapter.failure(FailureKind.QUOTA_EXCEEDED, "daily quota exhausted"))
        log_event(
            logger,
            "adapter_skipped_quota",
            level=logging.WARNING,
            adapter=adapter.name,
            remaining=self.quota.remaining(),
        )
        return False

    async def _call(
        self, adapter: SourceAdapter, flight_number: str, flight_date: str, timeout: float
    ) -> FetchOutcome:
        try:
            outcome = await asyncio.wait_for(adapter.fetch(flight_number, flight_date), timeout)
        except asyncio.TimeoutError:
            outcome = adapter.failure(FailureKind.TIMEOUT, f"no answer within {timeout:.1f}s")
        except Exception as e:
            log_event(
                logger,
                "adapter_crashed",
                level=logging.ERROR,
                adapter=adapter.name,
                error=f"{type(e).__name__}: {e}",
            )
            outcome = adapter.failure(FailureKind.TRANSPORT, f"{type(e).__name__}: {e}")
        if isinstance(outcome, ProviderFailure):
            log_event(
                logger,
                "adapter_failed",
                level=logging.INFO if outcome.kind == FailureKind.NO_DATA else logging.WARNING,
                adapter=adapter.name,
                kind=outcome.kind.value,
                detail=outcome.message,
            )
        return outcome

    @staticmethod
    async def _cancel(tasks: Sequence["asyncio.Task[FetchOutcome]"]) -> None:
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ---------------- ladder rungs ----------------

    async def _race(
        self, attempt: ResolutionAttempt, flight_number: str, flight_date: str
    ) -> None:
        attempt.advance(ResolutionState.RACING)
        racers = [a for a in self.adapters if self._admit(a, attempt)]
        order = {a.name: i for i, a in enumerate(self.adapters)}
        tasks: Dict["asyncio.Task[FetchOutcome]", SourceAdapter] = {
            asyncio.create_task(
                self._call(a, flight_number, flight_date, self.settings.adapter_timeout_s)
            ): a
            for a in racers
        }

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.settings.race_ceiling_s
        pending: Set["asyncio.Task[FetchOutcome]"] = set(tasks)

        while pending and attempt.winner is None:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            done, pending = await asyncio.wait(
                pending, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
            )
            batch: List[Tuple[int, PartialFlightRecord]] = []
            for task in sorted(done, key=lambda t: order[tasks[t].name]):
                adapter = tasks[task]
                outcome = task.result()
                attempt.record(adapter.name, outcome)
                if isinstance(outcome, PartialFlightRecord) and outcome.is_complete():
                    batch.append((order[adapter.name], outcome))
            if batch:
                # Richest schema wins among results available together; registration order breaks ties
                batch.sort(key=lambda item: (-item[1].richness(), item[0]))
                attempt.winner = batch[0][1]

        if attempt.winner is not None:
            await self._cancel(list(pending))
            log_event(
                logger,
                "race_winner",
                adapter=attempt.winner.source,
                abandoned=[tasks[t].name for t in pending],
            )
            attempt.advance(ResolutionState.RESOLVED)
            return

        if pending:
            log_event(
                logger,
                "race_ceiling_reached",
                level=logging.WARNING,
                ceiling_s=self.settings.race_ceiling_s,
                pending=[tasks[t].name for t in pending],
            )
            for t in pending:
                attempt.record(tasks[t].name, tasks[t].failure(FailureKind.TIMEOUT, "race ceiling reached"))
            await self._cancel(list(pending))

        attempt.retry_queue = [
            a.name
            for a in racers
            if isinstance(attempt.outcomes.get(a.name), ProviderFailure)
            and attempt.outcomes[a.name].kind in _RETRYABLE_KINDS  # type: ignore[union-attr]
        ]
        attempt.advance(ResolutionState.EXHAUSTED_CONCURRENT)

    async def _retry_sequential(
        self, attempt: ResolutionAttempt, flight_number: str, flight_date: str
    ) -> None:
        attempt.advance(ResolutionState.RETRYING_SEQUENTIAL)
        for adapter in self.adapters:
            if adapter.name not in attempt.retry_queue:
                continue
            if not self._admit(adapter, attempt):
                continue
            log_event(logger, "sequential_retry", adapter=adapter.name)
            outcome = await self._call(
                adapter, flight_number, flight_date, self.settings.sequential_timeout_s
            )
            attempt.record(adapter.name, outcome)
            if isinstance(outcome, PartialFlightRecord) and outcome.is_complete():
                attempt.winner = outcome
                attempt.advance(ResolutionState.RESOLVED)
                return
        attempt.advance(ResolutionState.SYNTHESIZING)

    def _synthesize(self, attempt: ResolutionAttempt, flight_number: str, flight_date: str) -> None:
        record = synthesize(flight_number, flight_date) if self.settings.synthesize else None
        if record is None or not record.is_complete():
            attempt.advance(ResolutionState.FAILED)
            return
        log_event(
            logger,
            "synthesized_fallback",
            level=logging.WARNING,
            flight_number=flight_number,
            route=f"{record.origin.iata}-{record.destination.iata}",  # type: ignore[union-attr]
        )
        attempt.winner = record
        attempt.synthesized = True
        attempt.advance(ResolutionState.RESOLVED)

    async def _telemetry(self, tasks: List["asyncio.Task[FetchOutcome]"]) -> List[PartialFlightRecord]:
        if not tasks:
            return []
        done, pending = await asyncio.wait(tasks, timeout=self.settings.telemetry_grace_s)
        await self._cancel(list(pending))
        out: List[PartialFlightRecord] = []
        for t in done:
            outcome = t.result()
            if isinstance(outcome, PartialFlightRecord):
                out.append(outcome)
        return out

    # ---------------- public API ----------------

    async def resolve(self, flight_number: str, flight_date: str) -> Union[EnrichedFlight, NotFound]:
        """
        Resolve one flight. Never raises for provider trouble; NotFound when
        every adapter and the synthetic fallback came up empty.
        """
        fn = normalize_flight_number(flight_number)
        day = date.fromisoformat(flight_date.strip()).isoformat()
        owns_rid = get_request_id() is None
        if owns_rid:
            new_request_id()
        try:
            return await self._resolve(fn, day)
        finally:
            if owns_rid:
                set_request_id(None)

    async def _resolve(self, fn: str, day: str) -> Union[EnrichedFlight, NotFound]:
        attempt = ResolutionAttempt(fn, day)
        self.last_attempt = attempt
        log_event(logger, "resolution_started", flight_number=fn, date=day)

        cached = self.cache.get(fn, day)
        if cached is not None:
            attempt.from_cache = True
            attempt.advance(ResolutionState.RESOLVED)
            log_event(logger, "cache_hit", flight_number=fn, date=day)
            return cached

        tele_tasks = [
            asyncio.create_task(self._call(t, fn, day, self.settings.adapter_timeout_s))
            for t in self.telemetry
        ]
        try:
            await self._race(attempt, fn, day)
            if attempt.state == ResolutionState.EXHAUSTED_CONCURRENT:
                if attempt.retry_queue:
                    await self._retry_sequential(attempt, fn, day)
                else:
                    attempt.advance(ResolutionState.SYNTHESIZING)
            if attempt.state == ResolutionState.SYNTHESIZING:
                self._synthesize(attempt, fn, day)
        except BaseException:
            await self._cancel(tele_tasks)
            raise

        if attempt.state == ResolutionState.FAILED or attempt.winner is None:
            await self._cancel(tele_tasks)
            log_event(
                logger,
                "resolution_exhausted",
                level=logging.WARNING,
                flight_number=fn,
                date=day,
                attempted=attempt.attempted,
            )
            return NotFound(
                flight_number=fn,
                date=day,
                attempted=attempt.attempted,
                failures=attempt.failures,
            )

        telemetry = await self._telemetry(tele_tasks)
        flight = normalize(
            attempt.winner,
            tolerance=self.settings.distance_tolerance,
            synthesized=attempt.synthesized,
            telemetry=telemetry,
            failures=attempt.failures,
            warnings=["synthesized_route"] if attempt.synthesized else [],
        )
        ttl = self.settings.synthesized_ttl_s if attempt.synthesized else self.settings.cache_ttl_s
        entry = self.cache.put(flight, ttl_seconds=ttl)
        log_event(
            logger,
            "flight_resolved",
            flight_number=fn,
            date=day,
            source=flight.provenance.source,
            route=flight.route_key,
            distance_miles=flight.distance_miles,
            states=[s.value for s in attempt.history],
        )
        return entry.payload

    async def resolve_or_raise(self, flight_number: str, flight_date: str) -> EnrichedFlight:
        result = await self.resolve(flight_number, flight_date)
        if isinstance(result, NotFound):
            raise ResolutionExhausted(result.flight_number, result.date, result.attempted)
        return result
