# pipeline.py
from __future__ import annotations

import logging
from typing import Dict, Optional, Union

from .aircraft import lookup_aircraft
from .config import STATS_MAX_RETRIES
from .errors import StatsApplicationConflict
from .gamification import score
from .logging_utils import get_logger, get_request_id, log_event, new_request_id, set_request_id
from .models import EnrichedFlight, FlightOverrides, LoggedFlight, NotFound, UserStats
from .resolver import FlightResolver
from .stores import UserStatsStore

logger = get_logger("flightxp.pipeline")

_STAGES = ("resolve", "score", "log_flight")


def apply_overrides(flight: EnrichedFlight, overrides: Optional[FlightOverrides]) -> EnrichedFlight:
    """
    User-supplied corrections on top of a resolved flight. Returns a copy;
    the resolver's cached record is never touched.
    """
    if overrides is None:
        return flight

    aircraft_update: Dict[str, object] = {}
    if overrides.aircraft_model:
        aircraft_update["model"] = overrides.aircraft_model
        known = lookup_aircraft(overrides.aircraft_model)
        if known is not None:
            aircraft_update["type_code"] = known.icao_code
            aircraft_update["category"] = known.category
            if not overrides.aircraft_manufacturer:
                aircraft_update["manufacturer"] = known.manufacturer
    if overrides.aircraft_manufacturer:
        aircraft_update["manufacturer"] = overrides.aircraft_manufacturer
    if overrides.registration:
        aircraft_update["registration"] = overrides.registration.strip().upper()

    update: Dict[str, object] = {}
    if aircraft_update:
        aircraft_update["needs_user_input"] = False
        update["aircraft"] = flight.aircraft.model_copy(update=aircraft_update)
        update["provenance"] = flight.provenance.model_copy(
            update={"contributors": flight.provenance.contributors + ["user_override"]}
        )
    if overrides.seat_class is not None:
        update["seat_class"] = overrides.seat_class
    return flight.model_copy(update=update, deep=True) if update else flight


class FlightLogPipeline:
    """
    resolve -> overrides -> score -> persist.

    The stats store does compare-and-swap on UserStats.version; on a stale
    read the stats are re-fetched and the flight is re-scored against them.
    """

    def __init__(
        self,
        resolver: FlightResolver,
        stats_store: UserStatsStore,
        max_retries: int = STATS_MAX_RETRIES,
    ) -> None:
        self.resolver = resolver
        self.stats_store = stats_store
        self.max_retries = max_retries

    def _load(self, user_id: str) -> UserStats:
        return self.stats_store.get(user_id) or UserStats(user_id=user_id)

    async def log_flight(
        self,
        flight_number: str,
        flight_date: str,
        user_id: str,
        overrides: Optional[FlightOverrides] = None,
    ) -> Union[LoggedFlight, NotFound]:
        owns_rid = get_request_id() is None
        if owns_rid:
            new_request_id()
        try:
            return await self._log_flight(flight_number, flight_date, user_id, overrides)
        finally:
            if owns_rid:
                set_request_id(None)

    async def _log_flight(
        self,
        flight_number: str,
        flight_date: str,
        user_id: str,
        overrides: Optional[FlightOverrides],
    ) -> Union[LoggedFlight, NotFound]:
        logger.start_timer("log_flight")
        try:
            return await self._run_stages(flight_number, flight_date, user_id, overrides)
        finally:
            # Timers left open by a raising stage; ended ones are already popped
            for stage in _STAGES:
                logger.end_timer(stage)

    async def _run_stages(
        self,
        flight_number: str,
        flight_date: str,
        user_id: str,
        overrides: Optional[FlightOverrides],
    ) -> Union[LoggedFlight, NotFound]:
        timing: Dict[str, float] = {}

        logger.start_timer("resolve")
        resolved = await self.resolver.resolve(flight_number, flight_date)
        timing["resolve"] = logger.end_timer("resolve")
        if isinstance(resolved, NotFound):
            timing["total"] = logger.end_timer("log_flight")
            return resolved

        flight = apply_overrides(resolved, overrides)

        logger.start_timer("score")
        attempts = 0
        while True:
            attempts += 1
            prior = self._load(user_id)
            result = score(flight, prior)
            try:
                saved = self.stats_store.save(result.next_stats, expected_version=prior.version)
                break
            except StatsApplicationConflict as exc:
                if attempts > self.max_retries:
                    raise
                log_event(
                    logger.logger,
                    "stats_conflict_retry",
                    level=logging.WARNING,
                    user_id=user_id,
                    attempt=attempts,
                    expected_version=exc.expected_version,
                    actual_version=exc.actual_version,
                )
        timing["score"] = logger.end_timer("score")
        timing["total"] = logger.end_timer("log_flight")

        log_event(
            logger.logger,
            "flight_scored",
            user_id=user_id,
            flight_number=flight.flight_number,
            date=flight.date,
            xp_delta=result.xp_delta,
            new_achievements=result.new_achievements,
            level=result.level,
            leveled_up=result.leveled_up,
        )
        return LoggedFlight(
            flight=flight,
            score=result,
            stats=saved,
            attempts=attempts,
            processing_time=timing,
        )
