"""
PartialFlightRecord -> EnrichedFlight.

Geometry is recomputed from coordinates; provider figures are only kept when
they agree with it. Duration precedence: timestamps, provider figure, then a
cruise-speed estimate that is flagged in provenance.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from . import aircraft as aircraft_ref
from . import airlines as airline_ref
from .config import DISTANCE_TOLERANCE
from .geo import estimate_duration_minutes, haversine_miles, within_tolerance
from .logging_utils import log_event
from .models import (
    AircraftInfo,
    AirlineInfo,
    EnrichedFlight,
    FlightStatus,
    PartialFlightRecord,
    Provenance,
    ProviderFailure,
    Schedule,
)
from .utils import minutes_between

logger = logging.getLogger("flightxp.normalizer")

SOURCE_CONFIDENCE = {
    "aerodatabox": 0.95,
    "aeroapi": 0.95,
    "fr24": 0.9,
    "search": 0.6,
}
DEFAULT_CONFIDENCE = 0.7
SYNTHESIZED_CONFIDENCE = 0.2


def resolve_distance(
    record: PartialFlightRecord, tolerance: float = DISTANCE_TOLERANCE
) -> Tuple[float, str]:
    """(miles, source) where source is computed / provider / unknown."""
    o, d = record.origin, record.destination
    if o is not None and d is not None and o.has_coordinates and d.has_coordinates:
        computed = haversine_miles(o.lat, o.lon, d.lat, d.lon)  # type: ignore[arg-type]
        provided = record.distance_miles
        if provided is not None and provided >= 0 and within_tolerance(provided, computed, tolerance):
            return round(provided, 1), "provider"
        if provided is not None:
            log_event(
                logger,
                "provider_distance_rejected",
                level=logging.DEBUG,
                source=record.source,
                provided=provided,
                computed=round(computed, 1),
            )
        return round(computed, 1), "computed"
    if record.distance_miles is not None and record.distance_miles >= 0:
        return round(record.distance_miles, 1), "provider"
    return 0.0, "unknown"


def resolve_duration(
    record: PartialFlightRecord, distance_miles: float, cruise_speed_kts: Optional[float]
) -> Tuple[int, str]:
    """(minutes, source) where source is timestamps / provider / estimated."""
    actual = minutes_between(record.actual_departure, record.actual_arrival)
    if actual is not None:
        return actual, "timestamps"
    scheduled = minutes_between(record.scheduled_departure, record.scheduled_arrival)
    if scheduled is not None:
        return scheduled, "timestamps"
    if record.duration_minutes is not None and record.duration_minutes > 0:
        return record.duration_minutes, "provider"
    if distance_miles > 0:
        return estimate_duration_minutes(distance_miles, cruise_speed_kts), "estimated"
    return 0, "unknown"


def _aircraft(record: PartialFlightRecord) -> AircraftInfo:
    craft = aircraft_ref.get_aircraft_type(record.aircraft_code) or aircraft_ref.lookup_aircraft(
        record.aircraft_model
    )
    model = record.aircraft_model or (craft.model if craft else None)
    manufacturer = record.aircraft_manufacturer or (craft.manufacturer if craft else None)
    return AircraftInfo(
        type_code=craft.icao_code if craft else record.aircraft_code,
        model=model,
        manufacturer=manufacturer,
        category=craft.category if craft else None,
        registration=record.registration,
        needs_user_input=not (model and manufacturer),
    )


def _airline(record: PartialFlightRecord) -> AirlineInfo:
    code = record.airline_code or airline_ref.carrier_prefix(record.flight_number)
    known = airline_ref.get_airline(code)
    return AirlineInfo(
        code=known["iata"] if known else code,
        icao=known["icao"] if known else None,
        name=record.airline_name or (known["name"] if known else None),
        country=known["country"] if known else None,
    )


def normalize(
    record: PartialFlightRecord,
    *,
    tolerance: float = DISTANCE_TOLERANCE,
    synthesized: bool = False,
    telemetry: Sequence[PartialFlightRecord] = (),
    failures: Sequence[ProviderFailure] = (),
    warnings: Sequence[str] = (),
) -> EnrichedFlight:
    if not record.is_complete():
        raise ValueError(f"cannot normalize incomplete record from {record.source}")

    distance, distance_source = resolve_distance(record, tolerance)
    aircraft = _aircraft(record)
    craft_type = aircraft_ref.get_aircraft_type(aircraft.type_code)
    duration, duration_source = resolve_duration(
        record, distance, craft_type.cruise_speed_kts if craft_type else None
    )

    notes: List[str] = list(warnings)
    confidence = SYNTHESIZED_CONFIDENCE if synthesized else SOURCE_CONFIDENCE.get(record.source, DEFAULT_CONFIDENCE)
    if duration_source == "estimated":
        notes.append("duration_estimated")
        confidence = min(confidence, 0.8)
    if not (record.origin.validated and record.destination.validated):  # type: ignore[union-attr]
        notes.append("unvalidated_airport")
        confidence = min(confidence, 0.6)

    status = record.status or FlightStatus.SCHEDULED
    position = record.position
    registration = aircraft.registration
    contributors = [record.source]
    for t in telemetry:
        if t.position is not None:
            position = t.position
        if t.registration and not registration:
            registration = t.registration
        if t.status == FlightStatus.AIRBORNE and status not in (FlightStatus.LANDED, FlightStatus.CANCELLED):
            status = FlightStatus.AIRBORNE
        contributors.append(t.source)
    if registration != aircraft.registration:
        aircraft = aircraft.model_copy(update={"registration": registration})

    return EnrichedFlight(
        flight_number=record.flight_number,
        date=record.date,
        airline=_airline(record),
        aircraft=aircraft,
        origin=record.origin,  # type: ignore[arg-type]
        destination=record.destination,  # type: ignore[arg-type]
        distance_miles=distance,
        duration_minutes=duration,
        schedule=Schedule(
            scheduled_departure=record.scheduled_departure,
            scheduled_arrival=record.scheduled_arrival,
            actual_departure=record.actual_departure,
            actual_arrival=record.actual_arrival,
        ),
        status=status,
        position=position,
        provenance=Provenance(
            source=record.source,
            confidence=confidence,
            synthesized=synthesized,
            distance_source=distance_source,  # type: ignore[arg-type]
            duration_source=duration_source,  # type: ignore[arg-type]
            contributors=contributors,
            warnings=notes,
            failures=list(failures),
        ),
    )
