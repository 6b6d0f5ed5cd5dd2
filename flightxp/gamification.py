"""
Scoring engine: (EnrichedFlight, prior UserStats) -> ScoreResult.

score() performs no I/O and never raises for a valid EnrichedFlight. Bonuses
are additive and reported individually in xp_breakdown.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from .achievements import newly_unlocked
from .aircraft import is_wide_body
from .airports import get_airport
from .models import (
    AircraftCategory,
    AirportRef,
    EnrichedFlight,
    FlightSummary,
    LevelInfo,
    ScoreResult,
    UserStats,
    UserStatsDelta,
)
from .utils import get_zone

XP_PER_LEVEL = 1000

BASE_XP = 100
INTERNATIONAL_BONUS = 200
LONG_HAUL_BONUS = 300
WIDE_BODY_BONUS = 150
FIRST_AIRPORT_BONUS = 100
FIRST_COUNTRY_BONUS = 200
RED_EYE_BONUS = 75

LONG_HAUL_MINUTES = 360
RED_EYE_BEFORE_HOUR = 6
RED_EYE_AFTER_HOUR = 22

LEVEL_TITLES = [
    "Ground Crew",
    "Student Pilot",
    "Private Pilot",
    "Commercial Pilot",
    "Airline Pilot",
    "Captain",
    "Senior Captain",
    "Chief Pilot",
    "Training Captain",
    "Fleet Captain",
    "Aviation Expert",
    "Sky Master",
    "Flight Legend",
    "Aviation Icon",
    "Sky God",
]


# ─────────────────────────────────────────────
# LEVELS
# ─────────────────────────────────────────────


def level_for(total_xp: int) -> int:
    return max(total_xp, 0) // XP_PER_LEVEL + 1


def level_title(level: int) -> str:
    return LEVEL_TITLES[min(max(level, 1), len(LEVEL_TITLES)) - 1]


def level_info(total_xp: int) -> LevelInfo:
    level = level_for(total_xp)
    return LevelInfo(
        level=level,
        total_xp=total_xp,
        xp_into_level=total_xp - (level - 1) * XP_PER_LEVEL,
        xp_to_next_level=level * XP_PER_LEVEL - total_xp,
        title=level_title(level),
    )


# ─────────────────────────────────────────────
# FLIGHT FACTS
# ─────────────────────────────────────────────


def _continent(ref: AirportRef) -> Optional[str]:
    if ref.continent:
        return ref.continent
    known = get_airport(ref.iata)
    return known.continent if known else None


def _local_departure(flight: EnrichedFlight) -> Optional[datetime]:
    dep = flight.schedule.scheduled_departure
    if dep is None:
        return None
    tz_name = flight.origin.timezone
    if not tz_name:
        known = get_airport(flight.origin.iata)
        tz_name = known.timezone if known else None
    zone = get_zone(tz_name)
    if zone is not None and dep.tzinfo is not None:
        return dep.astimezone(zone)
    return dep


def is_red_eye(flight: EnrichedFlight) -> bool:
    """Scheduled departure before 06:00 or after 22:59 in the origin's local time."""
    local = _local_departure(flight)
    if local is None:
        return False
    return local.hour < RED_EYE_BEFORE_HOUR or local.hour > RED_EYE_AFTER_HOUR


def is_long_haul(flight: EnrichedFlight) -> bool:
    return flight.duration_minutes > LONG_HAUL_MINUTES


def is_wide_body_flight(flight: EnrichedFlight) -> bool:
    if flight.aircraft.category is not None:
        return flight.aircraft.category == AircraftCategory.WIDE_BODY
    return is_wide_body(flight.aircraft.type_code) or is_wide_body(flight.aircraft.model)


def _fresh(values: Iterable[Optional[str]], seen: Iterable[str]) -> List[str]:
    known = set(seen)
    out: List[str] = []
    for v in values:
        if v and v not in known and v not in out:
            out.append(v)
    return out


def _summary(flight: EnrichedFlight) -> FlightSummary:
    return FlightSummary(
        flight_number=flight.flight_number,
        date=flight.date,
        route=flight.route_key,
        distance_miles=flight.distance_miles,
        duration_minutes=flight.duration_minutes,
    )


# ─────────────────────────────────────────────
# SCORING
# ─────────────────────────────────────────────


def build_delta(flight: EnrichedFlight, prior: UserStats) -> UserStatsDelta:
    """Everything this flight adds to `prior`, XP excluded."""
    endpoints = (flight.origin, flight.destination)
    # Airports the reference table cannot vouch for do not enter the visited set
    new_airports = _fresh((ref.iata for ref in endpoints if ref.validated), prior.airports)
    return UserStatsDelta(
        distance_miles=flight.distance_miles,
        minutes=flight.duration_minutes,
        new_airports=new_airports,
        new_countries=_fresh((ref.country for ref in endpoints), prior.countries),
        new_continents=_fresh((_continent(ref) for ref in endpoints), prior.continents),
        new_airlines=_fresh([flight.airline.code], prior.airlines),
        new_aircraft_models=_fresh([flight.aircraft.model], prior.aircraft_models),
        new_manufacturers=_fresh([flight.aircraft.manufacturer], prior.manufacturers),
        route=flight.route_key,
        summary=_summary(flight),
        night_flight=is_red_eye(flight),
        wide_body=is_wide_body_flight(flight),
        international=flight.is_international,
        long_haul=is_long_haul(flight),
    )


def xp_breakdown(flight: EnrichedFlight, delta: UserStatsDelta) -> Dict[str, int]:
    breakdown: Dict[str, int] = {
        "base": BASE_XP,
        "distance": max(int(round(flight.distance_miles)), 0),
    }
    if delta.international:
        breakdown["international"] = INTERNATIONAL_BONUS
    if delta.long_haul:
        breakdown["long_haul"] = LONG_HAUL_BONUS
    if delta.wide_body:
        breakdown["wide_body"] = WIDE_BODY_BONUS
    if delta.new_airports:
        breakdown["first_airport"] = FIRST_AIRPORT_BONUS * len(delta.new_airports)
    # Country bonus only rewards crossing a border
    if delta.international and delta.new_countries:
        breakdown["first_country"] = FIRST_COUNTRY_BONUS * len(delta.new_countries)
    if delta.night_flight:
        breakdown["red_eye"] = RED_EYE_BONUS
    return breakdown


def _merge(existing: List[str], new: List[str]) -> List[str]:
    return sorted(set(existing) | set(new))


def apply_delta(stats: UserStats, delta: UserStatsDelta) -> UserStats:
    """Pure: returns a new UserStats; `stats` is not modified."""
    route_counts = dict(stats.route_counts)
    if delta.route:
        route_counts[delta.route] = route_counts.get(delta.route, 0) + 1

    longest, shortest = stats.longest_flight, stats.shortest_flight
    s = delta.summary
    if s is not None:
        if longest is None or s.distance_miles > longest.distance_miles:
            longest = s
        if s.distance_miles > 0 and (shortest is None or s.distance_miles < shortest.distance_miles):
            shortest = s

    return stats.model_copy(
        update={
            "total_flights": stats.total_flights + delta.flights,
            "total_distance_miles": round(stats.total_distance_miles + delta.distance_miles, 1),
            "total_minutes": stats.total_minutes + delta.minutes,
            "airports": _merge(stats.airports, delta.new_airports),
            "countries": _merge(stats.countries, delta.new_countries),
            "continents": _merge(stats.continents, delta.new_continents),
            "airlines": _merge(stats.airlines, delta.new_airlines),
            "aircraft_models": _merge(stats.aircraft_models, delta.new_aircraft_models),
            "manufacturers": _merge(stats.manufacturers, delta.new_manufacturers),
            "longest_flight": longest,
            "shortest_flight": shortest,
            "route_counts": route_counts,
            "night_flights": stats.night_flights + int(delta.night_flight),
            "wide_body_flights": stats.wide_body_flights + int(delta.wide_body),
            "international_flights": stats.international_flights + int(delta.international),
            "domestic_flights": stats.domestic_flights + int(not delta.international),
            "long_haul_flights": stats.long_haul_flights + int(delta.long_haul),
            "total_xp": stats.total_xp + delta.xp,
            "unlocked_achievements": list(stats.unlocked_achievements),
        },
        deep=True,
    )


def score(flight: EnrichedFlight, prior_stats: UserStats) -> ScoreResult:
    """
    Score one flight against the user's totals before it.

    next_stats.total_xp == prior_stats.total_xp + xp_delta. Achievement XP
    rewards are catalogue metadata and are not added to the total.
    """
    delta = build_delta(flight, prior_stats)
    breakdown = xp_breakdown(flight, delta)
    xp = sum(breakdown.values())
    delta = delta.model_copy(update={"xp": xp})

    next_stats = apply_delta(prior_stats, delta)
    unlocked = newly_unlocked(next_stats)
    if unlocked:
        next_stats = next_stats.model_copy(
            update={"unlocked_achievements": next_stats.unlocked_achievements + unlocked}
        )

    return ScoreResult(
        xp_delta=xp,
        xp_breakdown=breakdown,
        new_achievements=unlocked,
        delta=delta,
        next_stats=next_stats,
        level_before=level_for(prior_stats.total_xp),
        level=level_for(next_stats.total_xp),
    )
