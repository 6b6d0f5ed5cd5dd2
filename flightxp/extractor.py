"""
Heuristic extraction of flight facts from unstructured provider text.

Order of evidence, strongest first:
  1. schema.org Flight blocks (application/ld+json)
  2. explicit routes ("BOM → BLR", "BOM to BLR"), then "(BOM)" style codes,
     then bare 3-letter tokens
  3. city names from the airport table

Every airport candidate is checked against the reference table; tokens the
table does not know (CSS class names, acronyms) are dropped, never emitted.
"""

from __future__ import annotations

import html as _html
import json
import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from . import aircraft as aircraft_ref
from . import airlines as airline_ref
from . import airports as airport_ref
from .logging_utils import log_event
from .models import AirportRef, FlightStatus, PartialFlightRecord
from .patterns import patterns
from .utils import localize_clock_time, parse_timestamp

logger = logging.getLogger("flightxp.extractor")


# ─────────────────────────────────────────────
# STATUS
# ─────────────────────────────────────────────


def normalize_status(raw: Optional[str]) -> Optional[FlightStatus]:
    """Map free-text provider status ("Delayed 20 min", "EnRoute", "Arrived") to FlightStatus."""
    if not raw:
        return None
    s = raw.strip().lower()
    if not s:
        return None
    if "cancel" in s:
        return FlightStatus.CANCELLED
    if "delay" in s:
        return FlightStatus.DELAYED
    if "board" in s:
        return FlightStatus.BOARDING
    if "depart" in s:
        return FlightStatus.DEPARTED
    if any(k in s for k in ("in flight", "in-flight", "inflight", "airborne", "en route", "enroute", "in air", "active")):
        return FlightStatus.AIRBORNE
    if "land" in s or "arriv" in s:
        return FlightStatus.LANDED
    return FlightStatus.SCHEDULED


# ─────────────────────────────────────────────
# TEXT HELPERS
# ─────────────────────────────────────────────


def html_to_text(raw: str) -> str:
    """Drop script/style blocks and tags, unescape entities, collapse whitespace."""
    text = patterns.SCRIPT_STYLE.sub(" ", raw)
    text = patterns.TAG.sub(" ", text)
    text = _html.unescape(text)
    return patterns.WHITESPACE.sub(" ", text).strip()


def _dedupe(codes: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for c in codes:
        if c not in seen:
            seen.append(c)
    return seen


def _validated(codes: Iterable[str], method: str) -> List[str]:
    accepted: List[str] = []
    for code in codes:
        if airport_ref.is_known_airport(code):
            accepted.append(code)
        else:
            log_event(
                logger,
                "candidate_rejected",
                level=logging.DEBUG,
                candidate=code,
                method=method,
            )
    return _dedupe(accepted)


def extract_airport_codes(text: str) -> List[str]:
    """
    Validated IATA codes in order of appearance, strongest pattern first.
    An explicit route wins outright; otherwise parenthesized codes, then bare tokens.
    """
    for a, b in patterns.ROUTE.findall(text):
        route = _validated([a, b], "route")
        if len(route) == 2:
            return route

    paren = _validated(patterns.AIRPORT_PAREN.findall(text), "parenthesized")
    if len(paren) >= 2:
        return paren

    unzoned = patterns.TIME_ZONE_SUFFIX.sub(r"\1", text)
    bare = _validated(patterns.AIRPORT.findall(unzoned), "token")
    return _dedupe(paren + bare)


def extract_city_airports(text: str) -> List[str]:
    """City-name fallback: airports for every known city mentioned, ordered by first mention."""
    lowered = text.lower()
    hits: List[Tuple[int, str]] = []
    taken: List[Tuple[int, int]] = []
    for name in airport_ref.city_names():
        start = 0
        while True:
            idx = lowered.find(name, start)
            if idx < 0:
                break
            end = idx + len(name)
            start = end
            before = lowered[idx - 1] if idx > 0 else " "
            after = lowered[end] if end < len(lowered) else " "
            if before.isalnum() or after.isalnum():
                continue
            # "New Delhi" already claimed these characters; skip the inner "Delhi"
            if any(s <= idx < e for s, e in taken):
                continue
            taken.append((idx, end))
            ap = airport_ref.airports_for_city(name)[0]
            hits.append((idx, ap.iata))
    hits.sort()
    return _dedupe(code for _, code in hits)


def _to_24h(hour: int, minute: int, meridiem: Optional[str]) -> Optional[time]:
    if meridiem:
        if hour < 1 or hour > 12:
            return None
        m = meridiem.lower()
        if m == "a":
            hour = 0 if hour == 12 else hour
        else:
            hour = 12 if hour == 12 else hour + 12
    return time(hour, minute)


def extract_times(text: str) -> List[time]:
    out: List[time] = []
    for h, m, meridiem in patterns.TIME.findall(text):
        t = _to_24h(int(h), int(m), meridiem or None)
        if t is not None:
            out.append(t)
    return out


def schedule_from_clock_times(
    flight_date: date,
    departure: time,
    arrival: time,
    origin_tz: Optional[str],
    destination_tz: Optional[str],
) -> Tuple[datetime, datetime]:
    """
    Two local clock readings -> two aware datetimes.
    An arrival clock earlier than the departure clock means the next calendar day.
    """
    arrival_day = flight_date + timedelta(days=1) if arrival < departure else flight_date
    return (
        localize_clock_time(flight_date, departure, origin_tz),
        localize_clock_time(arrival_day, arrival, destination_tz),
    )


# ─────────────────────────────────────────────
# JSON-LD
# ─────────────────────────────────────────────


def _iter_ld_nodes(blob: Any) -> Iterable[Dict[str, Any]]:
    if isinstance(blob, list):
        for item in blob:
            yield from _iter_ld_nodes(item)
    elif isinstance(blob, dict):
        if "@graph" in blob:
            yield from _iter_ld_nodes(blob["@graph"])
        yield blob


def _ld_airport(node: Any) -> Optional[AirportRef]:
    if not isinstance(node, dict):
        return None
    code = str(node.get("iataCode") or "").strip().upper()
    known = airport_ref.airport_ref(code)
    if known is None and code:
        # Page-supplied coordinates do not vouch for an unknown code
        log_event(logger, "candidate_rejected", level=logging.DEBUG, candidate=code, method="json_ld")
    return known


def parse_json_ld_flight(
    raw_html: str, *, source: str, flight_number: str, flight_date: str
) -> Optional[PartialFlightRecord]:
    """First schema.org Flight node in the page, mapped to a partial record."""
    for block in patterns.LD_JSON.findall(raw_html):
        try:
            blob = json.loads(block.strip())
        except json.JSONDecodeError:
            log_event(logger, "json_ld_unparseable", level=logging.DEBUG, source=source)
            continue
        for node in _iter_ld_nodes(blob):
            if node.get("@type") != "Flight":
                continue
            origin = _ld_airport(node.get("departureAirport"))
            destination = _ld_airport(node.get("arrivalAirport"))
            airline = node.get("airline") or node.get("provider") or {}
            craft = node.get("aircraft")
            craft_name = craft.get("name") if isinstance(craft, dict) else craft
            craft_type = aircraft_ref.lookup_aircraft(craft_name) if craft_name else None
            return PartialFlightRecord(
                source=source,
                flight_number=flight_number,
                date=flight_date,
                origin=origin,
                destination=destination,
                airline_code=(airline.get("iataCode") if isinstance(airline, dict) else None),
                airline_name=(airline.get("name") if isinstance(airline, dict) else None),
                aircraft_code=craft_type.icao_code if craft_type else None,
                aircraft_model=craft_type.model if craft_type else craft_name,
                aircraft_manufacturer=craft_type.manufacturer if craft_type else None,
                scheduled_departure=parse_timestamp(
                    node.get("departureTime"), origin.timezone if origin else None
                ),
                scheduled_arrival=parse_timestamp(
                    node.get("arrivalTime"), destination.timezone if destination else None
                ),
                status=normalize_status(node.get("flightStatus")),
            )
    return None


# ─────────────────────────────────────────────
# ENTRY POINT
# ─────────────────────────────────────────────


def extract_flight(
    raw: str, *, source: str, flight_number: str, flight_date: str
) -> Optional[PartialFlightRecord]:
    """
    Best-effort partial record from a search page or snippet.
    Returns None when not even one endpoint could be identified.
    """
    structured = parse_json_ld_flight(
        raw, source=source, flight_number=flight_number, flight_date=flight_date
    )
    if structured and structured.is_complete():
        return structured

    text = html_to_text(raw)
    codes = extract_airport_codes(text)
    method = "codes"
    if len(codes) < 2:
        codes = _dedupe(codes + extract_city_airports(text))
        method = "cities"
    if not codes:
        log_event(logger, "extraction_empty", level=logging.DEBUG, source=source, flight_number=flight_number)
        return None

    origin = airport_ref.airport_ref(codes[0])
    destination = airport_ref.airport_ref(codes[1]) if len(codes) > 1 else None

    sched_out = sched_in = None
    times = extract_times(text)
    if origin and destination and len(times) >= 2:
        sched_out, sched_in = schedule_from_clock_times(
            date.fromisoformat(flight_date), times[0], times[1], origin.timezone, destination.timezone
        )

    airline_code = airline_ref.match_airline_name(text) or airline_ref.carrier_prefix(flight_number)
    airline = airline_ref.get_airline(airline_code)
    craft = aircraft_ref.lookup_aircraft(text)
    status_match = patterns.STATUS_WORDS.search(text)

    log_event(
        logger,
        "extraction_result",
        level=logging.DEBUG,
        source=source,
        method=method,
        codes=codes[:2],
        times=len(times),
    )

    return PartialFlightRecord(
        source=source,
        flight_number=flight_number,
        date=flight_date,
        origin=origin,
        destination=destination,
        airline_code=airline["iata"] if airline else airline_code,
        airline_name=airline["name"] if airline else None,
        aircraft_code=craft.icao_code if craft else None,
        aircraft_model=craft.model if craft else None,
        aircraft_manufacturer=craft.manufacturer if craft else None,
        scheduled_departure=sched_out,
        scheduled_arrival=sched_in,
        status=normalize_status(status_match.group(1)) if status_match else None,
    )
