from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from .adapters import HttpSourceAdapter
from .aircraft import lookup_aircraft
from .airports import resolve_airport_ref
from .config import (
    AERODATABOX_BASE_URL,
    AERODATABOX_BURST,
    AERODATABOX_HOST,
    AERODATABOX_MAX_RPS,
)
from .errors import MalformedResponse
from .extractor import normalize_status
from .logging_utils import log_event
from .models import AirportRef, PartialFlightRecord
from .utils import parse_timestamp

logger = logging.getLogger("flightxp.aerodatabox")

SOURCE = "aerodatabox"


def _airport(side: Dict[str, Any]) -> Optional[AirportRef]:
    ap = side.get("airport") or side
    if not isinstance(ap, dict):
        return None
    loc = ap.get("location") or {}
    return resolve_airport_ref(
        ap.get("iata") or ap.get("iataCode"),
        ap.get("icao") or ap.get("icaoCode"),
        name=ap.get("name"),
        city=ap.get("municipalityName") or ap.get("city"),
        country=ap.get("countryCode"),
        timezone=ap.get("timeZone"),
        lat=loc.get("lat") if isinstance(loc, dict) else None,
        lon=loc.get("lon") if isinstance(loc, dict) else None,
    )


def _moment(side: Dict[str, Any], kind: str, tz: Optional[str]) -> Any:
    """
    AeroDataBox has shipped two shapes over time:
      {"scheduledTime": {"utc": "...Z", "local": "...+05:30"}}
      {"scheduledTimeLocal": "...", "scheduledTimeUtc": "..."}
    """
    nested = side.get(f"{kind}Time")
    if isinstance(nested, dict):
        return parse_timestamp(nested.get("utc") or nested.get("local"), tz)
    return parse_timestamp(
        side.get(f"{kind}TimeUtc") or side.get(f"{kind}TimeLocal") or nested, tz
    )


def parse_aerodatabox(
    body: Any, flight_number: str, flight_date: str
) -> Optional[PartialFlightRecord]:
    if body is None:
        return None
    flights: List[Any]
    if isinstance(body, list):
        flights = body
    elif isinstance(body, dict):
        flights = body.get("flights") or body.get("items") or [body]
    else:
        raise MalformedResponse(SOURCE, f"unexpected payload type {type(body).__name__}")
    if not flights:
        return None
    flight = flights[0]
    if not isinstance(flight, dict):
        raise MalformedResponse(SOURCE, "flight entry is not an object")

    dep = flight.get("departure") or {}
    arr = flight.get("arrival") or {}
    origin = _airport(dep)
    destination = _airport(arr)
    airline = flight.get("airline") or {}
    craft = flight.get("aircraft") or {}
    model_text = craft.get("model")
    craft_type = lookup_aircraft(model_text)
    distance = (flight.get("greatCircleDistance") or {}).get("mile")

    return PartialFlightRecord(
        source=SOURCE,
        flight_number=flight_number,
        date=flight_date,
        origin=origin,
        destination=destination,
        airline_code=airline.get("iata"),
        airline_name=airline.get("name"),
        aircraft_code=craft_type.icao_code if craft_type else None,
        aircraft_model=craft_type.model if craft_type else model_text,
        aircraft_manufacturer=craft_type.manufacturer if craft_type else None,
        registration=craft.get("reg"),
        scheduled_departure=_moment(dep, "scheduled", origin.timezone if origin else None),
        scheduled_arrival=_moment(arr, "scheduled", destination.timezone if destination else None),
        actual_departure=_moment(dep, "runway", origin.timezone if origin else None)
        or _moment(dep, "revised", origin.timezone if origin else None),
        actual_arrival=_moment(arr, "runway", destination.timezone if destination else None)
        or _moment(arr, "revised", destination.timezone if destination else None),
        distance_miles=float(distance) if distance is not None else None,
        status=normalize_status(flight.get("status")),
    )


class AeroDataBoxAdapter(HttpSourceAdapter):
    """
    AeroDataBox via RapidAPI. Billed per call, so it is the quota-gated adapter.

    Endpoint used:
      - GET /flights/number/{ident}/{yyyy-mm-dd}?withLocation=true
    """

    name = SOURCE
    rate_limited = True
    max_rps = AERODATABOX_MAX_RPS
    burst = AERODATABOX_BURST

    def __init__(self, api_key: str, **kwargs: Any) -> None:
        self._api_key = api_key
        super().__init__(**kwargs)

    def _headers(self) -> Dict[str, str]:
        return {
            "X-RapidAPI-Key": self._api_key,
            "X-RapidAPI-Host": AERODATABOX_HOST,
            "Accept": "application/json",
        }

    async def _fetch(self, flight_number: str, flight_date: str) -> Optional[PartialFlightRecord]:
        url = f"{AERODATABOX_BASE_URL}/flights/number/{quote(flight_number)}/{quote(flight_date)}"
        body = await self._get(
            url,
            {"withLocation": "true", "withAircraftImage": "false"},
            headers=self._headers(),
        )
        record = parse_aerodatabox(body, flight_number, flight_date)
        log_event(
            logger,
            "aerodatabox_result",
            flight_number=flight_number,
            found=record is not None,
            complete=bool(record and record.is_complete()),
        )
        return record
