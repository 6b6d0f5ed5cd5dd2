from __future__ import annotations

import logging
import time
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .adapters import HttpSourceAdapter
from .aircraft import get_aircraft_type, lookup_aircraft
from .airports import resolve_airport_ref
from .config import FR24_BASE_URL, FR24_BURST, FR24_MAX_RPS
from .errors import MalformedResponse
from .extractor import normalize_status
from .logging_utils import log_event
from .models import AirportRef, PartialFlightRecord
from .utils import parse_timestamp

logger = logging.getLogger("flightxp.fr24")

SOURCE = "fr24"


def _airport(obj: Any) -> Optional[AirportRef]:
    if not isinstance(obj, dict):
        return None
    code = obj.get("code") or {}
    pos = obj.get("position") or {}
    region = pos.get("region") or {}
    country = pos.get("country") or {}
    tz = (obj.get("timezone") or {}).get("name")
    return resolve_airport_ref(
        code.get("iata"),
        code.get("icao"),
        name=obj.get("name"),
        city=region.get("city"),
        country=country.get("code"),
        timezone=tz,
        lat=pos.get("latitude"),
        lon=pos.get("longitude"),
    )


def _matches_ident(flight: Dict[str, Any], ident: str) -> bool:
    ident_obj = flight.get("identification") or {}
    number = ident_obj.get("number") or {}
    if isinstance(number, dict) and str(number.get("default") or "").upper() == ident:
        return True
    return str(ident_obj.get("callsign") or "").upper() == ident


def _departure_day(flight: Dict[str, Any]) -> Optional[date]:
    sched = ((flight.get("time") or {}).get("scheduled") or {}).get("departure")
    dt = parse_timestamp(sched)
    return dt.date() if dt else None


def parse_fr24(body: Any, flight_number: str, flight_date: str) -> Optional[PartialFlightRecord]:
    """
    FR24 flight/list.json -> the leg matching the ident on the requested day.
    Times are epoch seconds (UTC).
    """
    if body is None:
        return None
    if not isinstance(body, dict):
        raise MalformedResponse(SOURCE, "payload is not an object")
    flights: List[Dict[str, Any]] = (
        ((body.get("result") or {}).get("response") or {}).get("data") or []
    )
    if not flights:
        return None

    ident = flight_number.upper()
    wanted = date.fromisoformat(flight_date)
    matching = [f for f in flights if _matches_ident(f, ident)]
    if not matching:
        return None
    same_day = [f for f in matching if _departure_day(f) == wanted]
    flight = (same_day or matching)[0]

    airport = flight.get("airport") or {}
    origin = _airport(airport.get("origin"))
    destination = _airport(airport.get("destination"))
    times = flight.get("time") or {}
    sched = times.get("scheduled") or {}
    real = times.get("real") or {}
    craft = flight.get("aircraft") or {}
    model = craft.get("model") or {}
    craft_type = get_aircraft_type(model.get("code")) or lookup_aircraft(model.get("text"))
    airline = flight.get("airline") or {}
    status = (flight.get("status") or {}).get("text")

    return PartialFlightRecord(
        source=SOURCE,
        flight_number=flight_number,
        date=flight_date,
        origin=origin,
        destination=destination,
        airline_code=(airline.get("code") or {}).get("iata"),
        airline_name=airline.get("name"),
        aircraft_code=craft_type.icao_code if craft_type else model.get("code"),
        aircraft_model=craft_type.model if craft_type else model.get("text"),
        aircraft_manufacturer=craft_type.manufacturer if craft_type else None,
        registration=craft.get("registration"),
        scheduled_departure=parse_timestamp(sched.get("departure")),
        scheduled_arrival=parse_timestamp(sched.get("arrival")),
        actual_departure=parse_timestamp(real.get("departure")),
        actual_arrival=parse_timestamp(real.get("arrival")),
        status=normalize_status(status),
    )


class FR24Adapter(HttpSourceAdapter):
    """
    FlightRadar24 adapter with:
      - Token-bucket limiter
      - Small response cache
      - 429 retry with backoff (inherited)
    """

    name = SOURCE
    max_rps = FR24_MAX_RPS
    burst = FR24_BURST
    default_headers = {"Accept": "application/json", "User-Agent": "flightxp/1.0"}

    def __init__(self, api_key: str, **kwargs: Any) -> None:
        self._api_key = api_key
        self._cache: Dict[Tuple[str, str], Tuple[float, Any]] = {}
        self._cache_ttl = 30.0
        self._cache_max_size = 200
        super().__init__(**kwargs)

    def _get_from_cache(self, ident: str, flight_date: str) -> Optional[Any]:
        key = (ident, flight_date)
        hit = self._cache.get(key)
        if hit is None:
            return None
        ts, data = hit
        if time.perf_counter() - ts < self._cache_ttl:
            log_event(logger, "fr24_cache_hit", ident=ident, date=flight_date)
            return data
        del self._cache[key]
        return None

    def _put_in_cache(self, ident: str, flight_date: str, data: Any) -> None:
        self._cache[(ident, flight_date)] = (time.perf_counter(), data)
        if len(self._cache) > self._cache_max_size:
            oldest_key = min(self._cache.items(), key=lambda x: x[1][0])[0]
            del self._cache[oldest_key]

    async def _fetch(self, flight_number: str, flight_date: str) -> Optional[PartialFlightRecord]:
        ident = flight_number.upper()
        body = self._get_from_cache(ident, flight_date)
        if body is None:
            params = {
                "query": ident,
                "fetchBy": "flight",
                "limit": 25,
                "token": self._api_key,
                # FR24 pages backwards from this epoch; anchor at the end of the requested day
                "timestamp": int(
                    datetime.combine(date.fromisoformat(flight_date), datetime.max.time(), timezone.utc).timestamp()
                ),
            }
            body = await self._get(f"{FR24_BASE_URL}/flight/list.json", params)
            if body is not None:
                self._put_in_cache(ident, flight_date, body)
        return parse_fr24(body, flight_number, flight_date)
