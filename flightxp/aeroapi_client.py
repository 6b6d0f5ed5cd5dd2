from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from .adapters import HttpSourceAdapter
from .aircraft import get_aircraft_type, lookup_aircraft
from .airports import resolve_airport_ref
from .config import AEROAPI_BASE_URL, AEROAPI_BURST, AEROAPI_MAX_RPS
from .extractor import normalize_status
from .logging_utils import log_event
from .models import AirportRef, PartialFlightRecord
from .utils import iso_day_window_utc, parse_timestamp, split_ident

logger = logging.getLogger("flightxp.aeroapi")

SOURCE = "aeroapi"

S_PARAMS = {
    "include_codeshares": "false",
    "max_pages": "1",
}


def _flights_list(body: Any) -> List[Dict[str, Any]]:
    if not isinstance(body, dict):
        return []
    for key in ("flights", "scheduled", "data"):
        if isinstance(body.get(key), list):
            return [f for f in body[key] if isinstance(f, dict)]
    for val in body.values():
        if isinstance(val, list) and val and isinstance(val[0], dict):
            return val
    return []


def _matches_ident(f: Dict[str, Any], ident: str) -> bool:
    for k in ("ident", "ident_iata", "ident_icao"):
        v = f.get(k)
        if isinstance(v, str) and v.strip().upper() == ident:
            return True
    _airline, number, _sfx = split_ident(ident)
    fn = str(f.get("flight_number") or "").strip()
    return bool(number) and fn == number


def _airport(f: Dict[str, Any], side: str) -> Optional[AirportRef]:
    obj = f.get(side)
    if isinstance(obj, dict):
        return resolve_airport_ref(
            obj.get("code_iata") or obj.get("iata") or obj.get("code"),
            obj.get("code_icao"),
            name=obj.get("name"),
            city=obj.get("city"),
            timezone=obj.get("timezone"),
        )
    # /schedules rows flatten the endpoints
    return resolve_airport_ref(f.get(f"{side}_iata"), f.get(f"{side}_icao") or f.get(side))


def parse_aeroapi(body: Any, flight_number: str, flight_date: str) -> Optional[PartialFlightRecord]:
    """First flight in an AeroAPI /flights, /history or /schedules body matching the ident."""
    flights = _flights_list(body)
    if not flights:
        return None
    ident = flight_number.upper()
    item = next((f for f in flights if _matches_ident(f, ident)), None)
    if item is None:
        return None

    origin = _airport(item, "origin")
    destination = _airport(item, "destination")
    o_tz = origin.timezone if origin else None
    d_tz = destination.timezone if destination else None

    type_code = item.get("aircraft_type")
    craft = get_aircraft_type(type_code) or lookup_aircraft(type_code)
    route_distance = item.get("route_distance")

    return PartialFlightRecord(
        source=SOURCE,
        flight_number=flight_number,
        date=flight_date,
        origin=origin,
        destination=destination,
        airline_code=item.get("operator_iata"),
        aircraft_code=craft.icao_code if craft else type_code,
        aircraft_model=craft.model if craft else None,
        aircraft_manufacturer=craft.manufacturer if craft else None,
        registration=item.get("registration"),
        scheduled_departure=parse_timestamp(item.get("scheduled_out") or item.get("scheduled_off"), o_tz),
        scheduled_arrival=parse_timestamp(item.get("scheduled_in") or item.get("scheduled_on"), d_tz),
        actual_departure=parse_timestamp(item.get("actual_out") or item.get("actual_off"), o_tz),
        actual_arrival=parse_timestamp(item.get("actual_in") or item.get("actual_on"), d_tz),
        distance_miles=float(route_distance) if route_distance else None,
        status=normalize_status(item.get("status")),
    )


class AeroAPIAdapter(HttpSourceAdapter):
    """
    FlightAware AeroAPI v4 adapter (read-only).

    Endpoints used:
      - GET /flights/{ident}?start={iso}&end={iso}
      - GET /history/flights/{ident}?start={iso}&end={iso}
      - GET /schedules/{date_start}/{date_end}?airline={QP}&flight_number={1457}
    """

    name = SOURCE
    max_rps = AEROAPI_MAX_RPS
    burst = AEROAPI_BURST

    def __init__(self, api_key: str, **kwargs: Any) -> None:
        self._api_key = api_key
        super().__init__(**kwargs)

    def _headers(self) -> Dict[str, str]:
        return {"x-apikey": self._api_key, "Accept": "application/json"}

    def _plan(self, ident: str, flight_dt: date, today: date) -> List[Tuple[str, Dict[str, Any]]]:
        """Endpoint order depends on how far the date is from today."""
        start_iso, end_iso = iso_day_window_utc(flight_dt.year, flight_dt.month, flight_dt.day)
        window = {"start": start_iso, "end": end_iso}
        days_delta = (flight_dt - today).days

        live = (f"/flights/{ident}", window)
        history = (f"/history/flights/{ident}", window)
        plan: List[Tuple[str, Dict[str, Any]]] = []
        if days_delta < -10:
            plan = [history, live]
        elif days_delta <= 2:
            plan = [live, history]
        else:
            airline, number, _sfx = split_ident(ident)
            params: Dict[str, Any] = {"flight_number": number, **S_PARAMS}
            if airline:
                params["airline"] = airline
            nxt = flight_dt + timedelta(days=1)
            plan = [(f"/schedules/{flight_dt.isoformat()}/{nxt.isoformat()}", params), live]
        return plan

    async def _fetch(self, flight_number: str, flight_date: str) -> Optional[PartialFlightRecord]:
        flight_dt = date.fromisoformat(flight_date)
        today = datetime.now(timezone.utc).date()
        for path, params in self._plan(flight_number, flight_dt, today):
            body = await self._get(f"{AEROAPI_BASE_URL}{path}", params, headers=self._headers())
            record = parse_aeroapi(body, flight_number, flight_date)
            if record is not None:
                log_event(logger, "aeroapi_match", flight_number=flight_number, endpoint=path)
                return record
        return None
