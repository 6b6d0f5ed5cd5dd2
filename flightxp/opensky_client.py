"""
OpenSky Network live-telemetry adapter.

OpenSky state vectors are keyed by transponder and callsign, not by date, so
this adapter only contributes position and airborne status for flights
operating around now. It never supplies a route or a schedule.

State vector format (array indices):
0: icao24          - ICAO24 hex address
1: callsign        - Callsign (8 chars max, space padded)
2: origin_country  - Country of registration
3: time_position   - Unix timestamp of last position update
4: last_contact    - Unix timestamp of last message
5: longitude       - WGS84 longitude
6: latitude        - WGS84 latitude
7: baro_altitude   - Barometric altitude (meters)
8: on_ground       - Boolean
9: velocity        - Ground speed (m/s)
10: true_track     - Track angle (degrees, 0=north)
11: vertical_rate  - Vertical rate (m/s)
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, List, Optional

import aiohttp

from .adapters import HttpSourceAdapter
from .airlines import AIRLINE_CODES, ICAO_TO_IATA
from .config import OPENSKY_BASE_URL, OPENSKY_PASSWORD, OPENSKY_USERNAME
from .errors import MalformedResponse
from .logging_utils import log_event
from .models import FlightStatus, PartialFlightRecord, Position
from .utils import split_ident

logger = logging.getLogger("flightxp.opensky")

SOURCE = "opensky"
M_TO_FT = 3.28084
MPS_TO_KTS = 1.94384


def callsign_for(flight_number: str) -> Optional[str]:
    """QP1457 -> AKJ1457. ATC callsigns use the ICAO airline designator."""
    prefix, number, suffix = split_ident(flight_number)
    if not prefix:
        return None
    if prefix in ICAO_TO_IATA:
        icao = prefix
    else:
        info = AIRLINE_CODES.get(prefix)
        if not info:
            return None
        icao = info["icao"]
    return f"{icao}{number}{suffix or ''}"


def parse_opensky_states(
    body: Any, callsign: str, flight_number: str, flight_date: str
) -> Optional[PartialFlightRecord]:
    if body is None:
        return None
    if not isinstance(body, dict):
        raise MalformedResponse(SOURCE, "payload is not an object")
    states: List[List[Any]] = body.get("states") or []
    for s in states:
        if not isinstance(s, list) or len(s) < 12:
            continue
        if str(s[1] or "").strip().upper() != callsign:
            continue
        if s[5] is None or s[6] is None:
            continue
        on_ground = bool(s[8])
        observed = s[4] or s[3]
        position = Position(
            lat=float(s[6]),
            lon=float(s[5]),
            altitude_ft=round(float(s[7]) * M_TO_FT) if s[7] is not None else None,
            speed_kts=round(float(s[9]) * MPS_TO_KTS) if s[9] is not None else None,
            heading=float(s[10]) if s[10] is not None else None,
            on_ground=on_ground,
            observed_at=datetime.fromtimestamp(int(observed), tz=timezone.utc) if observed else None,
        )
        return PartialFlightRecord(
            source=SOURCE,
            flight_number=flight_number,
            date=flight_date,
            position=position,
            status=None if on_ground else FlightStatus.AIRBORNE,
        )
    return None


class OpenSkyAdapter(HttpSourceAdapter):
    name = SOURCE
    telemetry = True
    max_rps = 0.2
    burst = 1

    def __init__(
        self,
        username: Optional[str] = OPENSKY_USERNAME,
        password: Optional[str] = OPENSKY_PASSWORD,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        **kwargs: Any,
    ) -> None:
        self._basic_auth = aiohttp.BasicAuth(username, password) if username and password else None
        self.clock = clock
        super().__init__(**kwargs)

    def _auth(self) -> Optional[aiohttp.BasicAuth]:
        return self._basic_auth

    def is_live(self, flight_date: str) -> bool:
        """Telemetry only exists for flights operating within a day of now."""
        return abs((date.fromisoformat(flight_date) - self.clock().date()).days) <= 1

    async def _fetch(self, flight_number: str, flight_date: str) -> Optional[PartialFlightRecord]:
        callsign = callsign_for(flight_number)
        if not callsign or not self.is_live(flight_date):
            return None
        body = await self._get(f"{OPENSKY_BASE_URL}/states/all")
        record = parse_opensky_states(body, callsign, flight_number, flight_date)
        log_event(logger, "opensky_lookup", callsign=callsign, found=record is not None)
        return record
