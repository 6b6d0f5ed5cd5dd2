# aircraft.py
# ---------------------------------------------------------------------
# Aircraft type reference table: ICAO designator -> type facts.

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from .models import AircraftCategory, AircraftType

NB = AircraftCategory.NARROW_BODY
WB = AircraftCategory.WIDE_BODY
RJ = AircraftCategory.REGIONAL

# icao, iata, manufacturer, model, category, cruise kts, seats, aliases
_ROWS: List[Tuple] = [
    # ==== AIRBUS ====
    ("A319", "319", "Airbus", "A319", NB, 447, 140, ("A319-100", "Airbus A319")),
    ("A320", "320", "Airbus", "A320", NB, 447, 180, ("A320-200", "Airbus A320", "A320ceo")),
    ("A20N", "32N", "Airbus", "A320neo", NB, 450, 186, ("A320neo", "A320 neo", "A320-251N", "Airbus A320neo")),
    ("A321", "321", "Airbus", "A321", NB, 450, 220, ("A321-200", "Airbus A321", "A321ceo")),
    ("A21N", "32Q", "Airbus", "A321neo", NB, 450, 232, ("A321neo", "A321 neo", "A321-271NX", "Airbus A321neo")),
    ("A333", "333", "Airbus", "A330-300", WB, 470, 300, ("A330-300", "A330", "Airbus A330")),
    ("A339", "339", "Airbus", "A330-900", WB, 470, 290, ("A330-900", "A330neo")),
    ("A343", "343", "Airbus", "A340-300", WB, 475, 280, ("A340-300", "A340")),
    ("A359", "359", "Airbus", "A350-900", WB, 488, 325, ("A350-900", "A350", "Airbus A350")),
    ("A35K", "351", "Airbus", "A350-1000", WB, 488, 366, ("A350-1000",)),
    ("A388", "388", "Airbus", "A380-800", WB, 488, 525, ("A380-800", "A380", "Airbus A380")),
    # ==== BOEING ====
    ("B738", "738", "Boeing", "737-800", NB, 453, 175, ("737-800", "B737-800", "Boeing 737-800", "737")),
    ("B38M", "7M8", "Boeing", "737 MAX 8", NB, 453, 178, ("737 MAX 8", "737 MAX", "737-8", "B737 MAX 8", "Boeing 737 MAX")),
    ("B739", "739", "Boeing", "737-900", NB, 453, 190, ("737-900", "737-900ER")),
    ("B752", "752", "Boeing", "757-200", NB, 461, 200, ("757-200", "757", "Boeing 757")),
    ("B763", "763", "Boeing", "767-300", WB, 459, 260, ("767-300", "767-300ER", "767", "Boeing 767")),
    ("B744", "744", "Boeing", "747-400", WB, 490, 416, ("747-400", "747", "Boeing 747")),
    ("B748", "748", "Boeing", "747-8", WB, 490, 410, ("747-8", "747-8i")),
    ("B772", "772", "Boeing", "777-200", WB, 490, 314, ("777-200", "777-200ER", "777")),
    ("B77W", "77W", "Boeing", "777-300ER", WB, 490, 396, ("777-300ER", "777-300", "Boeing 777-300ER", "Boeing 777")),
    ("B788", "788", "Boeing", "787-8", WB, 488, 242, ("787-8", "Dreamliner", "787", "Boeing 787")),
    ("B789", "789", "Boeing", "787-9", WB, 488, 296, ("787-9", "Boeing 787-9")),
    ("B78X", "781", "Boeing", "787-10", WB, 488, 330, ("787-10",)),
    # ==== OTHER WIDE-BODIES ====
    ("MD11", "M11", "McDonnell Douglas", "MD-11", WB, 473, 293, ("MD-11",)),
    ("DC10", "D10", "McDonnell Douglas", "DC-10", WB, 470, 270, ("DC-10",)),
    ("L101", "L10", "Lockheed", "L-1011 TriStar", WB, 480, 256, ("L-1011", "TriStar")),
    # ==== REGIONAL ====
    ("E75L", "E75", "Embraer", "E175", RJ, 430, 76, ("E175", "ERJ-175", "Embraer 175")),
    ("E190", "E90", "Embraer", "E190", RJ, 447, 100, ("E190", "ERJ-190", "Embraer 190")),
    ("CRJ9", "CR9", "Bombardier", "CRJ-900", RJ, 447, 76, ("CRJ-900", "CRJ900", "CRJ")),
    ("AT76", "AT7", "ATR", "ATR 72-600", RJ, 275, 70, ("ATR 72-600", "ATR 72", "ATR72", "ATR")),
    ("DH8D", "DH4", "De Havilland Canada", "Dash 8-400", RJ, 360, 78, ("Dash 8-400", "Q400", "DHC-8-400")),
]

AIRCRAFT_TYPES: Dict[str, AircraftType] = {}
_BY_IATA: Dict[str, AircraftType] = {}
_ALIASES: List[Tuple[str, AircraftType]] = []

for _row in _ROWS:
    _t = AircraftType(
        icao_code=_row[0],
        iata_code=_row[1],
        manufacturer=_row[2],
        model=_row[3],
        category=_row[4],
        cruise_speed_kts=_row[5],
        typical_capacity=_row[6],
        aliases=_row[7],
    )
    AIRCRAFT_TYPES[_t.icao_code] = _t
    _BY_IATA[_t.iata_code] = _t
    for _alias in (_t.model, *_t.aliases):
        _ALIASES.append((_alias.upper(), _t))

# Longest alias first: "737 MAX 8" must win over "737"
_ALIASES.sort(key=lambda pair: len(pair[0]), reverse=True)
_WS_RE = re.compile(r"\s+")


def all_aircraft_types() -> List[AircraftType]:
    return list(AIRCRAFT_TYPES.values())


def get_aircraft_type(code: Optional[str]) -> Optional[AircraftType]:
    """Exact lookup by ICAO designator (A20N) or IATA code (32N)."""
    if not code:
        return None
    c = code.strip().upper()
    return AIRCRAFT_TYPES.get(c) or _BY_IATA.get(c)


def lookup_aircraft(text: Optional[str]) -> Optional[AircraftType]:
    """
    Resolve free text like "Airbus A321neo" or "Boeing 787-9 Dreamliner".
    Exact codes first, then the longest alias contained in the text.
    """
    if not text:
        return None
    exact = get_aircraft_type(text)
    if exact:
        return exact
    haystack = _WS_RE.sub(" ", text.upper())
    for alias, t in _ALIASES:
        if re.search(rf"(?<![A-Z0-9]){re.escape(alias)}(?![A-Z0-9])", haystack):
            return t
    return None


def is_wide_body(text: Optional[str]) -> bool:
    t = lookup_aircraft(text)
    return t is not None and t.category == AircraftCategory.WIDE_BODY
