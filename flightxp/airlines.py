# airlines.py
# ---------------------------------------------------------------------
# A *small* subset of the world's airlines, plus the route patterns used
# to reconstruct a flight when every provider comes back empty.
# Feel free to extend; the rest of the code never needs to change.

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

AIRLINE_CODES: dict[str, dict[str, str]] = {
    # ==== INDIA ====
    "6E": {"icao": "IGO", "name": "IndiGo", "country": "IN"},
    "QP": {"icao": "AKJ", "name": "Akasa Air", "country": "IN"},
    "AI": {"icao": "AIC", "name": "Air India", "country": "IN"},
    "UK": {"icao": "VTI", "name": "Vistara", "country": "IN"},
    "SG": {"icao": "SEJ", "name": "SpiceJet", "country": "IN"},
    "IX": {"icao": "AXB", "name": "Air India Express", "country": "IN"},

    # ==== MIDDLE EAST ====
    "EK": {"icao": "UAE", "name": "Emirates", "country": "AE"},
    "QR": {"icao": "QTR", "name": "Qatar Airways", "country": "QA"},
    "EY": {"icao": "ETD", "name": "Etihad Airways", "country": "AE"},
    "TK": {"icao": "THY", "name": "Turkish Airlines", "country": "TR"},

    # ==== EUROPE ====
    "BA": {"icao": "BAW", "name": "British Airways", "country": "GB"},
    "LH": {"icao": "DLH", "name": "Lufthansa", "country": "DE"},
    "AF": {"icao": "AFR", "name": "Air France", "country": "FR"},
    "KL": {"icao": "KLM", "name": "KLM Royal Dutch Airlines", "country": "NL"},
    "IB": {"icao": "IBE", "name": "Iberia", "country": "ES"},
    "LX": {"icao": "SWR", "name": "Swiss International Air Lines", "country": "CH"},
    "EI": {"icao": "EIN", "name": "Aer Lingus", "country": "IE"},
    "FR": {"icao": "RYR", "name": "Ryanair", "country": "IE"},
    "U2": {"icao": "EZY", "name": "easyJet", "country": "GB"},

    # ==== ASIA PACIFIC ====
    "SQ": {"icao": "SIA", "name": "Singapore Airlines", "country": "SG"},
    "CX": {"icao": "CPA", "name": "Cathay Pacific", "country": "HK"},
    "NH": {"icao": "ANA", "name": "All Nippon Airways", "country": "JP"},
    "JL": {"icao": "JAL", "name": "Japan Airlines", "country": "JP"},
    "KE": {"icao": "KAL", "name": "Korean Air", "country": "KR"},
    "TG": {"icao": "THA", "name": "Thai Airways", "country": "TH"},
    "MH": {"icao": "MAS", "name": "Malaysia Airlines", "country": "MY"},
    "QF": {"icao": "QFA", "name": "Qantas", "country": "AU"},
    "NZ": {"icao": "ANZ", "name": "Air New Zealand", "country": "NZ"},

    # ==== AFRICA ====
    "ET": {"icao": "ETH", "name": "Ethiopian Airlines", "country": "ET"},
    "SA": {"icao": "SAA", "name": "South African Airways", "country": "ZA"},
    "KQ": {"icao": "KQA", "name": "Kenya Airways", "country": "KE"},
    "MS": {"icao": "MSR", "name": "EgyptAir", "country": "EG"},

    # ==== AMERICAS ====
    "AA": {"icao": "AAL", "name": "American Airlines", "country": "US"},
    "UA": {"icao": "UAL", "name": "United Airlines", "country": "US"},
    "DL": {"icao": "DAL", "name": "Delta Air Lines", "country": "US"},
    "WN": {"icao": "SWA", "name": "Southwest Airlines", "country": "US"},
    "B6": {"icao": "JBU", "name": "JetBlue Airways", "country": "US"},
    "AS": {"icao": "ASA", "name": "Alaska Airlines", "country": "US"},
    "AC": {"icao": "ACA", "name": "Air Canada", "country": "CA"},
    "AM": {"icao": "AMX", "name": "Aeromexico", "country": "MX"},
    "LA": {"icao": "LAN", "name": "LATAM Airlines", "country": "CL"},
    "AV": {"icao": "AVA", "name": "Avianca", "country": "CO"},
}

# ICAO (3-letter) -> IATA reverse map
ICAO_TO_IATA: Dict[str, str] = {v["icao"]: k for k, v in AIRLINE_CODES.items()}

_FREQUENCY_WEIGHT = {"high": 3, "medium": 2, "low": 1}

# Carrier -> list of (from, to, published distance in miles, frequency)
ROUTE_PATTERNS: Dict[str, List[Tuple[str, str, int, str]]] = {
    "QR": [
        ("DOH", "DXB", 378, "high"),
        ("DOH", "LHR", 3253, "high"),
        ("DOH", "JFK", 6711, "medium"),
        ("DOH", "BOM", 1533, "high"),
        ("DOH", "DEL", 1863, "high"),
        ("DOH", "BLR", 2082, "medium"),
        ("DOH", "SIN", 4336, "high"),
        ("DOH", "CDG", 3167, "medium"),
        ("DOH", "FRA", 2980, "medium"),
        ("DOH", "LAX", 8306, "low"),
    ],
    "EK": [
        ("DXB", "LHR", 3414, "high"),
        ("DXB", "JFK", 6838, "medium"),
        ("DXB", "BOM", 1197, "high"),
        ("DXB", "DEL", 1508, "high"),
        ("DXB", "SIN", 3846, "high"),
        ("DXB", "CDG", 3256, "medium"),
    ],
    "AA": [
        ("LAX", "JFK", 2475, "high"),
        ("DFW", "LAX", 1235, "high"),
        ("JFK", "LHR", 3459, "high"),
        ("ORD", "DFW", 925, "high"),
    ],
    "6E": [
        ("DEL", "BOM", 708, "high"),
        ("BOM", "BLR", 537, "high"),
        ("DEL", "BLR", 1061, "high"),
        ("DEL", "MAA", 1095, "medium"),
    ],
    "QP": [
        ("BOM", "BLR", 537, "high"),
        ("BOM", "DEL", 708, "high"),
        ("BLR", "DEL", 1061, "medium"),
        ("BOM", "GOI", 273, "medium"),
    ],
    "AI": [
        ("DEL", "LHR", 4180, "medium"),
        ("BOM", "LHR", 4478, "medium"),
        ("DEL", "JFK", 7318, "low"),
    ],
}

_CARRIER_RE = re.compile(r"^([A-Z]{3}|[A-Z0-9]{2})")


def get_airline(code: Optional[str]) -> Optional[dict]:
    """Lookup by IATA (2 chars) or ICAO (3 letters); returns a copy with the IATA code included."""
    if not code:
        return None
    c = code.strip().upper()
    if len(c) == 3 and c in ICAO_TO_IATA:
        c = ICAO_TO_IATA[c]
    info = AIRLINE_CODES.get(c)
    if info is None:
        return None
    return {"iata": c, **info}


def carrier_prefix(flight_number: str) -> Optional[str]:
    """
    QP1457  -> QP
    AKJ1457 -> QP  (ICAO designator mapped back to IATA)
    1457    -> None
    """
    fn = flight_number.strip().upper()
    if fn[:3] in ICAO_TO_IATA and fn[3:4].isdigit():
        return ICAO_TO_IATA[fn[:3]]
    m = _CARRIER_RE.match(fn)
    if not m or m.group(1).isdigit():
        return None
    return m.group(1)[:2]


def match_airline_name(text: str) -> Optional[str]:
    """Return the IATA code of the longest airline name mentioned in text."""
    lowered = text.lower()
    best: Optional[Tuple[int, str]] = None
    for code, info in AIRLINE_CODES.items():
        name = info["name"].lower()
        if re.search(rf"\b{re.escape(name)}\b", lowered):
            if best is None or len(name) > best[0]:
                best = (len(name), code)
    return best[1] if best else None


def route_patterns(carrier: str) -> List[Tuple[str, str, int, int]]:
    """Patterns for a carrier as (from, to, distance, weight)."""
    return [
        (a, b, dist, _FREQUENCY_WEIGHT.get(freq, 1))
        for a, b, dist, freq in ROUTE_PATTERNS.get(carrier.upper(), [])
    ]
