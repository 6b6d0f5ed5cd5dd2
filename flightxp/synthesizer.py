"""
Last-resort reconstruction from carrier route patterns.

The output is a guess: no aircraft, no registration, no schedule, and a
"synthesized" provenance flag. Unknown carriers yield nothing.
"""

from __future__ import annotations

import logging
from typing import Optional

from .airlines import carrier_prefix, get_airline, route_patterns
from .airports import airport_ref
from .logging_utils import log_event
from .models import PartialFlightRecord
from .utils import split_ident

logger = logging.getLogger("flightxp.synthesizer")

SOURCE = "synthesized"


def synthesize(flight_number: str, flight_date: str) -> Optional[PartialFlightRecord]:
    carrier = carrier_prefix(flight_number)
    if not carrier:
        return None
    patterns = route_patterns(carrier)
    if not patterns:
        log_event(logger, "synthesis_unknown_carrier", level=logging.DEBUG, carrier=carrier)
        return None

    # Deterministic pick among the carrier's busiest routes
    top = max(weight for *_, weight in patterns)
    busiest = [p for p in patterns if p[3] == top]
    _prefix, number, _sfx = split_ident(flight_number)
    idx = int(number) % len(busiest) if number.isdigit() else 0
    origin_code, dest_code, published_miles, _weight = busiest[idx]

    origin = airport_ref(origin_code)
    destination = airport_ref(dest_code)
    if origin is None or destination is None:
        return None

    airline = get_airline(carrier)
    log_event(
        logger,
        "route_synthesized",
        flight_number=flight_number,
        route=f"{origin_code}-{dest_code}",
    )
    return PartialFlightRecord(
        source=SOURCE,
        flight_number=flight_number,
        date=flight_date,
        origin=origin,
        destination=destination,
        airline_code=carrier,
        airline_name=airline["name"] if airline else None,
        distance_miles=float(published_miles),
    )
