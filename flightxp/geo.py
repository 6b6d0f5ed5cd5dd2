from __future__ import annotations

import math
from typing import Optional

from .config import DEFAULT_CRUISE_KTS, GROUND_OVERHEAD_MIN

EARTH_RADIUS_MI = 3958.8
EARTH_RADIUS_KM = 6371.0
KTS_TO_MPH = 1.15078


def _central_angle(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in statute miles. Symmetric in its endpoints."""
    return EARTH_RADIUS_MI * _central_angle(lat1, lon1, lat2, lon2)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    return EARTH_RADIUS_KM * _central_angle(lat1, lon1, lat2, lon2)


def estimate_duration_minutes(
    distance_miles: float,
    cruise_speed_kts: Optional[float] = None,
    ground_overhead_min: int = GROUND_OVERHEAD_MIN,
) -> int:
    """
    Block time estimate when no timestamps are available:
        distance / cruise speed + fixed ground overhead
    Falls back to DEFAULT_CRUISE_KTS for unknown types.
    """
    kts = cruise_speed_kts or DEFAULT_CRUISE_KTS
    mph = kts * KTS_TO_MPH
    return int(round(max(distance_miles, 0.0) / mph * 60.0)) + ground_overhead_min


def within_tolerance(candidate: float, reference: float, tolerance: float) -> bool:
    if reference <= 0:
        return candidate == reference
    return abs(candidate - reference) / reference <= tolerance
