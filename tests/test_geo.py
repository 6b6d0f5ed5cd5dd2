import math

import pytest

from flightxp.airports import get_airport
from flightxp.geo import estimate_duration_minutes, haversine_km, haversine_miles, within_tolerance


def _reference_miles(lat1, lon1, lat2, lon2):
    # spherical law of cosines
    p1, p2 = math.radians(lat1), math.radians(lat2)
    dl = math.radians(lon2 - lon1)
    return 3958.8 * math.acos(math.sin(p1) * math.sin(p2) + math.cos(p1) * math.cos(p2) * math.cos(dl))


def test_bom_blr_distance_close_to_published():
    bom, blr = get_airport("BOM"), get_airport("BLR")
    miles = haversine_miles(bom.lat, bom.lon, blr.lat, blr.lon)
    assert miles == pytest.approx(537, rel=0.05)
    assert miles == pytest.approx(_reference_miles(bom.lat, bom.lon, blr.lat, blr.lon), rel=0.01)


def test_distance_is_symmetric_and_zero_for_same_point():
    lhr, jfk = get_airport("LHR"), get_airport("JFK")
    there = haversine_miles(lhr.lat, lhr.lon, jfk.lat, jfk.lon)
    back = haversine_miles(jfk.lat, jfk.lon, lhr.lat, lhr.lon)
    assert there == pytest.approx(back)
    assert there == pytest.approx(3451, rel=0.02)
    assert haversine_miles(lhr.lat, lhr.lon, lhr.lat, lhr.lon) == 0


def test_km_and_miles_agree():
    assert haversine_km(0, 0, 0, 1) == pytest.approx(haversine_miles(0, 0, 0, 1) * 1.609, rel=0.01)


def test_duration_estimate_adds_ground_overhead():
    # 460 kts ~ 529 mph
    assert estimate_duration_minutes(529.4, 460) == 60 + 30
    assert estimate_duration_minutes(0, 460) == 30
    assert estimate_duration_minutes(1000, 460, ground_overhead_min=0) == round(1000 / (460 * 1.15078) * 60)


def test_duration_estimate_uses_default_cruise_for_unknown_type():
    assert estimate_duration_minutes(537, None) == estimate_duration_minutes(537, 460)


def test_within_tolerance():
    assert within_tolerance(537, 518, 0.15)
    assert not within_tolerance(700, 518, 0.15)
    assert within_tolerance(0, 0, 0.15)
