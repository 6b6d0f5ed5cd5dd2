from datetime import datetime, timezone

import pytest

from conftest import make_record
from flightxp.airports import get_airport
from flightxp.geo import haversine_miles
from flightxp.models import AirportRef, FlightStatus, PartialFlightRecord, Position
from flightxp.normalizer import normalize, resolve_distance


def test_distance_computed_when_provider_silent():
    flight = normalize(make_record("aerodatabox"))
    bom, blr = get_airport("BOM"), get_airport("BLR")
    assert flight.distance_miles == pytest.approx(haversine_miles(bom.lat, bom.lon, blr.lat, blr.lon), abs=0.1)
    assert flight.provenance.distance_source == "computed"


def test_provider_distance_kept_within_tolerance():
    miles, source = resolve_distance(make_record("aeroapi", distance_miles=537))
    assert (miles, source) == (537, "provider")


def test_provider_distance_rejected_outside_tolerance():
    miles, source = resolve_distance(make_record("aeroapi", distance_miles=1500))
    assert source == "computed" and miles < 600


def test_duration_from_timestamps():
    record = make_record(
        "aeroapi",
        scheduled_departure=datetime(2024, 3, 1, 0, 35, tzinfo=timezone.utc),
        scheduled_arrival=datetime(2024, 3, 1, 2, 15, tzinfo=timezone.utc),
    )
    flight = normalize(record)
    assert flight.duration_minutes == 100
    assert flight.provenance.duration_source == "timestamps"
    assert "duration_estimated" not in flight.provenance.warnings


def test_duration_estimated_is_flagged():
    flight = normalize(make_record("aerodatabox", aircraft_code="A20N"))
    assert flight.provenance.duration_source == "estimated"
    assert "duration_estimated" in flight.provenance.warnings
    assert flight.provenance.confidence <= 0.8
    assert 80 <= flight.duration_minutes <= 110


def test_aircraft_needs_user_input_without_model():
    flight = normalize(make_record("search"))
    assert flight.aircraft.needs_user_input
    flight = normalize(make_record("aerodatabox", aircraft_code="B38M"))
    assert not flight.aircraft.needs_user_input
    assert flight.aircraft.manufacturer == "Boeing"


def test_airline_from_flight_number():
    flight = normalize(make_record("search"))
    assert flight.airline.code == "QP"
    assert flight.airline.name == "Akasa Air"
    assert not flight.is_international


def test_unvalidated_endpoint_lowers_confidence():
    record = PartialFlightRecord(
        source="fr24",
        flight_number="QP1457",
        date="2024-03-01",
        origin=AirportRef(iata="BOM", lat=19.09, lon=72.87, validated=False),
        destination=AirportRef(iata="ZZQ", lat=13.2, lon=77.7, validated=False),
    )
    flight = normalize(record)
    assert "unvalidated_airport" in flight.provenance.warnings
    assert flight.provenance.confidence <= 0.6


def test_telemetry_enriches_position_and_status():
    telemetry = PartialFlightRecord(
        source="opensky",
        flight_number="QP1457",
        date="2024-03-01",
        registration="VT-YAD",
        status=FlightStatus.AIRBORNE,
        position=Position(lat=16.0, lon=75.0, altitude_ft=35000),
    )
    flight = normalize(make_record("aerodatabox"), telemetry=[telemetry])
    assert flight.status == FlightStatus.AIRBORNE
    assert flight.position.altitude_ft == 35000
    assert flight.aircraft.registration == "VT-YAD"
    assert flight.provenance.contributors == ["aerodatabox", "opensky"]
    assert flight.route_key == "BOM-BLR"


def test_incomplete_record_refused():
    with pytest.raises(ValueError):
        normalize(make_record("search", destination=None))
