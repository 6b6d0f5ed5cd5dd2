from flightxp import achievement_catalog
from flightxp.aircraft import all_aircraft_types, get_aircraft_type, is_wide_body, lookup_aircraft
from flightxp.airlines import carrier_prefix, get_airline, match_airline_name, route_patterns
from flightxp.airports import (
    airport_ref,
    airports_for_city,
    all_airports,
    get_airport,
    resolve_airport_ref,
)
from flightxp.models import AircraftCategory


def test_airport_lookup_by_iata_and_icao():
    assert get_airport("bom").city == "Mumbai"
    assert get_airport("VOBL").iata == "BLR"
    assert get_airport("XXX") is None
    assert get_airport("") is None


def test_airport_table_covers_six_continents():
    continents = {ap.continent for ap in all_airports()}
    assert len(continents) == 6


def test_city_aliases():
    assert [ap.iata for ap in airports_for_city("Bombay")] == ["BOM"]
    assert airports_for_city("bangalore")[0].iata == "BLR"


def test_airport_ref_is_validated():
    ref = airport_ref("DEL")
    assert ref.validated and ref.has_coordinates and ref.timezone == "Asia/Kolkata"


def test_resolve_airport_ref_prefers_table():
    ref = resolve_airport_ref("BOM", None, name="Somewhere else", lat=0.0, lon=0.0)
    assert ref.validated and ref.lat != 0.0


def test_resolve_airport_ref_keeps_provider_coordinates_for_unknown_codes():
    ref = resolve_airport_ref("ZZQ", None, lat=10.0, lon=20.0)
    assert ref is not None and not ref.validated and ref.has_coordinates
    assert resolve_airport_ref("12", None) is None
    assert resolve_airport_ref(None, None) is None


def test_aircraft_lookup():
    assert get_aircraft_type("B738").model == "737-800"
    assert get_aircraft_type("738").icao_code == "B738"
    assert lookup_aircraft("Boeing 737 MAX 8").icao_code == "B38M"
    assert lookup_aircraft("Airbus A350-900 XWB").icao_code == "A359"
    assert lookup_aircraft("bicycle") is None
    assert lookup_aircraft(None) is None


def test_wide_body_detection():
    assert is_wide_body("A359")
    assert not is_wide_body("A320")
    assert all(t.category in AircraftCategory for t in all_aircraft_types())


def test_carrier_prefix():
    assert carrier_prefix("QP1457") == "QP"
    assert carrier_prefix("AKJ1457") == "QP"
    assert carrier_prefix("6E204") == "6E"
    assert carrier_prefix("1457") is None


def test_airline_lookup():
    assert get_airline("QP")["name"] == "Akasa Air"
    assert get_airline("AKJ")["iata"] == "QP"
    assert get_airline("ZZ") is None
    assert match_airline_name("Booked on Akasa Air from Mumbai") == "QP"


def test_route_patterns_carry_weights():
    routes = route_patterns("QP")
    assert ("BOM", "BLR", 537, 3) in routes
    assert route_patterns("ZZ") == []


def test_catalog_ids_unique():
    ids = [a.id for a in achievement_catalog()]
    assert len(ids) == len(set(ids))
    assert "first_flight" in ids
