from datetime import date, time

from flightxp.extractor import (
    extract_airport_codes,
    extract_city_airports,
    extract_flight,
    extract_times,
    html_to_text,
    normalize_status,
    parse_json_ld_flight,
    schedule_from_clock_times,
)
from flightxp.models import FlightStatus


def test_status_normalization():
    assert normalize_status("Cancelled") == FlightStatus.CANCELLED
    assert normalize_status("Delayed 20 min") == FlightStatus.DELAYED
    assert normalize_status("EnRoute") == FlightStatus.AIRBORNE
    assert normalize_status("Arrived at gate") == FlightStatus.LANDED
    assert normalize_status("Expected") == FlightStatus.SCHEDULED
    assert normalize_status("") is None
    assert normalize_status(None) is None


def test_route_pattern_wins():
    assert extract_airport_codes("Akasa QP 1457 BOM → BLR departs 06:05") == ["BOM", "BLR"]
    assert extract_airport_codes("BOM to DEL") == ["BOM", "DEL"]


def test_unknown_codes_are_rejected():
    # THE / AND look like codes but the reference table does not know them
    assert extract_airport_codes("THE FLIGHT AND ITS ROUTE") == []


def test_parenthesized_codes():
    text = "Mumbai (BOM) to Bengaluru (BLR), operated by Akasa Air"
    assert extract_airport_codes(text) == ["BOM", "BLR"]


def test_zone_suffix_is_not_an_airport():
    codes = extract_airport_codes("Departs BOM 06:05 IST arrives BLR 07:45 IST")
    assert codes == ["BOM", "BLR"]


def test_city_fallback_prefers_longest_name():
    assert extract_city_airports("Flights from New Delhi to Bangalore") == ["DEL", "BLR"]


def test_times_twelve_hour_clock():
    assert extract_times("Departs 6:05 AM, arrives 12:30 PM") == [time(6, 5), time(12, 30)]
    assert extract_times("Flight 1457") == []


def test_overnight_schedule_rolls_arrival_day():
    dep, arr = schedule_from_clock_times(
        date(2024, 3, 1), time(23, 30), time(1, 15), "Asia/Kolkata", "Asia/Kolkata"
    )
    assert arr.date() == date(2024, 3, 2)
    assert (arr - dep).total_seconds() == 105 * 60


def test_html_to_text_strips_scripts():
    raw = "<html><script>var BOM='x';</script><p>BOM &rarr; BLR</p></html>"
    assert html_to_text(raw) == "BOM → BLR"


def test_json_ld_flight_block():
    raw = """
    <script type="application/ld+json">
    {"@context": "https://schema.org", "@type": "Flight",
     "flightNumber": "QP1457",
     "airline": {"@type": "Airline", "name": "Akasa Air", "iataCode": "QP"},
     "departureAirport": {"@type": "Airport", "iataCode": "BOM"},
     "arrivalAirport": {"@type": "Airport", "iataCode": "BLR"},
     "departureTime": "2024-03-01T06:05:00+05:30",
     "arrivalTime": "2024-03-01T07:45:00+05:30",
     "aircraft": "Boeing 737 MAX 8"}
    </script>
    """
    record = parse_json_ld_flight(raw, source="search", flight_number="QP1457", flight_date="2024-03-01")
    assert record.is_complete()
    assert record.aircraft_code == "B38M"
    assert record.airline_name == "Akasa Air"
    assert record.has_schedule()


def test_extract_flight_from_snippet():
    raw = "<div>Akasa Air QP1457 Mumbai (BOM) 06:05 - Bengaluru (BLR) 07:45 Boeing 737 MAX 8 Landed</div>"
    record = extract_flight(raw, source="search", flight_number="QP1457", flight_date="2024-03-01")
    assert record.origin.iata == "BOM" and record.destination.iata == "BLR"
    assert record.airline_code == "QP"
    assert record.aircraft_code == "B38M"
    assert record.status == FlightStatus.LANDED
    assert record.scheduled_departure.isoformat() == "2024-03-01T06:05:00+05:30"


def test_extract_flight_nothing_found():
    assert extract_flight("no airports here", source="search", flight_number="QP1457", flight_date="2024-03-01") is None


UNKNOWN_ARRIVAL_LD = """
<script type="application/ld+json">
{"@context": "https://schema.org", "@type": "Flight",
 "departureAirport": {"@type": "Airport", "iataCode": "BOM"},
 "arrivalAirport": {"@type": "Airport", "iataCode": "XYZ",
                    "geo": {"@type": "GeoCoordinates", "latitude": 12.0, "longitude": 77.0}}}
</script>
"""


def test_json_ld_unknown_code_with_geo_is_rejected():
    record = parse_json_ld_flight(
        UNKNOWN_ARRIVAL_LD, source="search", flight_number="QP1457", flight_date="2024-03-01"
    )
    assert record.origin.iata == "BOM"
    assert record.destination is None
    assert not record.is_complete()
    assert extract_flight(UNKNOWN_ARRIVAL_LD, source="search", flight_number="QP1457", flight_date="2024-03-01") is None


def test_incomplete_json_ld_falls_through_to_text():
    raw = UNKNOWN_ARRIVAL_LD + "<p>Akasa Air QP1457 BOM → BLR 06:05 - 07:45</p>"
    record = extract_flight(raw, source="search", flight_number="QP1457", flight_date="2024-03-01")
    assert record.origin.iata == "BOM"
    assert record.destination.iata == "BLR"
    assert record.has_schedule()
