from datetime import date, datetime, timezone

import aiohttp
import pytest

from conftest import FakeAdapter, make_record
from flightxp.aeroapi_client import AeroAPIAdapter, parse_aeroapi
from flightxp.aerodatabox_client import parse_aerodatabox
from flightxp.errors import MalformedResponse, ProviderError
from flightxp.fr24_client import parse_fr24
from flightxp.models import FailureKind, FlightStatus, PartialFlightRecord, ProviderFailure
from flightxp.opensky_client import OpenSkyAdapter, callsign_for, parse_opensky_states
from flightxp.search_client import SearchResultAdapter


# ---------------- outcome tagging ----------------


@pytest.mark.parametrize(
    "raised, kind",
    [
        (None, FailureKind.NO_DATA),
        (MalformedResponse("fake", "bad json"), FailureKind.MALFORMED),
        (ProviderError("fake", "HTTP 403", status=403), FailureKind.HTTP_ERROR),
        (ProviderError("fake", "connection reset"), FailureKind.TRANSPORT),
        (aiohttp.ClientConnectionError("refused"), FailureKind.TRANSPORT),
        (KeyError("origin"), FailureKind.MALFORMED),
    ],
)
async def test_fetch_tags_failures(raised, kind):
    outcome = await FakeAdapter("fake", raised).fetch("QP1457", "2024-03-01")
    assert isinstance(outcome, ProviderFailure)
    assert outcome.kind == kind
    assert outcome.source == "fake"


async def test_fetch_returns_record():
    outcome = await FakeAdapter("fake", make_record("fake")).fetch("QP1457", "2024-03-01")
    assert isinstance(outcome, PartialFlightRecord)
    assert outcome.is_complete()


# ---------------- AeroDataBox ----------------


AERODATABOX_BODY = [
    {
        "number": "QP 1457",
        "status": "Arrived",
        "departure": {
            "airport": {"icao": "VABB", "iata": "BOM", "name": "Mumbai", "timeZone": "Asia/Kolkata"},
            "scheduledTime": {"utc": "2024-03-01 00:35Z", "local": "2024-03-01 06:05+05:30"},
            "runwayTime": {"utc": "2024-03-01 00:50Z", "local": "2024-03-01 06:20+05:30"},
        },
        "arrival": {
            "airport": {"icao": "VOBL", "iata": "BLR", "name": "Bengaluru", "timeZone": "Asia/Kolkata"},
            "scheduledTime": {"utc": "2024-03-01 02:15Z", "local": "2024-03-01 07:45+05:30"},
        },
        "greatCircleDistance": {"mile": 524.6, "km": 844.3},
        "aircraft": {"reg": "VT-YAA", "model": "Boeing 737 MAX 8"},
        "airline": {"name": "Akasa Air", "iata": "QP", "icao": "AKJ"},
    }
]


def test_parse_aerodatabox():
    record = parse_aerodatabox(AERODATABOX_BODY, "QP1457", "2024-03-01")
    assert record.is_complete()
    assert record.origin.iata == "BOM" and record.destination.iata == "BLR"
    assert record.registration == "VT-YAA"
    assert record.aircraft_code == "B38M"
    assert record.scheduled_departure == datetime(2024, 3, 1, 0, 35, tzinfo=timezone.utc)
    assert record.actual_departure == datetime(2024, 3, 1, 0, 50, tzinfo=timezone.utc)
    assert record.distance_miles == 524.6
    assert record.status == FlightStatus.LANDED


def test_parse_aerodatabox_empty_and_malformed():
    assert parse_aerodatabox(None, "QP1457", "2024-03-01") is None
    assert parse_aerodatabox([], "QP1457", "2024-03-01") is None
    with pytest.raises(MalformedResponse):
        parse_aerodatabox("<html>", "QP1457", "2024-03-01")


# ---------------- AeroAPI ----------------


def test_parse_aeroapi_picks_matching_ident():
    body = {
        "flights": [
            {"ident": "QP1458", "origin": {"code_iata": "BLR"}, "destination": {"code_iata": "BOM"}},
            {
                "ident": "AKJ1457",
                "ident_iata": "QP1457",
                "operator_iata": "QP",
                "origin": {"code_iata": "BOM", "code_icao": "VABB", "timezone": "Asia/Kolkata"},
                "destination": {"code_iata": "BLR", "code_icao": "VOBL", "timezone": "Asia/Kolkata"},
                "aircraft_type": "B38M",
                "registration": "VT-YAB",
                "scheduled_out": "2024-03-01T00:35:00Z",
                "scheduled_in": "2024-03-01T02:15:00Z",
                "route_distance": 537,
                "status": "Scheduled",
            },
        ]
    }
    record = parse_aeroapi(body, "QP1457", "2024-03-01")
    assert record.origin.iata == "BOM"
    assert record.aircraft_manufacturer == "Boeing"
    assert record.registration == "VT-YAB"
    assert record.has_schedule()


def test_parse_aeroapi_schedule_rows():
    body = {"scheduled": [{"ident": "QP1457", "origin_iata": "BOM", "destination_iata": "BLR"}]}
    record = parse_aeroapi(body, "QP1457", "2024-03-01")
    assert record.is_complete()
    assert parse_aeroapi({"flights": []}, "QP1457", "2024-03-01") is None


def test_aeroapi_endpoint_plan():
    adapter = AeroAPIAdapter("key")
    today = date(2024, 3, 1)
    old = adapter._plan("QP1457", date(2024, 1, 1), today)
    assert old[0][0].startswith("/history/flights/")
    live = adapter._plan("QP1457", today, today)
    assert live[0][0] == "/flights/QP1457"
    future = adapter._plan("QP1457", date(2024, 3, 20), today)
    assert future[0][0] == "/schedules/2024-03-20/2024-03-21"
    assert future[0][1]["airline"] == "QP" and future[0][1]["flight_number"] == "1457"


# ---------------- FR24 ----------------


def _fr24_leg(day_epoch: int, origin: str, dest: str):
    return {
        "identification": {"number": {"default": "QP1457"}, "callsign": "AKJ1457"},
        "status": {"text": "Landed 07:40"},
        "aircraft": {"model": {"code": "B38M", "text": "Boeing 737 MAX 8"}, "registration": "VT-YAC"},
        "airline": {"name": "Akasa Air", "code": {"iata": "QP", "icao": "AKJ"}},
        "airport": {
            "origin": {"code": {"iata": origin}},
            "destination": {"code": {"iata": dest}},
        },
        "time": {
            "scheduled": {"departure": day_epoch, "arrival": day_epoch + 6000},
            "real": {"departure": None, "arrival": None},
        },
    }


def test_parse_fr24_prefers_requested_day():
    feb_29 = int(datetime(2024, 2, 29, 0, 35, tzinfo=timezone.utc).timestamp())
    mar_01 = int(datetime(2024, 3, 1, 0, 35, tzinfo=timezone.utc).timestamp())
    body = {"result": {"response": {"data": [_fr24_leg(feb_29, "BOM", "DEL"), _fr24_leg(mar_01, "BOM", "BLR")]}}}
    record = parse_fr24(body, "QP1457", "2024-03-01")
    assert record.destination.iata == "BLR"
    assert record.registration == "VT-YAC"
    assert record.status == FlightStatus.LANDED
    assert record.scheduled_departure == datetime(2024, 3, 1, 0, 35, tzinfo=timezone.utc)


def test_parse_fr24_malformed():
    with pytest.raises(MalformedResponse):
        parse_fr24(["nope"], "QP1457", "2024-03-01")
    assert parse_fr24({"result": {"response": {"data": []}}}, "QP1457", "2024-03-01") is None


# ---------------- OpenSky ----------------


def test_callsign_uses_icao_designator():
    assert callsign_for("QP1457") == "AKJ1457"
    assert callsign_for("AKJ1457") == "AKJ1457"
    assert callsign_for("1457") is None


def test_parse_opensky_states():
    body = {
        "time": 1709264400,
        "states": [
            ["800abc", "AKJ1457 ", "India", 1709264390, 1709264395, 75.1, 16.2, 10668.0, False, 230.0, 145.0, 0.0],
        ],
    }
    record = parse_opensky_states(body, "AKJ1457", "QP1457", "2024-03-01")
    assert record.status == FlightStatus.AIRBORNE
    assert record.position.altitude_ft == 35000
    assert record.origin is None and record.destination is None
    assert parse_opensky_states({"states": None}, "AKJ1457", "QP1457", "2024-03-01") is None


def test_opensky_only_live_dates():
    adapter = OpenSkyAdapter(clock=lambda: datetime(2024, 3, 1, 12, tzinfo=timezone.utc))
    assert adapter.is_live("2024-03-01")
    assert adapter.is_live("2024-02-29")
    assert not adapter.is_live("2024-01-01")


# ---------------- search ----------------


class CannedSearch(SearchResultAdapter):
    def __init__(self, pages, **kwargs):
        super().__init__(url_templates=["https://one.example/?q={query}", "https://two.example/?q={query}"], **kwargs)
        self.pages = list(pages)
        self.urls = []

    async def _get(self, url, params=None, *, headers=None, as_text=False):
        self.urls.append(url)
        page = self.pages.pop(0)
        if isinstance(page, Exception):
            raise page
        return page


async def test_search_falls_through_engines():
    adapter = CannedSearch([
        ProviderError("search", "HTTP 503", status=503),
        "<p>Akasa Air QP1457 BOM - BLR</p>",
    ])
    outcome = await adapter.fetch("QP1457", "2024-03-01")
    assert isinstance(outcome, PartialFlightRecord)
    assert outcome.origin.iata == "BOM"
    assert len(adapter.urls) == 2


async def test_search_all_engines_down_is_a_failure():
    adapter = CannedSearch([
        ProviderError("search", "HTTP 503", status=503),
        ProviderError("search", "HTTP 503", status=503),
    ])
    outcome = await adapter.fetch("QP1457", "2024-03-01")
    assert isinstance(outcome, ProviderFailure)
    assert outcome.kind == FailureKind.HTTP_ERROR


def test_parsers_ignore_rows_for_other_flights():
    aeroapi_body = {"flights": [{"ident": "6E5123", "origin": {"code_iata": "DEL"}, "destination": {"code_iata": "BOM"}}]}
    assert parse_aeroapi(aeroapi_body, "QP1457", "2024-03-01") is None

    mar_01 = int(datetime(2024, 3, 1, 0, 35, tzinfo=timezone.utc).timestamp())
    other = _fr24_leg(mar_01, "DEL", "BOM")
    other["identification"] = {"number": {"default": "6E5123"}, "callsign": "IGO5123"}
    assert parse_fr24({"result": {"response": {"data": [other]}}}, "QP1457", "2024-03-01") is None
