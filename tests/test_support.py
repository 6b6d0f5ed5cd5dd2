import json
import logging
from datetime import datetime, timedelta, timezone

import pytest

from flightxp.errors import StatsApplicationConflict
from flightxp.logging_utils import JSONLogFormatter, get_request_id, log_event, new_request_id, set_request_id
from flightxp.models import UserStats
from flightxp.stores import InMemoryUserStatsStore
from flightxp.utils import (
    is_valid_flight_number,
    minutes_between,
    normalize_flight_number,
    parse_timestamp,
    split_ident,
)


# ---------------- identifiers and timestamps ----------------


def test_flight_number_normalization():
    assert normalize_flight_number(" qp 1457 ") == "QP1457"
    assert is_valid_flight_number("QP1457")
    assert is_valid_flight_number("6E204")
    assert not is_valid_flight_number("HELLO")
    assert split_ident("AKJ1457A") == ("AKJ", "1457", "A")


def test_parse_timestamp_shapes():
    aware = parse_timestamp("2024-03-01T00:35:00Z")
    assert aware == datetime(2024, 3, 1, 0, 35, tzinfo=timezone.utc)
    localized = parse_timestamp("2024-03-01T06:05:00", "Asia/Kolkata")
    assert localized.utcoffset() == timedelta(hours=5, minutes=30)
    assert parse_timestamp(1709253300) == datetime(2024, 3, 1, 0, 35, tzinfo=timezone.utc)
    assert parse_timestamp("tomorrow") is None
    assert parse_timestamp(None) is None


def test_minutes_between_rejects_inverted_ranges():
    start = datetime(2024, 3, 1, 1, tzinfo=timezone.utc)
    assert minutes_between(start, start + timedelta(minutes=95)) == 95
    assert minutes_between(start, start) is None
    assert minutes_between(start, None) is None


# ---------------- user stats store ----------------


def test_stats_store_compare_and_swap():
    store = InMemoryUserStatsStore()
    saved = store.save(UserStats(user_id="u1", total_flights=1), expected_version=0)
    assert saved.version == 1

    with pytest.raises(StatsApplicationConflict) as err:
        store.save(UserStats(user_id="u1", total_flights=5), expected_version=0)
    assert err.value.actual_version == 1
    assert store.get("u1").total_flights == 1


def test_stats_store_returns_copies():
    store = InMemoryUserStatsStore()
    store.save(UserStats(user_id="u1"), expected_version=0)
    copy = store.get("u1")
    copy.airports.append("BOM")
    assert store.get("u1").airports == []


# ---------------- logging ----------------


def test_log_event_renames_reserved_fields(caplog):
    logger = logging.getLogger("flightxp.test")
    with caplog.at_level(logging.INFO, logger="flightxp.test"):
        log_event(logger, "adapter_failed", adapter="fr24", module="fr24_client")
    record = caplog.records[-1]
    assert record.event == "adapter_failed"
    assert record.adapter == "fr24"
    assert record.field_module == "fr24_client"


def test_json_formatter_includes_request_id():
    set_request_id("abc123")
    try:
        record = logging.LogRecord("flightxp.resolver", logging.INFO, __file__, 1, "race_winner", None, None)
        record.adapter = "aerodatabox"
        payload = json.loads(JSONLogFormatter().format(record))
    finally:
        set_request_id(None)
    assert payload["message"] == "race_winner"
    assert payload["request_id"] == "abc123"
    assert payload["adapter"] == "aerodatabox"
    assert payload["logger"] == "flightxp.resolver"


def test_request_ids_are_unique():
    first = new_request_id()
    second = new_request_id()
    set_request_id(None)
    assert first != second
    assert get_request_id() is None
