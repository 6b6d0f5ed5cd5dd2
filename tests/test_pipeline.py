import pytest

from conftest import FakeAdapter, make_record
from flightxp.errors import StatsApplicationConflict
from flightxp.models import FlightOverrides, LoggedFlight, NotFound, SeatClass, UserStats
from flightxp.normalizer import normalize
from flightxp.pipeline import FlightLogPipeline, apply_overrides
from flightxp.resolver import FlightResolver
from flightxp.stores import InMemoryUserStatsStore


@pytest.fixture
def resolver(cache, quota, settings):
    return FlightResolver([FakeAdapter("fast", make_record("fast"))], cache=cache, quota=quota, settings=settings)


class RacingStore(InMemoryUserStatsStore):
    """Another writer lands a flight between our read and our write, `races` times."""

    def __init__(self, races: int) -> None:
        super().__init__()
        self.races = races
        self.saves = 0

    def save(self, stats, expected_version):
        self.saves += 1
        if self.races > 0:
            self.races -= 1
            current = self.get(stats.user_id) or UserStats(user_id=stats.user_id)
            bumped = current.model_copy(update={"total_flights": current.total_flights + 1, "total_xp": current.total_xp + 50})
            super().save(bumped, expected_version=current.version)
        return super().save(stats, expected_version)


async def test_log_flight_scores_and_persists(resolver, stats_store):
    pipeline = FlightLogPipeline(resolver, stats_store)
    logged = await pipeline.log_flight("QP1457", "2024-03-01", "u1")

    assert isinstance(logged, LoggedFlight)
    assert logged.score.new_achievements == ["first_flight"]
    assert logged.stats.version == 1
    assert stats_store.get("u1").total_xp == logged.score.xp_delta
    assert "resolve" in logged.processing_time and "total" in logged.processing_time


async def test_not_found_passes_through(cache, quota, settings, stats_store):
    resolver = FlightResolver([FakeAdapter("empty", None)], cache=cache, quota=quota, settings=settings)
    result = await FlightLogPipeline(resolver, stats_store).log_flight("ZZ999", "2024-03-01", "u1")
    assert isinstance(result, NotFound)
    assert stats_store.get("u1") is None


async def test_conflict_rescored_against_fresh_stats(resolver):
    store = RacingStore(races=1)
    logged = await FlightLogPipeline(resolver, store).log_flight("QP1457", "2024-03-01", "u1")

    assert logged.attempts == 2
    saved = store.get("u1")
    assert saved.total_flights == 2
    assert saved.total_xp == 50 + logged.score.xp_delta
    assert saved.version == 2


async def test_conflict_retries_are_bounded(resolver):
    store = RacingStore(races=10)
    pipeline = FlightLogPipeline(resolver, store, max_retries=2)
    with pytest.raises(StatsApplicationConflict):
        await pipeline.log_flight("QP1457", "2024-03-01", "u1")
    assert store.saves == 3


async def test_overrides_applied_but_not_cached(resolver, cache, stats_store):
    overrides = FlightOverrides(aircraft_model="A350-900", registration="vt-abc", seat_class=SeatClass.BUSINESS)
    logged = await FlightLogPipeline(resolver, stats_store).log_flight("QP1457", "2024-03-01", "u1", overrides)

    assert logged.flight.aircraft.model == "A350-900"
    assert logged.flight.aircraft.manufacturer == "Airbus"
    assert logged.flight.aircraft.registration == "VT-ABC"
    assert not logged.flight.aircraft.needs_user_input
    assert logged.flight.seat_class == SeatClass.BUSINESS
    assert logged.score.xp_breakdown["wide_body"] == 150

    cached = cache.get("QP1457", "2024-03-01")
    assert cached.aircraft.model is None
    assert cached.aircraft.needs_user_input
    assert cached.seat_class is None


def test_no_overrides_is_identity():
    flight = normalize(make_record("fast"))
    assert apply_overrides(flight, None) is flight
    assert apply_overrides(flight, FlightOverrides()) is flight


async def test_stage_timers_released_when_a_stage_raises(resolver):
    from flightxp import pipeline as pipeline_module

    pipeline = FlightLogPipeline(resolver, RacingStore(races=10), max_retries=1)
    with pytest.raises(StatsApplicationConflict):
        await pipeline.log_flight("QP1457", "2024-03-01", "u1")
    with pytest.raises(ValueError):
        await pipeline.log_flight("QP1457", "not-a-date", "u1")

    assert pipeline_module.logger.timers == {}
