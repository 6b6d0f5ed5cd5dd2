"""
Static achievement catalogue and rule evaluation.

Rules are evaluated against a UserStats snapshot taken after the flight has
been applied. Counter rules compare one metric against a threshold; predicate
rules look up a named function in PREDICATES.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Tuple

from .logging_utils import log_event
from .models import Achievement, AchievementRule, Rarity, UserStats

logger = logging.getLogger("flightxp.achievements")

Predicate = Callable[[UserStats], bool]

# Counter metric name -> accessor on UserStats
METRICS: Dict[str, Callable[[UserStats], float]] = {
    "flights": lambda s: s.total_flights,
    "miles": lambda s: s.total_distance_miles,
    "minutes": lambda s: s.total_minutes,
    "countries": lambda s: len(s.countries),
    "airports": lambda s: len(s.airports),
    "airlines": lambda s: len(s.airlines),
    "aircraft": lambda s: len(s.aircraft_models),
    "manufacturers": lambda s: len(s.manufacturers),
    "continents": lambda s: len(s.continents),
}

PREDICATES: Dict[str, Predicate] = {}


def predicate(name: str) -> Callable[[Predicate], Predicate]:
    """Register a named custom predicate."""

    def decorator(fn: Predicate) -> Predicate:
        if name in PREDICATES:
            raise ValueError(f"predicate already registered: {name}")
        PREDICATES[name] = fn
        return fn

    return decorator


@predicate("red_eye_warrior")
def _red_eye_warrior(stats: UserStats) -> bool:
    return stats.night_flights >= 10


@predicate("wide_body_lover")
def _wide_body_lover(stats: UserStats) -> bool:
    return stats.wide_body_flights >= 10


@predicate("continent_crusher")
def _continent_crusher(stats: UserStats) -> bool:
    # Antarctica has no scheduled service
    return len(stats.continents) >= 6


@predicate("international_debut")
def _international_debut(stats: UserStats) -> bool:
    return stats.international_flights >= 1


@predicate("long_haul_hero")
def _long_haul_hero(stats: UserStats) -> bool:
    return stats.long_haul_flights >= 5


def _counter(metric: str, threshold: float) -> AchievementRule:
    return AchievementRule(kind="counter", metric=metric, threshold=threshold)


def _custom(name: str) -> AchievementRule:
    return AchievementRule(kind="predicate", predicate=name)


# (id, name, description, category, rule, xp_reward, rarity)
_ROWS: List[Tuple[str, str, str, str, AchievementRule, int, Rarity]] = [
    # Frequency
    ("first_flight", "First Flight", "Log your very first flight", "frequency",
     _counter("flights", 1), 100, Rarity.COMMON),
    ("frequent_flyer", "Frequent Flyer", "Complete 50 flights", "frequency",
     _counter("flights", 50), 500, Rarity.RARE),
    ("sky_warrior", "Sky Warrior", "Complete 200 flights", "frequency",
     _counter("flights", 200), 2000, Rarity.EPIC),
    # Distance
    ("hundred_k_club", "100K Mile Club", "Fly 100,000 miles", "distance",
     _counter("miles", 100_000), 1000, Rarity.RARE),
    ("million_mile_club", "Million Mile Club", "Fly 1,000,000 miles", "distance",
     _counter("miles", 1_000_000), 10000, Rarity.LEGENDARY),
    ("long_haul_hero", "Long-Haul Hero", "Complete 5 flights longer than six hours", "distance",
     _custom("long_haul_hero"), 1000, Rarity.RARE),
    # Exploration
    ("international_debut", "Passport Stamp", "Take your first international flight", "exploration",
     _custom("international_debut"), 200, Rarity.COMMON),
    ("international_explorer", "International Explorer", "Visit 5 different countries", "exploration",
     _counter("countries", 5), 500, Rarity.COMMON),
    ("globe_trotter", "Globe Trotter", "Visit 25 different countries", "exploration",
     _counter("countries", 25), 2500, Rarity.EPIC),
    ("continent_crusher", "Continent Crusher", "Visit all 6 inhabited continents", "exploration",
     _custom("continent_crusher"), 5000, Rarity.LEGENDARY),
    ("airport_hopper", "Airport Hopper", "Visit 100 different airports", "exploration",
     _counter("airports", 100), 5000, Rarity.LEGENDARY),
    # Aircraft
    ("aircraft_collector", "Aircraft Collector", "Fly on 20 different aircraft types", "aircraft",
     _counter("aircraft", 20), 1000, Rarity.RARE),
    ("wide_body_lover", "Wide-Body Lover", "Fly 10 times on wide-body aircraft", "aircraft",
     _custom("wide_body_lover"), 1500, Rarity.EPIC),
    # Airlines
    ("airline_collector", "Airline Collector", "Fly with 20 different airlines", "airlines",
     _counter("airlines", 20), 2000, Rarity.EPIC),
    # Special
    ("red_eye_warrior", "Red-Eye Warrior", "Complete 10 overnight flights", "special",
     _custom("red_eye_warrior"), 1000, Rarity.RARE),
]

ACHIEVEMENTS: Dict[str, Achievement] = {
    row[0]: Achievement(
        id=row[0],
        name=row[1],
        description=row[2],
        category=row[3],
        rule=row[4],
        xp_reward=row[5],
        rarity=row[6],
    )
    for row in _ROWS
}


def achievement_catalog() -> List[Achievement]:
    """Every achievement in catalogue order."""
    return list(ACHIEVEMENTS.values())


def get_achievement(achievement_id: str) -> Optional[Achievement]:
    return ACHIEVEMENTS.get(achievement_id)


def rule_satisfied(rule: AchievementRule, stats: UserStats) -> bool:
    if rule.kind == "counter":
        accessor = METRICS.get(rule.metric or "")
        if accessor is None:
            log_event(logger, "unknown_metric", level=logging.WARNING, metric=rule.metric)
            return False
        return accessor(stats) >= (rule.threshold or 0)
    fn = PREDICATES.get(rule.predicate or "")
    if fn is None:
        log_event(logger, "unknown_predicate", level=logging.WARNING, predicate=rule.predicate)
        return False
    return fn(stats)


def newly_unlocked(
    stats: UserStats, catalog: Optional[List[Achievement]] = None
) -> List[str]:
    """Ids satisfied by `stats` that are not already in its unlocked set, in catalogue order."""
    unlocked = set(stats.unlocked_achievements)
    return [
        a.id
        for a in (catalog if catalog is not None else achievement_catalog())
        if a.id not in unlocked and rule_satisfied(a.rule, stats)
    ]
