"""flightxp: multi-source flight resolution and XP scoring."""

from .achievements import achievement_catalog
from .cache import FlightCache
from .config import ResolverSettings
from .errors import (
    FlightXPError,
    ProviderError,
    ResolutionExhausted,
    StatsApplicationConflict,
)
from .gamification import level_info, score
from .logging_utils import configure_logging
from .models import (
    Achievement,
    EnrichedFlight,
    FlightOverrides,
    LoggedFlight,
    NotFound,
    ScoreResult,
    UserStats,
    UserStatsDelta,
)
from .pipeline import FlightLogPipeline, apply_overrides
from .quota import QuotaTracker
from .resolver import FlightResolver, ResolutionState
from .stores import InMemoryCacheStore, InMemoryQuotaStore, InMemoryUserStatsStore

__version__ = "0.1.0"

__all__ = [
    "Achievement",
    "EnrichedFlight",
    "FlightCache",
    "FlightLogPipeline",
    "FlightOverrides",
    "FlightResolver",
    "FlightXPError",
    "InMemoryCacheStore",
    "InMemoryQuotaStore",
    "InMemoryUserStatsStore",
    "LoggedFlight",
    "NotFound",
    "ProviderError",
    "QuotaTracker",
    "ResolutionExhausted",
    "ResolutionState",
    "ResolverSettings",
    "ScoreResult",
    "StatsApplicationConflict",
    "UserStats",
    "UserStatsDelta",
    "achievement_catalog",
    "apply_overrides",
    "configure_logging",
    "level_info",
    "score",
]
