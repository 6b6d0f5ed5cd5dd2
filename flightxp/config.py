from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

# Base URLs
AERODATABOX_BASE_URL = "https://aerodatabox.p.rapidapi.com"
AERODATABOX_HOST = "aerodatabox.p.rapidapi.com"
AEROAPI_BASE_URL = "https://aeroapi.flightaware.com/aeroapi"  # v4 path
FR24_BASE_URL = "https://api.flightradar24.com/common/v1"
OPENSKY_BASE_URL = "https://opensky-network.org/api"

# Search engines tried in order by the search adapter; {query} is url-encoded
SEARCH_URL_TEMPLATES = [
    u.strip()
    for u in os.getenv(
        "SEARCH_URL_TEMPLATES",
        "https://html.duckduckgo.com/html/?q={query},https://www.bing.com/search?q={query}",
    ).split(",")
    if u.strip()
]
SEARCH_USER_AGENT = os.getenv(
    "SEARCH_USER_AGENT",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)

# API keys
AERODATABOX_KEY: str | None = os.getenv("AERODATABOX_KEY")
FLIGHTAWARE_API_KEY: str | None = os.getenv("FLIGHTAWARE_API_KEY")
FLIGHTRADAR24_API_KEY: str | None = os.getenv("FLIGHTRADAR24_API_KEY")
OPENSKY_USERNAME: str | None = os.getenv("OPENSKY_USERNAME") or None
OPENSKY_PASSWORD: str | None = os.getenv("OPENSKY_PASSWORD") or None
SEARCH_ENABLED: bool = os.getenv("SEARCH_ENABLED", "1") == "1"

# Rate limiting / concurrency knobs
AERODATABOX_MAX_RPS: float = float(os.getenv("AERODATABOX_MAX_RPS", "1"))
AERODATABOX_BURST: int = int(os.getenv("AERODATABOX_BURST", "2"))
AEROAPI_MAX_RPS: float = float(os.getenv("AEROAPI_MAX_RPS", "10"))
AEROAPI_BURST: int = int(os.getenv("AEROAPI_BURST", "3"))
FR24_MAX_RPS: float = float(os.getenv("FR24_MAX_RPS", "0.5"))  # ~30/min
FR24_BURST: int = int(os.getenv("FR24_BURST", "5"))
SEARCH_MAX_RPS: float = float(os.getenv("SEARCH_MAX_RPS", "0.5"))
SEARCH_BURST: int = int(os.getenv("SEARCH_BURST", "2"))

# Billing cap for the RapidAPI-metered provider (UTC calendar day)
AERODATABOX_DAILY_QUOTA: int = int(os.getenv("AERODATABOX_DAILY_QUOTA", "100"))

# Orchestrator timing (seconds)
ADAPTER_TIMEOUT_S: float = float(os.getenv("ADAPTER_TIMEOUT_S", "8"))
RACE_CEILING_S: float = float(os.getenv("RACE_CEILING_S", "12"))
SEQUENTIAL_TIMEOUT_S: float = float(os.getenv("SEQUENTIAL_TIMEOUT_S", "20"))
TELEMETRY_GRACE_S: float = float(os.getenv("TELEMETRY_GRACE_S", "2"))

# Cache freshness
CACHE_TTL_DAYS: int = int(os.getenv("CACHE_TTL_DAYS", "365"))
SYNTHESIZED_TTL_HOURS: int = int(os.getenv("SYNTHESIZED_TTL_HOURS", "6"))

# Geometry
DISTANCE_TOLERANCE: float = float(os.getenv("DISTANCE_TOLERANCE", "0.15"))
GROUND_OVERHEAD_MIN: int = int(os.getenv("GROUND_OVERHEAD_MIN", "30"))
DEFAULT_CRUISE_KTS: float = float(os.getenv("DEFAULT_CRUISE_KTS", "460"))

# Pipeline
STATS_MAX_RETRIES: int = int(os.getenv("STATS_MAX_RETRIES", "3"))

SERVICE_NAME = os.getenv("SERVICE_NAME", "flightxp")
ENV = os.getenv("APP_ENV", "dev")


@dataclass(frozen=True)
class ResolverSettings:
    """Timing and freshness knobs for one FlightResolver instance."""

    adapter_timeout_s: float = ADAPTER_TIMEOUT_S
    race_ceiling_s: float = RACE_CEILING_S
    sequential_timeout_s: float = SEQUENTIAL_TIMEOUT_S
    telemetry_grace_s: float = TELEMETRY_GRACE_S
    cache_ttl_s: float = CACHE_TTL_DAYS * 86400.0
    synthesized_ttl_s: float = SYNTHESIZED_TTL_HOURS * 3600.0
    distance_tolerance: float = DISTANCE_TOLERANCE
    synthesize: bool = True
