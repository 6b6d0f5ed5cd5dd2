# models.py
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ─────────────────────────────────────────────
# ENUMS
# ─────────────────────────────────────────────


class FlightStatus(str, Enum):
    SCHEDULED = "scheduled"
    BOARDING = "boarding"
    DEPARTED = "departed"
    AIRBORNE = "airborne"
    LANDED = "landed"
    DELAYED = "delayed"
    CANCELLED = "cancelled"


class AircraftCategory(str, Enum):
    NARROW_BODY = "narrow-body"
    WIDE_BODY = "wide-body"
    REGIONAL = "regional"


class FailureKind(str, Enum):
    NO_DATA = "no_data"
    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    MALFORMED = "malformed"
    HTTP_ERROR = "http_error"
    QUOTA_EXCEEDED = "quota_exceeded"
    NOT_CONFIGURED = "not_configured"


class Rarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class SeatClass(str, Enum):
    ECONOMY = "economy"
    PREMIUM_ECONOMY = "premium_economy"
    BUSINESS = "business"
    FIRST = "first"


# ─────────────────────────────────────────────
# REFERENCE DATA
# ─────────────────────────────────────────────


class Airport(BaseModel):
    model_config = ConfigDict(frozen=True)

    iata: str
    icao: str
    name: str
    city: str
    country: str
    continent: str
    lat: float
    lon: float
    elevation_ft: int = 0
    timezone: str
    aliases: Tuple[str, ...] = ()


class AircraftType(BaseModel):
    model_config = ConfigDict(frozen=True)

    icao_code: str
    iata_code: Optional[str] = None
    manufacturer: str
    model: str
    category: AircraftCategory
    cruise_speed_kts: float
    typical_capacity: int
    aliases: Tuple[str, ...] = ()


# ─────────────────────────────────────────────
# ADAPTER BOUNDARY
# ─────────────────────────────────────────────


class AirportRef(BaseModel):
    """An endpoint as a provider reported it, optionally backed by the reference table."""

    iata: str
    icao: Optional[str] = None
    name: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    continent: Optional[str] = None
    timezone: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    validated: bool = False

    @field_validator("iata")
    @classmethod
    def _upper_iata(cls, v: str) -> str:
        return v.strip().upper()

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lon is not None


class Position(BaseModel):
    lat: float
    lon: float
    altitude_ft: Optional[float] = None
    speed_kts: Optional[float] = None
    heading: Optional[float] = None
    on_ground: Optional[bool] = None
    observed_at: Optional[datetime] = None


class PartialFlightRecord(BaseModel):
    """Best-effort record produced by one adapter; every field a provider may omit is Optional."""

    source: str
    flight_number: str
    date: str
    origin: Optional[AirportRef] = None
    destination: Optional[AirportRef] = None
    airline_code: Optional[str] = None
    airline_name: Optional[str] = None
    aircraft_code: Optional[str] = None
    aircraft_model: Optional[str] = None
    aircraft_manufacturer: Optional[str] = None
    registration: Optional[str] = None
    scheduled_departure: Optional[datetime] = None
    scheduled_arrival: Optional[datetime] = None
    actual_departure: Optional[datetime] = None
    actual_arrival: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    distance_miles: Optional[float] = None
    status: Optional[FlightStatus] = None
    position: Optional[Position] = None

    def is_complete(self) -> bool:
        """Both endpoints present, distinct, and each known to the reference table or geolocated."""
        if self.origin is None or self.destination is None:
            return False
        if self.origin.iata == self.destination.iata:
            return False
        for ref in (self.origin, self.destination):
            if not (ref.validated or ref.has_coordinates):
                return False
        return True

    def has_schedule(self) -> bool:
        return self.scheduled_departure is not None and self.scheduled_arrival is not None

    def has_aircraft(self) -> bool:
        return bool(self.aircraft_code or self.aircraft_model)

    def richness(self) -> int:
        score = 0
        if self.has_schedule():
            score += 2
        if self.has_aircraft():
            score += 2
        if self.registration:
            score += 1
        if self.airline_name:
            score += 1
        return score


class ProviderFailure(BaseModel):
    source: str
    kind: FailureKind
    message: str = ""


# ─────────────────────────────────────────────
# RESOLVED FLIGHT
# ─────────────────────────────────────────────


class AirlineInfo(BaseModel):
    code: Optional[str] = None
    icao: Optional[str] = None
    name: Optional[str] = None
    country: Optional[str] = None


class AircraftInfo(BaseModel):
    type_code: Optional[str] = None
    model: Optional[str] = None
    manufacturer: Optional[str] = None
    category: Optional[AircraftCategory] = None
    registration: Optional[str] = None
    needs_user_input: bool = True


class Schedule(BaseModel):
    scheduled_departure: Optional[datetime] = None
    scheduled_arrival: Optional[datetime] = None
    actual_departure: Optional[datetime] = None
    actual_arrival: Optional[datetime] = None


class Provenance(BaseModel):
    source: str
    confidence: float = Field(default=1.0, ge=0, le=1)
    synthesized: bool = False
    distance_source: Literal["computed", "provider", "unknown"] = "unknown"
    duration_source: Literal["timestamps", "provider", "estimated", "unknown"] = "unknown"
    contributors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    failures: List[ProviderFailure] = Field(default_factory=list)


class EnrichedFlight(BaseModel):
    flight_number: str
    date: str
    airline: AirlineInfo = Field(default_factory=AirlineInfo)
    aircraft: AircraftInfo = Field(default_factory=AircraftInfo)
    origin: AirportRef
    destination: AirportRef
    distance_miles: float = Field(ge=0)
    duration_minutes: int = Field(ge=0)
    schedule: Schedule = Field(default_factory=Schedule)
    status: FlightStatus = FlightStatus.SCHEDULED
    position: Optional[Position] = None
    # User-supplied metadata; score() never reads it
    seat_class: Optional[SeatClass] = None
    provenance: Provenance

    @model_validator(mode="after")
    def _distinct_endpoints(self) -> "EnrichedFlight":
        if self.origin.iata == self.destination.iata:
            raise ValueError("departure and arrival airports must differ")
        return self

    @property
    def is_international(self) -> bool:
        a, b = self.origin.country, self.destination.country
        return bool(a and b and a != b)

    @property
    def route_key(self) -> str:
        return f"{self.origin.iata}-{self.destination.iata}"


class NotFound(BaseModel):
    """Resolution exhausted; distinct from a zero-distance flight so callers can ask for manual entry."""

    flight_number: str
    date: str
    attempted: List[str] = Field(default_factory=list)
    failures: List[ProviderFailure] = Field(default_factory=list)
    reason: str = "resolution_exhausted"


class CacheEntry(BaseModel):
    key: str
    payload: EnrichedFlight
    created_at: datetime
    ttl_seconds: float

    def is_fresh(self, now: datetime) -> bool:
        return (now - self.created_at).total_seconds() < self.ttl_seconds


# ─────────────────────────────────────────────
# GAMIFICATION
# ─────────────────────────────────────────────


class FlightSummary(BaseModel):
    flight_number: str
    date: str
    route: str
    distance_miles: float
    duration_minutes: int


class UserStats(BaseModel):
    user_id: str
    total_flights: int = 0
    total_distance_miles: float = 0.0
    total_minutes: int = 0
    airports: List[str] = Field(default_factory=list)
    countries: List[str] = Field(default_factory=list)
    continents: List[str] = Field(default_factory=list)
    airlines: List[str] = Field(default_factory=list)
    aircraft_models: List[str] = Field(default_factory=list)
    manufacturers: List[str] = Field(default_factory=list)
    longest_flight: Optional[FlightSummary] = None
    shortest_flight: Optional[FlightSummary] = None
    route_counts: Dict[str, int] = Field(default_factory=dict)
    night_flights: int = 0
    wide_body_flights: int = 0
    international_flights: int = 0
    domestic_flights: int = 0
    long_haul_flights: int = 0
    total_xp: int = 0
    unlocked_achievements: List[str] = Field(default_factory=list)
    version: int = 0

    @property
    def level(self) -> int:
        return self.total_xp // 1000 + 1

    @property
    def xp_to_next_level(self) -> int:
        return self.level * 1000 - self.total_xp


class UserStatsDelta(BaseModel):
    """Everything one flight adds to a user's aggregates."""

    flights: int = 1
    distance_miles: float = 0.0
    minutes: int = 0
    xp: int = 0
    new_airports: List[str] = Field(default_factory=list)
    new_countries: List[str] = Field(default_factory=list)
    new_continents: List[str] = Field(default_factory=list)
    new_airlines: List[str] = Field(default_factory=list)
    new_aircraft_models: List[str] = Field(default_factory=list)
    new_manufacturers: List[str] = Field(default_factory=list)
    route: Optional[str] = None
    summary: Optional[FlightSummary] = None
    night_flight: bool = False
    wide_body: bool = False
    international: bool = False
    long_haul: bool = False


class AchievementRule(BaseModel):
    kind: Literal["counter", "predicate"]
    metric: Optional[str] = None
    threshold: Optional[float] = None
    predicate: Optional[str] = None

    @model_validator(mode="after")
    def _check_shape(self) -> "AchievementRule":
        if self.kind == "counter" and (self.metric is None or self.threshold is None):
            raise ValueError("counter rules need metric and threshold")
        if self.kind == "predicate" and not self.predicate:
            raise ValueError("predicate rules need a predicate name")
        return self


class Achievement(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    category: str
    rule: AchievementRule
    xp_reward: int = 0
    rarity: Rarity = Rarity.COMMON


class LevelInfo(BaseModel):
    level: int
    total_xp: int
    xp_into_level: int
    xp_to_next_level: int
    title: str


class ScoreResult(BaseModel):
    xp_delta: int = Field(ge=0)
    xp_breakdown: Dict[str, int] = Field(default_factory=dict)
    new_achievements: List[str] = Field(default_factory=list)
    delta: UserStatsDelta
    next_stats: UserStats
    level_before: int
    level: int

    @property
    def leveled_up(self) -> bool:
        return self.level > self.level_before


class FlightOverrides(BaseModel):
    """User corrections applied after resolution. seat_class is kept as metadata and earns no XP."""

    aircraft_manufacturer: Optional[str] = None
    aircraft_model: Optional[str] = None
    registration: Optional[str] = None
    seat_class: Optional[SeatClass] = None


class LoggedFlight(BaseModel):
    """Outcome of one successful log_flight call."""

    flight: EnrichedFlight
    score: ScoreResult
    stats: UserStats
    attempts: int = 1
    processing_time: Dict[str, float] = Field(default_factory=dict)
