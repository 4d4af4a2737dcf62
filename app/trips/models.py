from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

from app.config import Settings
from app.geo import Location
from app.loads.models import EquipmentType, Load


@dataclass(frozen=True)
class SearchConfig:
    """Search radii, thresholds, and caps. Built once from Settings."""

    direct_radius_miles: float = 75
    corridor_radius_miles: float = 75
    toward_factor: float = 0.8
    direct_score_threshold: float = 7.0
    savings_threshold: float = 50
    open_ended_max_deadhead: float = 100
    backhaul_home_radius_miles: float = 100
    backhaul_triangle_factor: float = 0.7
    max_chain_legs: int = 3
    max_chains: int = 10
    max_direct_results: int = 10

    @classmethod
    def from_settings(cls, settings: Settings) -> "SearchConfig":
        return cls(
            direct_radius_miles=settings.DIRECT_RADIUS_MILES,
            corridor_radius_miles=settings.CORRIDOR_RADIUS_MILES,
            toward_factor=settings.TOWARD_FACTOR,
            direct_score_threshold=settings.DIRECT_SCORE_THRESHOLD,
            savings_threshold=settings.SAVINGS_THRESHOLD,
            open_ended_max_deadhead=settings.OPEN_ENDED_MAX_DEADHEAD,
            backhaul_home_radius_miles=settings.BACKHAUL_HOME_RADIUS_MILES,
            backhaul_triangle_factor=settings.BACKHAUL_TRIANGLE_FACTOR,
            max_chain_legs=min(settings.MAX_CHAIN_LEGS, 3),
            max_chains=settings.MAX_CHAINS,
        )


class SearchMode(str, Enum):
    ONE_WAY = "one_way"
    CORRIDOR_CHAIN = "corridor_chain"
    OPEN_ENDED = "open_ended"
    BACKHAUL = "backhaul"
    ROUND_TRIP = "round_trip"


# Modes that work out their own destination (or need none)
DESTINATION_OPTIONAL_MODES = {SearchMode.OPEN_ENDED, SearchMode.BACKHAUL}


class LocationInput(BaseModel):
    """Either coordinates or a city name the geo lookup can resolve."""

    city: Optional[str] = None  # e.g. "Dallas, TX" or "Dallas"
    state: Optional[str] = None
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)


class TripSearchRequest(BaseModel):
    """Body of POST /api/trips/search.

    ``mode`` is kept as a plain string so an unknown value is reported through
    the service's own validation instead of a generic schema error.
    """

    driver_id: str
    mode: str = SearchMode.ONE_WAY.value
    origin: Optional[LocationInput] = None  # Defaults to driver location for backhaul/open_ended
    destination: Optional[LocationInput] = None
    equipment: Optional[EquipmentType] = None
    min_rate: Optional[float] = Field(None, gt=0)
    max_deadhead: Optional[float] = Field(None, gt=0)  # open_ended scan radius


class LoadWithScore(BaseModel):
    load: Load
    trip_score: float  # 0-10
    deadhead_miles: float
    revenue_per_mile: float
    market_comparison: Literal["above", "at", "below"]


class LoadChain(BaseModel):
    chain_id: str
    legs: list[LoadWithScore]  # 1-3 legs, in driving order
    chain_score: float  # 0-10
    total_revenue: float  # USD
    total_miles: float  # Loaded + deadhead
    total_deadhead: float
    revenue_per_mile: float
    summary: str  # "Dallas, TX → Memphis, TN → Atlanta, GA"


class RegionSummary(BaseModel):
    """Open-ended search: where the loads leaving this area are headed."""

    region: str  # Destination state code
    load_count: int
    avg_trip_score: float
    best_load: LoadWithScore


class RoundTrip(BaseModel):
    outbound: LoadWithScore
    return_leg: LoadWithScore
    total_revenue: float
    total_miles: float
    total_deadhead: float
    revenue_per_mile: float


class MarketInsight(BaseModel):
    avg_market_rate: float  # Mean market_rate_avg over the loads in the results
    load_count: int  # Available loads scanned for this search
    recommendation: str
    best_option: Literal["direct", "chain", "none"]
    savings_vs_direct: Optional[float] = None


class SearchMetadata(BaseModel):
    search_time_ms: int
    loads_scanned: int
    chains_evaluated: int
    driver_location: Location
    request_id: str


class TripSearchResponse(BaseModel):
    search_mode: SearchMode
    origin: Location
    destination: Optional[Location] = None
    direct_loads: list[LoadWithScore] = Field(default_factory=list)
    chains: list[LoadChain] = Field(default_factory=list)
    regions: list[RegionSummary] = Field(default_factory=list)
    round_trips: list[RoundTrip] = Field(default_factory=list)
    market_insight: MarketInsight
    metadata: SearchMetadata
