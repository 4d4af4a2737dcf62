from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from app.geo import Location


class EquipmentType(str, Enum):
    DRY_VAN = "Dry Van"
    REEFER = "Reefer"
    FLATBED = "Flatbed"


class BookingType(str, Enum):
    BOOK_NOW = "book_now"
    NEGOTIABLE = "negotiable"
    HOT = "hot"


class RateTrend(str, Enum):
    RISING = "rising"
    FALLING = "falling"
    STABLE = "stable"


class LoadStatus(str, Enum):
    AVAILABLE = "available"
    IN_NEGOTIATION = "in_negotiation"
    BOOKED = "booked"


# Legal load status transitions. Nothing leaves BOOKED; IN_NEGOTIATION can be
# released back to AVAILABLE when a negotiation ends without a deal.
LOAD_TRANSITIONS: dict[LoadStatus, frozenset[LoadStatus]] = {
    LoadStatus.AVAILABLE: frozenset({LoadStatus.IN_NEGOTIATION, LoadStatus.BOOKED}),
    LoadStatus.IN_NEGOTIATION: frozenset({LoadStatus.AVAILABLE, LoadStatus.BOOKED}),
    LoadStatus.BOOKED: frozenset(),
}


def can_transition(current: LoadStatus, target: LoadStatus) -> bool:
    return target in LOAD_TRANSITIONS[current]


class Broker(BaseModel):
    name: str  # Brokerage company name
    contact: str = ""  # Person handling the load
    email: str  # Where negotiation emails are sent
    phone: str = ""
    rating: float = 0.0  # 0-5 stars
    payment_terms: str = ""  # e.g. "Net 30"
    on_time_payment: float = 0.0  # Percentage of invoices paid on time


class Load(BaseModel):
    """A freight shipment a driver can search for, negotiate on, and book.

    This is both the database document shape and the API response shape.
    All rates are USD per mile.
    """

    load_id: str  # Unique identifier, e.g. "LOAD-00042"
    origin: Location
    destination: Location
    distance_miles: float  # Loaded miles from origin to destination
    equipment: EquipmentType
    weight_lbs: float = 0
    posted_rate: float  # Broker's posted $/mile
    market_rate_avg: float  # Lane market average $/mile
    market_rate_high: float = 0
    market_rate_low: float = 0
    rate_trend: RateTrend = RateTrend.STABLE
    booking_type: BookingType = BookingType.NEGOTIABLE
    book_now_rate: Optional[float] = None  # Instant-book $/mile, when offered
    broker: Broker
    pickup_window: str = ""
    delivery_deadline: str = ""
    status: LoadStatus = LoadStatus.AVAILABLE


class LoadFilters(BaseModel):
    """Repository-level filters applied to the available-loads scan."""

    equipment: Optional[EquipmentType] = None
    min_rate: Optional[float] = Field(None, gt=0)  # Minimum posted $/mile
    booking_type: Optional[BookingType] = None
    origin_city: Optional[str] = None  # Case-insensitive substring of origin.city
    dest_city: Optional[str] = None  # Case-insensitive substring of destination.city


class LoadResponse(BaseModel):
    """Wrapper for search results returned to the client."""

    loads: list[Load]
    total: int
