from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field


class NegotiationStrategy(str, Enum):
    AGGRESSIVE = "aggressive"
    MODERATE = "moderate"
    CONSERVATIVE = "conservative"


class NegotiationStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WALKED_AWAY = "walked_away"


# Legal negotiation status transitions. Every state except IN_PROGRESS is terminal.
NEGOTIATION_TRANSITIONS: dict[NegotiationStatus, frozenset[NegotiationStatus]] = {
    NegotiationStatus.IN_PROGRESS: frozenset(NegotiationStatus),
    NegotiationStatus.ACCEPTED: frozenset(),
    NegotiationStatus.REJECTED: frozenset(),
    NegotiationStatus.WALKED_AWAY: frozenset(),
}


def is_terminal(status: NegotiationStatus) -> bool:
    return not NEGOTIATION_TRANSITIONS[status]


class OfferSender(str, Enum):
    DRIVER = "driver"
    BROKER = "broker"


class Offer(BaseModel):
    """One turn in the negotiation. Append-only: never edited once stored."""

    round: int  # Strictly increasing across a negotiation's offer history
    amount: float  # $/mile
    sender: OfferSender
    timestamp: datetime
    email_body: str  # The email text that carried this offer


class Negotiation(BaseModel):
    """Stateful record of an automated rate negotiation with one broker."""

    negotiation_id: str
    load_id: str
    driver_id: str
    broker_email: str
    driver_min_rate: float  # The driver's floor; any broker offer at or above it is accepted
    market_rate: float  # Lane market average at start
    posted_rate: float  # Broker's posted rate at start
    max_rounds: int  # Round budget, fixed when the negotiation starts
    current_round: int  # Round of the latest offer
    strategy: NegotiationStrategy
    status: NegotiationStatus = NegotiationStatus.IN_PROGRESS
    offers: list[Offer] = Field(default_factory=list)
    booking_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# API shapes
# ---------------------------------------------------------------------------


class StartNegotiationRequest(BaseModel):
    load_id: str
    driver_id: str
    strategy: NegotiationStrategy
    max_rounds: Optional[int] = Field(None, ge=2, le=20)  # Defaults to NEGOTIATION_MAX_ROUNDS


class InitialOffer(BaseModel):
    round: int
    amount: float
    email_body: str


class StartNegotiationResponse(BaseModel):
    negotiation_id: str
    status: NegotiationStatus
    max_rounds: int
    initial_offer: InitialOffer


class BrokerResponseRequest(BaseModel):
    """A broker's reply, as forwarded by the email automation webhook."""

    broker_email: str = Field(..., min_length=3)
    email_body: str = Field(..., min_length=1)
    counter_offer: Optional[float] = Field(None, gt=0)  # Wins over anything parsed from email_body
    rejected: bool = False  # Broker declined outright; ends the negotiation


class LatestOffer(BaseModel):
    round: int
    amount: float
    sender: OfferSender


class BrokerResponseResult(BaseModel):
    negotiation_id: str
    status: NegotiationStatus
    current_round: int
    latest_offer: Optional[LatestOffer] = None
    booking_id: Optional[str] = None


class BrokerSimulationRequest(BaseModel):
    negotiation_id: str
    driver_offer: float = Field(..., gt=0)
    posted_rate: float = Field(..., gt=0)
    market_rate_avg: float = Field(..., gt=0)
    round: int = Field(..., ge=1)
    max_rounds: int = Field(4, ge=1)


class BrokerSimulationResponse(BaseModel):
    negotiation_id: str
    action: Literal["accept", "counter", "reject"]
    broker_offer: Optional[float] = None
    message: str
    delay_seconds: int
