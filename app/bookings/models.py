from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"


class DocumentType(str, Enum):
    RATE_CONFIRMATION = "rate_confirmation"
    BOL = "bol"
    POD = "pod"
    INVOICE = "invoice"


class Booking(BaseModel):
    """A confirmed deal on a load. Created exactly once per load, never deleted."""

    booking_id: str  # e.g. "booking-lx2k9f-a81c0de"
    load_id: str
    driver_id: str
    final_rate: float  # Agreed $/mile
    status: BookingStatus = BookingStatus.CONFIRMED
    booked_at: datetime
    rate_con_doc_id: str  # The rate confirmation Document for this booking
    negotiation_id: Optional[str] = None  # Set when the deal came out of a negotiation


class Document(BaseModel):
    doc_id: str
    load_id: str
    driver_id: str
    doc_type: DocumentType
    storage_key: str  # Where the rendered file would live in object storage
    content: str  # Rendered document text
    created_at: datetime


class BookLoadRequest(BaseModel):
    driver_id: str


class BookingResponse(BaseModel):
    booking_id: str
    load_id: str
    final_rate: float
    rate_con_doc_id: str
    status: BookingStatus
