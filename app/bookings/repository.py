from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClientSession, AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.bookings.models import Booking, Document
from app.database import is_write_conflict
from app.errors import ConflictError, ServiceUnavailableError


class BookingRepository:
    """Writes for the ``bookings`` and ``documents`` collections.

    Inserts are meant to run inside app.database.transaction() together with
    the conditional load status update, so a booking never exists without
    its load being marked booked.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def insert_booking(
        self, booking: Booking, session: Optional[AsyncIOMotorClientSession] = None
    ) -> None:
        try:
            await self.db.bookings.insert_one(booking.model_dump(mode="json"), session=session)
        except DuplicateKeyError as exc:
            # Unique index on load_id: someone else booked this load
            raise ConflictError(
                f"Load {booking.load_id} already has a booking",
                code="LOAD_ALREADY_BOOKED",
                details={"load_id": booking.load_id},
            ) from exc
        except PyMongoError as exc:
            if is_write_conflict(exc):
                raise ConflictError(
                    f"Load {booking.load_id} was booked by a concurrent request",
                    code="LOAD_ALREADY_BOOKED",
                    details={"load_id": booking.load_id},
                ) from exc
            raise ServiceUnavailableError("Booking store", details={"reason": str(exc)}) from exc

    async def insert_document(
        self, document: Document, session: Optional[AsyncIOMotorClientSession] = None
    ) -> None:
        try:
            await self.db.documents.insert_one(document.model_dump(mode="json"), session=session)
        except PyMongoError as exc:
            if is_write_conflict(exc):
                raise ConflictError(
                    f"Rate confirmation for load {document.load_id} collided with a concurrent write",
                    code="DOCUMENT_CONFLICT",
                    details={"doc_id": document.doc_id},
                ) from exc
            raise ServiceUnavailableError("Document store", details={"reason": str(exc)}) from exc

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        try:
            doc = await self.db.bookings.find_one({"booking_id": booking_id}, {"_id": 0})
        except PyMongoError as exc:
            raise ServiceUnavailableError("Booking store", details={"reason": str(exc)}) from exc
        return Booking(**doc) if doc else None
