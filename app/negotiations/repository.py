from datetime import datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClientSession, AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.database import is_write_conflict
from app.errors import ConflictError, ServiceUnavailableError
from app.negotiations.models import (
    NEGOTIATION_TRANSITIONS,
    Negotiation,
    NegotiationStatus,
    Offer,
)


class NegotiationRepository:
    """Negotiation store with compare-and-swap turn updates.

    A turn only lands if the stored record still has the round and status the
    caller read, so two broker replies racing on one negotiation cannot both
    append offers.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def get(self, negotiation_id: str) -> Optional[Negotiation]:
        try:
            doc = await self.db.negotiations.find_one({"negotiation_id": negotiation_id}, {"_id": 0})
        except PyMongoError as exc:
            raise ServiceUnavailableError("Negotiation store", details={"reason": str(exc)}) from exc
        return Negotiation(**doc) if doc else None

    async def insert(
        self, negotiation: Negotiation, session: Optional[AsyncIOMotorClientSession] = None
    ) -> None:
        try:
            await self.db.negotiations.insert_one(negotiation.model_dump(mode="json"), session=session)
        except DuplicateKeyError as exc:
            # Partial unique index: one in-progress negotiation per load
            raise ConflictError(
                f"Load {negotiation.load_id} already has a negotiation in progress",
                code="NEGOTIATION_IN_PROGRESS",
                details={"load_id": negotiation.load_id},
            ) from exc
        except PyMongoError as exc:
            if is_write_conflict(exc):
                raise ConflictError(
                    f"Load {negotiation.load_id} was updated by a concurrent request",
                    code="NEGOTIATION_IN_PROGRESS",
                    details={"load_id": negotiation.load_id},
                ) from exc
            raise ServiceUnavailableError("Negotiation store", details={"reason": str(exc)}) from exc

    async def update(
        self,
        negotiation_id: str,
        expected_round: int,
        *,
        current_round: int,
        status: NegotiationStatus,
        new_offers: list[Offer],
        booking_id: Optional[str] = None,
        updated_at: datetime,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> None:
        """Apply one turn: new round, new status, appended offers. All or nothing."""
        if status not in NEGOTIATION_TRANSITIONS[NegotiationStatus.IN_PROGRESS]:
            raise ValueError(f"Illegal negotiation transition to {status}")
        if current_round <= expected_round:
            raise ValueError("Round numbers must strictly increase")

        changes: dict = {
            "current_round": current_round,
            "status": status.value,
            "updated_at": updated_at.isoformat(),
        }
        if booking_id is not None:
            changes["booking_id"] = booking_id

        try:
            result = await self.db.negotiations.update_one(
                {
                    "negotiation_id": negotiation_id,
                    "current_round": expected_round,
                    "status": NegotiationStatus.IN_PROGRESS.value,
                },
                {
                    "$set": changes,
                    "$push": {"offers": {"$each": [o.model_dump(mode="json") for o in new_offers]}},
                },
                session=session,
            )
        except PyMongoError as exc:
            if is_write_conflict(exc):
                raise ConflictError(
                    f"Negotiation {negotiation_id} was updated by a concurrent request",
                    code="NEGOTIATION_CONFLICT",
                    details={"negotiation_id": negotiation_id, "expected_round": expected_round},
                ) from exc
            raise ServiceUnavailableError("Negotiation store", details={"reason": str(exc)}) from exc

        if result.matched_count == 0:
            raise ConflictError(
                f"Negotiation {negotiation_id} changed since round {expected_round}",
                code="NEGOTIATION_CONFLICT",
                details={"negotiation_id": negotiation_id, "expected_round": expected_round},
            )
