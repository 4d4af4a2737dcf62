import re
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClientSession, AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from app.database import is_write_conflict
from app.errors import ConflictError, ServiceUnavailableError
from app.loads.models import Load, LoadFilters, LoadStatus, can_transition


class LoadRepository:
    """Reads and conditional status writes against the ``loads`` collection."""

    def __init__(self, db: AsyncIOMotorDatabase, scan_limit: int = 500):
        self.db = db
        self.scan_limit = scan_limit

    @staticmethod
    def build_query(filters: LoadFilters) -> dict:
        query: dict = {"status": LoadStatus.AVAILABLE.value}
        if filters.equipment:
            query["equipment"] = filters.equipment.value
        if filters.min_rate is not None:
            query["posted_rate"] = {"$gte": filters.min_rate}
        if filters.booking_type:
            query["booking_type"] = filters.booking_type.value
        # re.escape keeps user input literal inside $regex
        if filters.origin_city:
            query["origin.city"] = {"$regex": re.escape(filters.origin_city.strip()), "$options": "i"}
        if filters.dest_city:
            query["destination.city"] = {"$regex": re.escape(filters.dest_city.strip()), "$options": "i"}
        return query

    async def list_available(self, filters: Optional[LoadFilters] = None) -> list[Load]:
        """Return available loads matching the filters, capped at scan_limit."""
        query = self.build_query(filters or LoadFilters())
        try:
            cursor = self.db.loads.find(query, {"_id": 0})
            docs = await cursor.to_list(length=self.scan_limit)
        except PyMongoError as exc:
            raise ServiceUnavailableError("Load repository", details={"reason": str(exc)}) from exc
        return [Load(**doc) for doc in docs]

    async def get(self, load_id: str) -> Optional[Load]:
        try:
            doc = await self.db.loads.find_one({"load_id": load_id}, {"_id": 0})
        except PyMongoError as exc:
            raise ServiceUnavailableError("Load repository", details={"reason": str(exc)}) from exc
        return Load(**doc) if doc else None

    async def conditional_update_status(
        self,
        load_id: str,
        expected: set[LoadStatus],
        target: LoadStatus,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> Load:
        """Move a load to ``target`` only if its current status is in ``expected``.

        Raises ConflictError when no document matched (unknown load, or the
        status already moved on). The check and the write are one
        find_one_and_update, so concurrent callers cannot both win.
        """
        allowed = [s.value for s in expected if can_transition(s, target)]
        if not allowed:
            raise ValueError(f"No legal transition from {sorted(expected)} to {target.value}")
        try:
            doc = await self.db.loads.find_one_and_update(
                {"load_id": load_id, "status": {"$in": allowed}},
                {"$set": {"status": target.value}},
                projection={"_id": 0},
                return_document=ReturnDocument.AFTER,
                session=session,
            )
        except PyMongoError as exc:
            if is_write_conflict(exc):
                raise ConflictError(
                    f"Load {load_id} was updated by a concurrent request",
                    code="LOAD_STATUS_CONFLICT",
                    details={"load_id": load_id, "target": target.value},
                ) from exc
            raise ServiceUnavailableError("Load repository", details={"reason": str(exc)}) from exc
        if doc is None:
            raise ConflictError(
                f"Load {load_id} is no longer {' or '.join(sorted(allowed))}",
                code="LOAD_STATUS_CONFLICT",
                details={"load_id": load_id, "target": target.value},
            )
        return Load(**doc)
