from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.drivers.models import Driver
from app.errors import ServiceUnavailableError


class DriverRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def get(self, driver_id: str) -> Optional[Driver]:
        try:
            doc = await self.db.drivers.find_one({"driver_id": driver_id}, {"_id": 0})
        except PyMongoError as exc:
            raise ServiceUnavailableError("Driver repository", details={"reason": str(exc)}) from exc
        return Driver(**doc) if doc else None
