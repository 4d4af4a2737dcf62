"""MongoDB connection lifecycle management.

Uses a module-level singleton client. Call connect_db() at app startup
(via the FastAPI lifespan) before using get_database().

Bookings and negotiation turns are written inside multi-document
transactions, so MONGODB_URI must point at a replica set (a single-node
replica set is enough for local development).
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorClientSession,
    AsyncIOMotorDatabase,
)
from pymongo import ASCENDING
from pymongo.errors import OperationFailure, PyMongoError

from app.config import settings
from app.errors import ConflictError, ServiceUnavailableError

client: Optional[AsyncIOMotorClient] = None

# Server error code for a write that collided with another transaction
WRITE_CONFLICT = 112


def get_client() -> AsyncIOMotorClient:
    if client is None:
        raise RuntimeError("Database client is not initialized. Call connect_db() first.")
    return client


def get_database() -> AsyncIOMotorDatabase:
    return get_client()[settings.DATABASE_NAME]


def is_write_conflict(exc: PyMongoError) -> bool:
    """True when MongoDB aborted the write because a concurrent transaction touched the same document."""
    if not isinstance(exc, OperationFailure):
        return False
    return exc.code == WRITE_CONFLICT or exc.has_error_label("TransientTransactionError")


async def connect_db() -> None:
    global client
    client = AsyncIOMotorClient(
        settings.MONGODB_URI,
        serverSelectionTimeoutMS=settings.MONGO_TIMEOUT_MS,
        timeoutMS=settings.MONGO_TIMEOUT_MS,
    )


async def disconnect_db() -> None:
    global client
    if client:
        client.close()
        client = None


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create the unique indexes the conditional writes rely on."""
    await db.loads.create_index("load_id", unique=True)
    await db.loads.create_index([("status", ASCENDING), ("equipment", ASCENDING)])
    await db.drivers.create_index("driver_id", unique=True)
    await db.bookings.create_index("booking_id", unique=True)
    # At most one booking per load
    await db.bookings.create_index("load_id", unique=True)
    await db.documents.create_index("doc_id", unique=True)
    await db.negotiations.create_index("negotiation_id", unique=True)
    # At most one in-progress negotiation per load
    await db.negotiations.create_index(
        "load_id",
        unique=True,
        name="one_active_negotiation_per_load",
        partialFilterExpression={"status": "in_progress"},
    )


@asynccontextmanager
async def transaction() -> AsyncIterator[AsyncIOMotorClientSession]:
    """Run the enclosed writes as one all-or-nothing transaction.

    Any exception raised inside the block aborts the transaction. A commit
    that lost to a concurrent transaction surfaces as ConflictError; other
    driver errors surface as ServiceUnavailable.
    """
    try:
        async with await get_client().start_session() as session:
            async with session.start_transaction():
                yield session
    except PyMongoError as exc:
        if is_write_conflict(exc):
            raise ConflictError(
                "A concurrent update won; reload and try again",
                code="WRITE_CONFLICT",
                details={"reason": str(exc)},
            ) from exc
        raise ServiceUnavailableError("Database", details={"reason": str(exc)}) from exc
