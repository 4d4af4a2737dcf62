from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from app.database import is_write_conflict, transaction
from app.errors import ConflictError, ServiceUnavailableError

WRITE_CONFLICT = OperationFailure(
    "WriteConflict", code=112, details={"errorLabels": ["TransientTransactionError"]}
)


def _mock_client(commit_error=None):
    """A client whose transaction raises ``commit_error`` when the block exits."""
    txn = MagicMock()
    txn.__aenter__ = AsyncMock(return_value=None)
    txn.__aexit__ = AsyncMock(side_effect=commit_error, return_value=False)

    session = MagicMock()
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=False)
    session.start_transaction = MagicMock(return_value=txn)

    client = MagicMock()
    client.start_session = AsyncMock(return_value=session)
    return client, session


def test_is_write_conflict():
    assert is_write_conflict(WRITE_CONFLICT)
    assert is_write_conflict(OperationFailure("aborted", details={"errorLabels": ["TransientTransactionError"]}))
    assert not is_write_conflict(OperationFailure("not authorized", code=13))
    assert not is_write_conflict(ServerSelectionTimeoutError("no primary"))


async def test_transaction_yields_session():
    client, session = _mock_client()
    with patch("app.database.client", client):
        async with transaction() as active:
            assert active is session


async def test_lost_commit_is_conflict():
    client, _ = _mock_client(commit_error=WRITE_CONFLICT)
    with patch("app.database.client", client):
        with pytest.raises(ConflictError):
            async with transaction():
                pass


async def test_driver_failure_is_service_unavailable():
    client, _ = _mock_client(commit_error=ServerSelectionTimeoutError("no primary"))
    with patch("app.database.client", client):
        with pytest.raises(ServiceUnavailableError):
            async with transaction():
                pass
