import pytest
from httpx import ASGITransport, AsyncClient

from app.config import settings
from app.dependencies import get_request_context
from app.main import app
from tests.fakes import FakeDrafter, FakeSender, FakeStore, make_context, make_driver, make_load


@pytest.fixture
def api_key():
    return settings.API_KEY


@pytest.fixture
def sample_loads():
    return [
        make_load("LOAD-001", "Dallas, TX", "Atlanta, GA", posted_rate=2.85, market_rate_avg=2.60),
        make_load("LOAD-002", "Dallas, TX", "Memphis, TN", posted_rate=2.40, market_rate_avg=2.45),
        make_load("LOAD-003", "Memphis, TN", "Atlanta, GA", posted_rate=2.60, market_rate_avg=2.50),
        make_load(
            "LOAD-004", "Fort Worth, TX", "Houston, TX", posted_rate=2.20, market_rate_avg=2.30,
            book_now_rate=2.25,
        ),
        make_load("LOAD-005", "Chicago, IL", "Indianapolis, IN", posted_rate=2.10, equipment="Reefer"),
    ]


@pytest.fixture
def store(sample_loads):
    return FakeStore(loads=sample_loads, drivers=[make_driver()])


@pytest.fixture
def drafter():
    return FakeDrafter()


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def ctx(store, drafter, sender):
    return make_context(store, drafter=drafter, sender=sender)


@pytest.fixture
async def client(api_key, ctx):
    app.dependency_overrides[get_request_context] = lambda: ctx
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        ac.headers["X-API-Key"] = api_key
        yield ac
    app.dependency_overrides.clear()
