import hmac
import uuid

from fastapi import Header, HTTPException, Request

from app.config import settings
from app.context import RequestContext, build_context
from app.database import get_database, transaction


async def verify_api_key(x_api_key: str = Header(...)) -> str:
    if not hmac.compare_digest(x_api_key, settings.API_KEY):
        raise HTTPException(status_code=401, detail="Invalid API key")
    return x_api_key


def get_request_id(request: Request) -> str:
    # Set by the request-id middleware in app.main; fall back for direct calls
    return getattr(request.state, "request_id", None) or uuid.uuid4().hex


async def get_request_context(request: Request) -> RequestContext:
    # Collaborators are built once in the app lifespan
    return build_context(
        request_id=get_request_id(request),
        db=get_database(),
        settings=settings,
        transaction=transaction,
        collaborators=request.app.state.collaborators,
    )
