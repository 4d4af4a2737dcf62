import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.bookings.router import router as bookings_router
from app.config import settings
from app.context import build_collaborators
from app.database import connect_db, disconnect_db, ensure_indexes, get_database
from app.errors import AppError, ClientInputError
from app.loads.router import router as loads_router
from app.negotiations.router import router as negotiations_router
from app.trips.router import router as trips_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"


@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_db()
    await ensure_indexes(get_database())
    logger.info("Connected to MongoDB database %s", settings.DATABASE_NAME)
    app.state.collaborators = build_collaborators(settings)
    yield
    await app.state.collaborators.aclose()
    await disconnect_db()


app = FastAPI(
    title="Freight Trip Matching",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.DOCS_ENABLED else None,
    redoc_url="/redoc" if settings.DOCS_ENABLED else None,
    openapi_url="/openapi.json" if settings.DOCS_ENABLED else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",")],
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER],
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request.state.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request.state.request_id
    return response


def _error_response(request: Request, status_code: int, body: dict) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None) or uuid.uuid4().hex
    return JSONResponse(
        status_code=status_code,
        content={"error": body, "request_id": request_id},
        headers={REQUEST_ID_HEADER: request_id},
    )


def _error_body(exc: AppError) -> dict:
    body = {"code": exc.code, "category": exc.category, "message": exc.message}
    if exc.details:
        body["details"] = exc.details
    return body


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.warning("%s [%s]", exc, getattr(request.state, "request_id", "-"))
    return _error_response(request, exc.status_code, _error_body(exc))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    error = ClientInputError(
        "Request validation failed",
        code="VALIDATION_ERROR",
        details={"errors": [{"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors()]},
    )
    return _error_response(request, error.status_code, _error_body(error))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # Auth failures and unknown routes
    body = {
        "code": "UNAUTHORIZED" if exc.status_code == 401 else f"HTTP_{exc.status_code}",
        "category": "fix_input",
        "message": str(exc.detail),
    }
    return _error_response(request, exc.status_code, body)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled error on %s %s [%s]",
        request.method,
        request.url.path,
        getattr(request.state, "request_id", "-"),
        exc_info=exc,
    )
    body = {
        "code": "INTERNAL_SERVER_ERROR",
        "category": "internal",
        "message": "An unexpected error occurred",
    }
    return _error_response(request, 500, body)


app.include_router(loads_router)
app.include_router(trips_router)
app.include_router(negotiations_router)
app.include_router(bookings_router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}
