import logging
import random
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .database import AsyncSessionLocal, create_tables
from .exceptions import PitPulseError
from .routers.badges import router as badges_router
from .routers.bands import router as bands_router
from .routers.checkins import router as checkins_router
from .routers.events import router as events_router
from .routers.health import router as health_router
from .routers.reviews import router as reviews_router
from .routers.users import router as users_router
from .routers.venues import router as venues_router
from .services.background import rating_updates
from .services.badge_service import BadgeService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    async with AsyncSessionLocal() as db:
        await BadgeService(db).ensure_catalog()

    yield

    # Let queued rating recomputes finish before the loop goes away
    await rating_updates.shutdown()


app = FastAPI(
    title="PitPulse API",
    description="""
# PitPulse API

Reviews, check-ins and badges for live-music venues and bands.

All endpoints live under `/api` and answer with the envelope
`{"success": bool, "data": ..., "message": ...}`; failures carry
`{"success": false, "error": "..."}`.

## Authentication

`POST /api/users/register` and `POST /api/users/login` return a bearer token.
Send it as `Authorization: Bearer <token>`.
""",
    version="1.0.0",
    lifespan=lifespan,
)

API_PREFIX = "/api"

app.include_router(health_router)
app.include_router(users_router, prefix=API_PREFIX)
app.include_router(venues_router, prefix=API_PREFIX)
app.include_router(bands_router, prefix=API_PREFIX)
app.include_router(reviews_router, prefix=API_PREFIX)
app.include_router(events_router, prefix=API_PREFIX)
app.include_router(checkins_router, prefix=API_PREFIX)
app.include_router(badges_router, prefix=API_PREFIX)

# CORS for the web and mobile clients
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Prometheus metrics
REQUEST_COUNT = Counter("http_requests_total", "Total HTTP requests", [
                        "method", "route", "status"])
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2, 5)
)


def _error_response(request: Request, status_code: int, message: str) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    headers = {"X-Request-ID": request_id} if request_id else None
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers,
    )


@app.exception_handler(PitPulseError)
async def pitpulse_error_handler(request: Request, exc: PitPulseError):
    if exc.status_code >= 500:
        logger.error(f"{exc.message} rid={getattr(request.state, 'request_id', None)}")
    return _error_response(request, exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = f"Route {request.url.path} not found"
    else:
        message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _error_response(request, exc.status_code, message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{field}: {error.get('msg')}" if field else error.get("msg"))
    return _error_response(request, 400, "; ".join(problems) or "Invalid request")


@app.middleware("http")
async def add_request_id_and_errors(request: Request, call_next):
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    # Lightweight structured log, everything in debug and a sample otherwise
    if settings.debug or random.random() < settings.log_sample_rate:
        logger.info({
            "event": "request",
            "method": request.method,
            "path": request.url.path,
            "rid": request_id,
        })
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception(f"Unhandled error rid={request_id}")
        route = getattr(request.scope.get("route"), "path", request.url.path)
        REQUEST_COUNT.labels(method=request.method, route=route, status=500).inc()
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal server error"},
            headers={"X-Request-ID": request_id},
        )
    REQUEST_LATENCY.observe(time.perf_counter() - start)
    route = getattr(request.scope.get("route"), "path", request.url.path)
    REQUEST_COUNT.labels(method=request.method, route=route, status=response.status_code).inc()
    response.headers["X-Request-ID"] = request_id
    return response


@app.get("/")
async def root():
    return {
        "success": True,
        "data": {"name": settings.app_name, "docs": "/docs", "health": "/health"},
    }


@app.get("/metrics")
async def metrics(request: Request):
    # In dev/debug mode, expose metrics without auth
    if not settings.debug:
        token = request.headers.get("X-Metrics-Token")
        if not settings.metrics_token or token != settings.metrics_token:
            return JSONResponse(status_code=403, content={"success": False, "error": "Forbidden"})
    return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
