"""
Photo Stream API — entry point.

Startup sequence:
  1. Configure OTel tracing (→ Jaeger via OTLP)
  2. Initialise DB connection pool (TiDB, or SQLite via DATABASE_URL)
  3. Create tables if not present
  4. Expose Prometheus /metrics endpoint
"""
import logging

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from app.config import settings
from app.database import engine, init_db
from app.errors import PhotoStreamError, photo_stream_exception_handler
from app.telemetry import setup_tracing, instrument_app
from app.routers import bans, comments, photos, session, stream, users

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)

# Set up tracing before the app is created so all imports are instrumented
setup_tracing()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup and shutdown of the database pool."""
    logger.info("Starting Photo Stream API (env=%s)", settings.environment)

    await init_db()

    logger.info("Database connected. API ready.")
    yield

    logger.info("Shutting down...")
    await engine.dispose()


app = FastAPI(
    title="Photo Stream API",
    description=(
        "Photo sharing backend: uploads, follows, likes, comments, bans "
        "and a reverse-chronological stream."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

# ── Error mapping ──────────────────────────────────────────────────────────
app.add_exception_handler(PhotoStreamError, photo_stream_exception_handler)


@app.exception_handler(Exception)
async def handle_unexpected_exception(request: Request, exc: Exception):
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred", "code": "INTERNAL_ERROR"},
    )


# ── Routers ────────────────────────────────────────────────────────────────
app.include_router(session.router, prefix="/session", tags=["Session"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(bans.router, prefix="/bans", tags=["Moderation"])
app.include_router(photos.router, prefix="/photos", tags=["Photos"])
app.include_router(comments.router, prefix="/comments", tags=["Photos"])
app.include_router(stream.router, prefix="/stream", tags=["Stream"])

# ── Prometheus metrics endpoint ────────────────────────────────────────────
# Mounted at /metrics — scraped by Prometheus
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# ── OTel FastAPI instrumentation ──────────────────────────────────────────
instrument_app(app)


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "service": settings.service_name}
