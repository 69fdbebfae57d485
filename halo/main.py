import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from . import database
from . import models  # noqa: F401 - registers tables on Base
from .config import ALLOWED_ORIGINS
from .domain.accounts.router import router as accounts_router
from .domain.ai.router import router as ai_router
from .domain.documents.router import router as documents_router
from .domain.ratings.router import router as ratings_router
from .domain.savepoints.router import router as savepoints_router
from .domain.scheduling.router import router as scheduling_router
from .rate_limiter import get_redis_client
from .security_headers import SecurityHeadersMiddleware

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Request lines from the HTTP clients are noise next to our own logs
for noisy in ("httpx", "httpcore"):
    logging.getLogger(noisy).setLevel(logging.WARNING)

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"


def create_tables():
    try:
        database.Base.metadata.create_all(bind=database.engine, checkfirst=True)
        logger.info("✅ Database tables ready")
    except SQLAlchemyError as e:
        # Two workers racing on create_all; the loser sees the winner's tables
        if "already exists" in str(e) or "duplicate key" in str(e):
            logger.info("Database tables were created by another worker")
        else:
            logger.error(f"❌ Failed to create database tables: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Halo Assistant API starting")
    if database.is_configured():
        create_tables()
    else:
        logger.warning("⚠️ DATABASE_URL not set - only /health and the root route will answer")

    if get_redis_client() is None:
        logger.info("Rate limits are counted per process")

    yield
    logger.info("Halo Assistant API stopped")


app = FastAPI(title="Halo Assistant API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """A malformed Authorization header is an authentication failure, not a 422"""
    errors = exc.errors()
    if any("authorization" in str(error.get("loc", "")).lower() for error in errors):
        logger.warning(f"🔒 Bad Authorization header on {request.url.path}")
        return JSONResponse(
            status_code=401,
            content={"detail": "Not authenticated. Send an API key as 'Authorization: Bearer <key>'."},
        )

    logger.info(f"Validation failed for {request.method} {request.url.path}: {len(errors)} error(s)")
    # ctx may hold exception instances, which JSONResponse cannot serialize
    detail = [{k: v for k, v in error.items() if k != "ctx"} for error in errors]
    return JSONResponse(status_code=422, content={"detail": detail})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"❌ {request.method} {request.url.path} failed: {e}")
        raise
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.debug(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f}ms)")
    return response


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"])
else:
    logger.warning("⚠️ Security headers disabled")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,  # session cookie
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

for router in (
    accounts_router,
    documents_router,
    savepoints_router,
    scheduling_router,
    ratings_router,
    ai_router,
):
    app.include_router(router)


@app.get("/")
def root():
    return {"message": "Halo Assistant API is running"}


@app.get("/health")
def health():
    return {
        "status": "healthy",
        "database": "configured" if database.is_configured() else "not configured",
    }
