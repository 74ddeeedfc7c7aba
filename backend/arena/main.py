"""
Main FastAPI application
Entry point for the Arena battle voting API
"""

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from contextlib import asynccontextmanager
import logging

from arena.core.config import settings
from arena.core.security import limiter, get_security_headers
from arena.core.database import engine, init_db, close_db
from arena.core.redis import init_redis, get_redis_client, close_redis
from arena.engine.errors import ErrorKind

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.DEBUG else logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ============================================================================
# LIFESPAN CONTEXT MANAGER
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Arena API")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")
    logger.info(
        f"Odds: house_edge={settings.HOUSE_EDGE} min={settings.MIN_ODDS} "
        f"seed={settings.SEED_ODDS} closing_window={settings.CLOSING_WINDOW_SECONDS}s"
    )

    await init_db()
    logger.info("Database ready")

    if settings.REDIS_URL:
        try:
            await init_redis(settings.REDIS_URL)
            logger.info("Redis connected")
        except Exception as e:
            logger.error(f"Redis connection failed, live odds feed disabled: {e}")

    logger.info("Application startup complete")

    yield  # Application runs here

    # ==================== SHUTDOWN ====================
    logger.info("Shutting down Arena API")

    await close_redis()
    logger.info("Redis connection closed")

    await close_db()
    logger.info("Database connections closed")

    logger.info("Shutdown complete")

# ============================================================================
# CREATE FASTAPI APP
# ============================================================================

app = FastAPI(
    title="Arena Battle Voting API",
    description="Pari-mutuel battle voting: live odds, wagers and settlement",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan
)

# Add rate limiter
app.state.limiter = limiter

# ============================================================================
# MIDDLEWARE
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-User-Id", "X-Admin-Key"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    for key, value in get_security_headers().items():
        response.headers[key] = value
    return response


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Rate limit exceeded. Please try again later.",
            "limit": str(exc.detail)
        }
    )

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # A malformed stake is the same rejection as a non-positive one
    errors = exc.errors()
    if errors and all(tuple(err.get("loc", ()))[:2] == ("body", "amount") for err in errors):
        return JSONResponse(
            status_code=400,
            content={
                "detail": {
                    "error": ErrorKind.INVALID_AMOUNT.value,
                    "message": "Amount must be a positive, finite number"
                }
            }
        )
    return await request_validation_exception_handler(request, exc)

@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    # Routes that bypass the engine (reads, admin views) still report the ledger kind
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={
            "detail": {
                "error": ErrorKind.LEDGER_UNAVAILABLE.value,
                "message": "Storage temporarily unavailable. Please retry."
            }
        }
    )

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    if settings.DEBUG:
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "error": str(exc),
                "type": type(exc).__name__
            }
        )

    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

# ============================================================================
# ROOT ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    return {
        "message": "Arena Battle Voting API",
        "version": "1.0.0",
        "status": "operational",
        "redis_status": "connected" if get_redis_client() else "disconnected"
    }

@app.get("/health")
async def health_check():
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        database = "up"
    except SQLAlchemyError as e:
        logger.warning(f"Health check: database unreachable: {e}")
        database = "down"

    return {
        "status": "healthy" if database == "up" else "degraded",
        "services": {
            "database": database,
            "redis": "up" if get_redis_client() else "down",
            "odds_feed": "up" if get_redis_client() else "down"
        }
    }

# ============================================================================
# API ROUTES
# ============================================================================

from arena.api import contests, wallet, live  # noqa: E402

app.include_router(contests.router, prefix="/contests", tags=["Contests"])
app.include_router(wallet.router, prefix="/wallet", tags=["Wallet"])
app.include_router(live.router, prefix="/live", tags=["Live Odds"])

# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "arena.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
