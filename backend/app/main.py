"""
SmartTravel Deal Planner -- FastAPI Application
Trip form intake, simulated agent offers, deal ranking and email delivery.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import logging.config
from datetime import datetime
import time
import asyncio

from slowapi.errors import RateLimitExceeded

from app.core.config import settings
from app.core.rate_limiting import limiter, rate_limit_handler
from app.db.database import init_db, mark_unavailable
from app.api import health, routes_agents, routes_deals, routes_logs, routes_trips

DB_INIT_ATTEMPTS = 3

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}

logging.config.dictConfig({
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "text": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
        },
        "json": {"()": "app.core.monitoring.JSONFormatter"},
    },
    "handlers": {
        "stdout": {
            "class": "logging.StreamHandler",
            "formatter": "json" if settings.log_format.lower() == "json" else "text",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        "app": {"handlers": ["stdout"], "level": settings.log_level},
        "uvicorn": {"handlers": ["stdout"], "level": "INFO"},
        "sqlalchemy": {"handlers": ["stdout"], "level": "WARNING"},
    },
})
logger = logging.getLogger(__name__)


async def _init_database() -> bool:
    """Create tables and seed agents, retrying a few times before giving up."""
    for attempt in range(1, DB_INIT_ATTEMPTS + 1):
        try:
            init_db()
            return True
        except Exception as e:
            if attempt == DB_INIT_ATTEMPTS:
                logger.error(f"Database init failed after {attempt} attempts, data routes will answer 503: {e}")
                return False
            logger.warning(f"Database init attempt {attempt}/{DB_INIT_ATTEMPTS} failed: {e}, retrying in 2s...")
            await asyncio.sleep(2)
    return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} v{settings.app_version} ({settings.environment})")

    if not await _init_database():
        mark_unavailable()

    if not (settings.gmail_user and settings.gmail_app_password):
        logger.warning("GMAIL_USER / GMAIL_APP_PASSWORD not set, deal emails run in mock mode")
    if settings.omnidimension_api_key and settings.omnidimension_endpoint:
        logger.info(f"Agent offers come from {settings.omnidimension_endpoint}")
    else:
        logger.info("Agent offers come from the local persona generator")

    yield

    logger.info("Application shutting down")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="SmartTravel Pro -- AI agent travel deals, ranked and delivered by email.",
    docs_url="/docs" if settings.debug else None,
    redoc_url=None,
    openapi_url="/openapi.json" if settings.debug else None,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

app.add_middleware(GZipMiddleware, minimum_size=500)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


@app.middleware("http")
async def request_middleware(request: Request, call_next):
    """Access log, timing header and security headers."""
    start = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - start

    response.headers["X-Process-Time"] = f"{elapsed:.3f}"
    response.headers.update(SECURITY_HEADERS)
    request_id = request.headers.get("X-Request-ID")
    if request_id:
        response.headers["X-Request-ID"] = request_id

    logger.info(f"{request.method} {request.url.path} -> {response.status_code} in {elapsed:.3f}s")
    return response


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
            "timestamp": datetime.utcnow().isoformat(),
        },
    )


for router in (
    health.router,
    routes_trips.router,
    routes_deals.router,
    routes_logs.router,
    routes_logs.chat_router,
    routes_agents.router,
):
    app.include_router(router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "health": f"{settings.api_prefix}/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        workers=settings.api_workers,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
