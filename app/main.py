"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.errors import MarketplaceError
from app.middleware import BodySizeLimitMiddleware, RequestLoggingMiddleware, SecurityHeadersMiddleware
from app.redis import close_redis_pool
from app.routers import (
    admin,
    bids,
    jobs,
    listings,
    notifications,
    reports,
    reviews,
    technicians,
    users,
    wallet,
)

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown."""
    logger.info("Starting marketplace API (env=%s)", settings.env)
    if settings.dev_endpoints_allowed and (settings.dev_login_enabled or settings.dev_deposit_enabled):
        logger.warning("Development shortcuts are enabled; never run this configuration in production")

    yield

    await close_redis_pool()
    logger.info("Marketplace API stopped")


app = FastAPI(
    title="Labour Marketplace",
    description="Jobs, bids, escrow wallets and moderation for a local services marketplace",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    """Map typed service failures onto HTTP status codes."""
    if exc.expected:
        logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.detail, exc.kind)
    else:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.detail, exc.kind)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": exc.kind},
    )


# CORS - restrict to configured origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Middleware (order matters: the last added runs outermost)
app.add_middleware(SecurityHeadersMiddleware, hsts=settings.is_production)
app.add_middleware(BodySizeLimitMiddleware, max_bytes=262_144)
app.add_middleware(RequestLoggingMiddleware)

# Routers
app.include_router(users.router)
app.include_router(jobs.router)
app.include_router(bids.router)
app.include_router(wallet.router)
app.include_router(reviews.router)
app.include_router(technicians.router)
app.include_router(listings.router)
app.include_router(reports.router)
app.include_router(notifications.router)
app.include_router(admin.router)


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}
