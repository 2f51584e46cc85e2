"""
FastAPI application factory.

* Registers routes for pricing, bookings, transactions, account and admin.
* Renders every domain error as ``{"detail": ...}`` with its status code.
* Applies rate-limiting middleware.
* Disposes the DB engine on shutdown via lifespan events.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.api.middleware import limiter
from src.api.routes import account, admin, bookings, pricing, transactions
from src.config import settings
from src.domain.exceptions import BookingPlatformError
from src.infrastructure.database import engine

logging.basicConfig(level=settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Charter booking API starting")
    yield
    await engine.dispose()
    logger.info("Charter booking API stopped")


async def _domain_error_handler(
    request: Request, exc: BookingPlatformError
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s", type(exc).__name__, request.method, request.url.path)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Helicopter Charter Booking API",
        description=(
            "Quotes point-to-point helicopter charters from a tiered distance "
            "table and settles bookings against user account balances with "
            "an atomic transaction ledger."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Domain errors
    app.add_exception_handler(BookingPlatformError, _domain_error_handler)

    # Routers
    app.include_router(pricing.router, prefix="/api/v1")
    app.include_router(bookings.router, prefix="/api/v1")
    app.include_router(transactions.router, prefix="/api/v1")
    app.include_router(account.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
