"""FastAPI application for the tipping backend."""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from tipping.clock import Clock, SystemClock
from tipping.config import Settings, get_settings
from tipping.database import Database
from tipping.errors import TippingError, ValidationError
from tipping.routes.api import router as api_router
from tipping.routes.core import router as core_router
from tipping.security import configure_limits, limiter
from tipping.state import build_services
from tipping.telemetry.sentry import init_sentry

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def tipping_error_handler(request: Request, exc: TippingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.kind, "detail": exc.message},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and parameters get the same shape as ValidationError."""
    problems = []
    for error in exc.errors():
        loc = error.get("loc") or ("request",)
        field = ".".join(str(part) for part in loc[1:]) or str(loc[0])
        problems.append(f"{field}: {error['msg']}")
    return await tipping_error_handler(request, ValidationError("; ".join(problems) or "invalid request"))


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    """
    Build the application around an explicit database and clock.

    Production: `uvicorn tipping.main:create_app --factory`.
    Tests pass their own settings, an in-memory Database and a ManualClock.
    """
    settings = settings or get_settings()
    database = database or Database(settings.DATABASE_URL)
    clock = clock or SystemClock()
    services = build_services(settings, database, clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        logger.info("Starting tipping backend...")
        await database.init_db()

        if settings.SCHEDULER_ENABLED:
            # Catch up on anything that changed while we were down
            await services.scheduler.tick()
            services.scheduler.start()
        else:
            logger.info("Scheduler disabled via SCHEDULER_ENABLED=false")

        yield

        logger.info("Shutting down tipping backend...")
        services.scheduler.stop()
        await database.close()

    init_sentry()

    app = FastAPI(
        title="Tipping Backend",
        description="Matches, predictions and match status lifecycle",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.services = services

    # Add rate limiting
    app.state.limiter = limiter
    configure_limits(settings)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(TippingError, tipping_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Include routers
    app.include_router(core_router)
    app.include_router(api_router)

    # Static frontend last, so API routes take precedence
    if os.path.isdir(settings.STATIC_DIR):
        app.mount("/", StaticFiles(directory=settings.STATIC_DIR, html=True), name="static")
    else:
        logger.info(f"Static directory '{settings.STATIC_DIR}' not found, not serving files")

    return app


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run(
        create_app(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
    )


if __name__ == "__main__":
    run()
