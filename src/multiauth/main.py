"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from multiauth.api.router import router as passcode_router
from multiauth.config import settings
from multiauth.registry.clock import AsyncioScheduler, SystemClock
from multiauth.registry.store import PasscodeRegistry

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hook."""
    logger.info("Starting %s …", settings.app_name)
    if getattr(app.state, "registry", None) is None:
        app.state.registry = PasscodeRegistry(SystemClock(), AsyncioScheduler())
        logger.info("Passcode registry initialised")
    yield
    logger.info("Shutting down %s …", settings.app_name)


def create_app(registry: PasscodeRegistry | None = None) -> FastAPI:
    """Build the application, optionally around an existing registry."""
    app = FastAPI(
        title=settings.app_name,
        description="One-time passcode issuance and validation",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.registry = registry
    app.include_router(passcode_router)

    @app.get("/health")
    async def health_check(request: Request):
        """Simple liveness probe."""
        return {
            "status": "healthy",
            "app": settings.app_name,
            "active": len(request.app.state.registry),
        }

    return app


app = create_app()
