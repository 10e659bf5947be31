"""
Signup Consent - Standalone Server

Serves the consent session API for the signup form on port 8003.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI

from signup_consent.api.routes import router as consent_router
from signup_consent.api.sessions import SessionRegistry
from signup_consent.core.config import ReconcilerConfig, get_config
from signup_consent.monitoring.logging import configure_logging


def create_app(
    config: ReconcilerConfig | None = None,
    http_client: httpx.AsyncClient | None = None,
    configure_logs: bool = True,
) -> FastAPI:
    """Build the FastAPI app; open sessions are closed on shutdown."""
    config = config or get_config()
    if configure_logs:
        configure_logging(level=config.log_level, json_output=config.log_json)

    registry = SessionRegistry(config=config, http_client=http_client)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await registry.close_all()

    app = FastAPI(
        title="Signup Consent",
        description="Reconciles signup consent between the browser cookie and the Fides API",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.consent_sessions = registry
    app.include_router(consent_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "signup-consent", "sessions": len(registry)}

    return app


def main() -> None:
    uvicorn.run(create_app(), host="0.0.0.0", port=8003)


if __name__ == "__main__":
    main()
