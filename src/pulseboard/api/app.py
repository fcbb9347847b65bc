"""FastAPI application factory for Pulseboard."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pulseboard.api.routes import health
from pulseboard.config.loader import load_config
from pulseboard.config.models import PulseboardConfig
from pulseboard.registry.aggregator import HealthAggregator
from pulseboard.registry.instances import ConfigInstanceSource

logger = logging.getLogger(__name__)


def create_app(config: PulseboardConfig | None = None) -> FastAPI:
    if config is None:
        try:
            config = load_config()
        except (FileNotFoundError, ValueError) as exc:
            # Fallback for environments without a config file (e.g. testing)
            logger.warning("Starting with an empty configuration: %s", exc)
            config = PulseboardConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.aggregator.aclose()

    app = FastAPI(
        title="Pulseboard",
        version=config.pulseboard.version,
        description="Health at a glance for your self-hosted services",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.instances = ConfigInstanceSource(config)
    app.state.aggregator = HealthAggregator.from_config(config)

    @app.get("/health", tags=["meta"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(health.router, prefix="/api")
    return app


app = create_app()
