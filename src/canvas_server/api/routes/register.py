"""Router registration for the FastAPI app."""

from fastapi import FastAPI

from canvas_server.api.routes import accounts, assets, collaboration, health, registry, traits
from canvas_server.core.clock import BlockClock
from canvas_server.core.engine import CanvasEngine


def register_routes(app: FastAPI, engine: CanvasEngine, clock: BlockClock) -> None:
    """Register all API routes with the FastAPI app."""
    app.include_router(health.router)
    app.include_router(accounts.router(engine))
    app.include_router(traits.router(engine, clock))
    app.include_router(assets.router(engine, clock))
    app.include_router(collaboration.router(engine, clock))
    app.include_router(registry.router(engine))
