"""
FastAPI backend server for the canvas registry.

:func:`create_app` wires one :class:`~canvas_server.core.engine.CanvasEngine`
and one :class:`~canvas_server.core.clock.BlockClock` into the routers and
installs the domain error handlers. Tests pass their own engine; the
module-level ``app`` is built from the loaded configuration for
``uvicorn canvas_server.api.server:app``.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from canvas_server import __version__
from canvas_server.api.errors import register_error_handlers
from canvas_server.api.routes.register import register_routes
from canvas_server.core.clock import BlockClock
from canvas_server.core.engine import CanvasEngine


def create_app(engine: CanvasEngine | None = None, clock: BlockClock | None = None) -> FastAPI:
    """Build the FastAPI application around ``engine`` (default: from config)."""
    app = FastAPI(title="Canvas Registry", version=__version__)

    # Restrict allow_origins in production deployments.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    engine = engine or CanvasEngine.from_config()
    clock = clock or BlockClock()
    app.state.engine = engine
    app.state.clock = clock

    register_error_handlers(app)
    register_routes(app, engine, clock)
    return app


app = create_app()
