"""Registry-wide counters."""

from fastapi import APIRouter

from canvas_server.api.models import RegistryStatsResponse
from canvas_server.core.engine import CanvasEngine


def router(engine: CanvasEngine) -> APIRouter:
    api = APIRouter(prefix="/registry", tags=["registry"])

    @api.get("/stats", response_model=RegistryStatsResponse)
    async def stats():
        return RegistryStatsResponse.model_validate(engine.get_registry_counters())

    return api
