"""Trait catalog endpoints."""

from fastapi import APIRouter

from canvas_server.api.models import DefineTraitRequest, TraitResponse
from canvas_server.core.clock import BlockClock
from canvas_server.core.engine import CanvasEngine


def router(engine: CanvasEngine, clock: BlockClock) -> APIRouter:
    """Build the catalog router."""
    api = APIRouter(prefix="/traits", tags=["traits"])

    @api.post("", response_model=TraitResponse, status_code=201)
    async def define_trait(request: DefineTraitRequest):
        definition = engine.define_trait(
            caller=request.caller,
            name=request.name,
            base_rarity=request.base_rarity,
            customization_cost=request.customization_cost,
            now=clock.now(),
        )
        return TraitResponse.model_validate(definition)

    @api.get("", response_model=list[TraitResponse])
    async def list_traits():
        return [TraitResponse.model_validate(d) for d in engine.list_traits()]

    @api.get("/{name}", response_model=TraitResponse)
    async def get_trait(name: str):
        return TraitResponse.model_validate(engine.get_trait(name))

    return api
