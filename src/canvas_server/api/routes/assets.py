"""Asset registry, customization and rarity endpoints."""

from fastapi import APIRouter

from canvas_server.api.models import (
    AppliedTraitResponse,
    AssetResponse,
    CustomizationResponse,
    CustomizeRequest,
    LockRequest,
    MintRequest,
    RarityResponse,
)
from canvas_server.core.clock import BlockClock
from canvas_server.core.engine import CanvasEngine


def router(engine: CanvasEngine, clock: BlockClock) -> APIRouter:
    """Build the assets router."""
    api = APIRouter(prefix="/assets", tags=["assets"])

    @api.post("", response_model=AssetResponse, status_code=201)
    async def mint(request: MintRequest):
        """Charge the mint fee and register a new asset."""
        asset = engine.mint_asset(caller=request.caller, template=request.template, now=clock.now())
        return AssetResponse.model_validate(asset)

    @api.get("/{asset_id}", response_model=AssetResponse)
    async def get_asset(asset_id: int):
        return AssetResponse.model_validate(engine.get_asset(asset_id))

    @api.get("/{asset_id}/traits", response_model=list[AppliedTraitResponse])
    async def list_applied_traits(asset_id: int):
        """Applied traits ordered by slot."""
        traits = engine.list_applied_traits(asset_id)
        return [AppliedTraitResponse.model_validate(t) for t in traits]

    @api.post("/{asset_id}/customize", response_model=CustomizationResponse)
    async def customize(asset_id: int, request: CustomizeRequest):
        receipt = engine.apply_customization(
            caller=request.caller,
            asset_id=asset_id,
            trait_type=request.trait_type,
            trait_value=request.trait_value,
            now=clock.now(),
        )
        return CustomizationResponse.model_validate(receipt)

    @api.post("/{asset_id}/lock", response_model=AssetResponse)
    async def lock(asset_id: int, request: LockRequest):
        asset = engine.lock_customization(caller=request.caller, asset_id=asset_id, now=clock.now())
        return AssetResponse.model_validate(asset)

    @api.get("/{asset_id}/rarity", response_model=RarityResponse)
    async def rarity(asset_id: int):
        """Stored rarity compared with the ledger replay."""
        return RarityResponse.model_validate(engine.verify_rarity(asset_id))

    return api
