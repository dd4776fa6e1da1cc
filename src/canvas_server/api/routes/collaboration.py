"""Collaborative customization endpoints."""

from fastapi import APIRouter

from canvas_server.api.models import CollaborateRequest, CollaborationResponse, QuoteResponse
from canvas_server.collab.types import CollaborationRequest
from canvas_server.core.clock import BlockClock
from canvas_server.core.engine import CanvasEngine


def _to_request(asset_id: int, body: CollaborateRequest) -> CollaborationRequest:
    return CollaborationRequest(
        asset_id=asset_id,
        collaboration_type=body.collaboration_type,
        trait_combination=tuple(body.trait_combination),
        community_vote_weight=body.community_vote_weight,
        evolution_stage=body.evolution_stage,
        rarity_boost_enabled=body.rarity_boost_enabled,
    )


def router(engine: CanvasEngine, clock: BlockClock) -> APIRouter:
    """Build the collaboration router."""
    api = APIRouter(prefix="/assets", tags=["collaboration"])

    @api.post("/{asset_id}/collaborate", response_model=CollaborationResponse)
    async def collaborate(asset_id: int, body: CollaborateRequest):
        """
        Apply a trait combination under consensus, conflict and funding gates.

        Debits the dynamic price from ``caller`` and returns the evolution
        result with its financial breakdown.
        """
        request = _to_request(asset_id, body)
        result = engine.collaborate(request, caller=body.caller, now=clock.now())
        return CollaborationResponse.model_validate(result)

    @api.post("/{asset_id}/collaborate/quote", response_model=QuoteResponse)
    async def quote(asset_id: int, body: CollaborateRequest):
        """Price and reward preview. Nothing is written."""
        return QuoteResponse.model_validate(
            engine.quote_collaboration(_to_request(asset_id, body), caller=body.caller)
        )

    return api
