"""
Pydantic models for API requests and responses.

Request models carry the acting account as ``caller``; there is no session
layer. Bounds on strings and amounts are enforced by the engine so that
violations surface as domain errors (see :mod:`canvas_server.api.errors`)
rather than FastAPI's generic 422 validation response.

Response models read directly from the engine's frozen dataclasses via
``from_attributes``.
"""

from pydantic import BaseModel, ConfigDict

# ============================================================================
# REQUEST MODELS (Client → Server)
# ============================================================================


class FundRequest(BaseModel):
    """Credit an account of the built-in transfer collaborator."""

    account: str
    amount: int


class DefineTraitRequest(BaseModel):
    """
    Register a new trait type.

    Attributes:
        caller: Account recorded as the trait's creator
        name: Unique, case-sensitive trait-type name (1-32 characters)
        base_rarity: Rarity tier copied onto every application (0-100)
        customization_cost: Added to the fixed customization fee
    """

    caller: str
    name: str
    base_rarity: int
    customization_cost: int


class MintRequest(BaseModel):
    caller: str
    template: str


class CustomizeRequest(BaseModel):
    """Apply one trait to an asset owned by ``caller``."""

    caller: str
    trait_type: str
    trait_value: str


class LockRequest(BaseModel):
    caller: str


class CollaborateRequest(BaseModel):
    """
    Collaborative customization (or its quote).

    Attributes:
        caller: Asset owner; pays the dynamic price
        collaboration_type: Tag written as the value of every appended trait
        trait_combination: 1-5 trait-type names; duplicates consume a slot each
        community_vote_weight: Must exceed the approval threshold (70)
        evolution_stage: Feeds the reward pool
        rarity_boost_enabled: Multiply the new score by the boost percentage
    """

    caller: str
    collaboration_type: str
    trait_combination: list[str]
    community_vote_weight: int
    evolution_stage: int = 0
    rarity_boost_enabled: bool = False


# ============================================================================
# RESPONSE MODELS (Server → Client)
# ============================================================================


class _FromDomain(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class AssetResponse(_FromDomain):
    asset_id: int
    owner: str
    base_template: str
    trait_count: int
    rarity_score: int
    customization_locked: bool
    created_at: int
    last_modified_at: int


class TraitResponse(_FromDomain):
    name: str
    base_rarity: int
    customization_cost: int
    max_applications: int
    current_applications: int
    creator: str
    created_at: int


class AppliedTraitResponse(_FromDomain):
    asset_id: int
    slot_index: int
    trait_type: str
    trait_value: str
    rarity_tier: int
    applied_by: str
    applied_at: int


class CustomizationResponse(_FromDomain):
    asset: AssetResponse
    slot_index: int
    trait_type: str
    cost: int


class RarityResponse(_FromDomain):
    """Stored score versus the score recomputed from the ledger."""

    asset_id: int
    base_score: int
    expected: int
    stored: int
    boosts_applied: int
    consistent: bool


class UserStatsResponse(_FromDomain):
    account: str
    assets_owned: int
    customizations_applied: int
    traits_created: int
    collaboration_earnings: int


class AccountResponse(BaseModel):
    account: str
    balance: int
    stats: UserStatsResponse


class FinancialsResponse(_FromDomain):
    total_cost: int
    reward_pool: int
    participant_reward: int
    creator_royalty: int
    community_bonus: int


class EvolutionMetricsResponse(_FromDomain):
    stage: int
    innovation_score: int
    synergy_rating: int
    market_appeal: int


class CollaborationResponse(_FromDomain):
    asset_id: int
    collaboration_type: str
    trait_combination: list[str]
    slots: list[int]
    timestamp: int
    collaboration_complete: bool
    evolution_stage_achieved: int
    final_rarity_score: int
    community_impact_rating: int
    next_evolution_unlock: int
    collaboration_signature: str
    artistic_enhancement_confirmed: bool
    financials: FinancialsResponse
    metrics: EvolutionMetricsResponse


class QuoteResponse(_FromDomain):
    asset_id: int
    financials: FinancialsResponse
    projected_rarity_score: int
    balance: int
    affordable: bool


class RegistryStatsResponse(_FromDomain):
    next_asset_id: int
    total_customizations: int
    contract_balance: int