"""Immutable request and result types for collaborative customization.

These frozen dataclasses flow between the HTTP layer, the
:class:`~canvas_server.collab.engine.CollaborationEngine`, the scoring
policy and the audit stream. None of them is persisted; a collaboration is
one atomic call and only its effects (ledger rows, counters, balances) are
stored.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum

from canvas_server.db.types import Asset


class CollaborationStage(str, Enum):
    """Stages one collaboration passes through within a single call.

    ``RECORDED`` is terminal. A gate failure aborts before ``VALIDATED`` and
    rolls back anything past it.
    """

    PROPOSED = "proposed"
    VALIDATED = "validated"
    SETTLED = "settled"
    APPLIED = "applied"
    RECORDED = "recorded"


@dataclass(frozen=True)
class CollaborationRequest:
    """Input of one collaborative customization.

    Attributes:
        asset_id:              Target asset.
        collaboration_type:    Free-form tag (1..32 chars); written as the
                               value of every ledger row the call appends.
        trait_combination:     Trait-type names, 1..max_combination entries.
                               Duplicates are allowed and each consumes a slot.
        community_vote_weight: Must exceed the approval threshold.
        evolution_stage:       Non-negative; feeds the reward pool.
        rarity_boost_enabled:  Apply the boost multiplier to the new score.
    """

    asset_id: int
    collaboration_type: str
    trait_combination: tuple[str, ...]
    community_vote_weight: int
    evolution_stage: int
    rarity_boost_enabled: bool = False


@dataclass(frozen=True)
class ScoringContext:
    """What a :class:`~canvas_server.collab.policy.ScoringPolicy` may look at."""

    asset: Asset
    request: CollaborationRequest


@dataclass(frozen=True)
class FinancialBreakdown:
    """Price and reward split of one collaboration.

    Attributes:
        total_cost:         Amount settled to the fee sink.
        reward_pool:        ``total_cost * vote // 100 + stage * stage_reward``.
        participant_reward: ``reward_pool // participant_share_divisor``.
        creator_royalty:    ``total_cost * creator_royalty_pct // 100``.
        community_bonus:    ``vote * community_bonus_per_vote``.
    """

    total_cost: int
    reward_pool: int
    participant_reward: int
    creator_royalty: int
    community_bonus: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class EvolutionMetrics:
    stage: int
    innovation_score: int
    synergy_rating: int
    market_appeal: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class CollaborationResult:
    """Outcome of a committed collaboration.

    Returned by :meth:`~canvas_server.collab.engine.CollaborationEngine.customize`
    after the transaction commits.

    ``collaboration_signature`` is the SHA-256 hex digest of the canonical
    JSON of ``{"asset_id", "evolution_stage", "timestamp"}``; it is
    deterministic for the same inputs.
    """

    asset_id: int
    collaboration_type: str
    trait_combination: tuple[str, ...]
    slots: tuple[int, ...]
    timestamp: int
    collaboration_complete: bool
    evolution_stage_achieved: int
    final_rarity_score: int
    community_impact_rating: int
    next_evolution_unlock: int
    collaboration_signature: str
    artistic_enhancement_confirmed: bool
    financials: FinancialBreakdown
    metrics: EvolutionMetrics

    def to_event_payload(self) -> dict:
        """Data block of the ``collaboration.completed`` audit event."""
        return {
            "timestamp": self.timestamp,
            "asset_id": self.asset_id,
            "collaboration_type": self.collaboration_type,
            "evolution_metrics": self.metrics.to_dict(),
            "trait_combination": list(self.trait_combination),
            "slots": list(self.slots),
            "financial_breakdown": self.financials.to_dict(),
            "final_rarity_score": self.final_rarity_score,
            "collaboration_signature": self.collaboration_signature,
        }


@dataclass(frozen=True)
class CollaborationQuote:
    """Read-only preview of a collaboration's price and rewards."""

    asset_id: int
    financials: FinancialBreakdown
    projected_rarity_score: int
    balance: int

    @property
    def affordable(self) -> bool:
        return self.balance >= self.financials.total_cost
