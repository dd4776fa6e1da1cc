"""Collaborative customization engine.

:class:`CollaborationEngine` applies a multi-trait combination to one asset
under consensus, conflict, capacity and funding gates, then settles the
dynamic price and splits the reward pool. One instance lives on the
:class:`~canvas_server.core.engine.CanvasEngine` for the server's lifetime.

Sequence (``customize``), all inside one ``BEGIN IMMEDIATE`` transaction:

1. PROPOSED   - read the asset fresh from the store.
2. Gates, first failure wins: asset exists, ownership, lock flag, consensus
   (vote strictly above the approval threshold), conflict (score strictly
   below the ceiling), combination shape, trait existence, catalog
   capacity, slot capacity, funding.
3. VALIDATED  - settle ``dynamic_cost`` from the caller to the fee sink.
4. SETTLED    - append one ledger row per combination entry (value = the
   collaboration type, tier = the trait's base rarity), record catalog
   usage, record a boost row when requested, recompute the stored score.
5. APPLIED    - bump the customization counter and the caller's stats.
6. Commit, then write ``collaboration.completed`` to the audit stream.
7. RECORDED   - return the :class:`CollaborationResult`.

A failure at any step before the commit rolls back every write, including
the settlement.
"""

from __future__ import annotations

import hashlib
import json
import logging
import sqlite3
from collections import Counter

from canvas_server.audit import AuditEvents, record_committed
from canvas_server.collab.policy import (
    CollaborationPolicy,
    ConstantScoringPolicy,
    ScoringPolicy,
)
from canvas_server.collab.types import (
    CollaborationQuote,
    CollaborationRequest,
    CollaborationResult,
    CollaborationStage,
    EvolutionMetrics,
    FinancialBreakdown,
    ScoringContext,
)
from canvas_server.core import gates
from canvas_server.db import assets_repo, catalog_repo, counters_repo, stats_repo, traits_repo
from canvas_server.db.connection import connection_scope
from canvas_server.db.errors import raise_read_error, raise_write_error
from canvas_server.db.types import Asset, TraitDefinition
from canvas_server.errors import InvalidInputError, InvalidTraitError
from canvas_server.rarity import apply_boost, recompute_stored_rarity
from canvas_server.settlement import FeeSchedule, SqliteAccountTransfer, ValueTransfer
from canvas_server.settlement.fees import dynamic_cost, require_funds, settle

logger = logging.getLogger(__name__)

MAX_COLLABORATION_TYPE_LENGTH = 32


def collaboration_signature(timestamp: int, asset_id: int, evolution_stage: int) -> str:
    """SHA-256 hex digest of the canonical JSON of the three inputs."""
    canonical = json.dumps(
        {"timestamp": timestamp, "asset_id": asset_id, "evolution_stage": evolution_stage},
        sort_keys=True,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def compute_financials(
    total_cost: int,
    community_vote_weight: int,
    evolution_stage: int,
    policy: CollaborationPolicy,
) -> FinancialBreakdown:
    rewards = policy.rewards
    reward_pool = total_cost * community_vote_weight // 100 + evolution_stage * rewards.stage_reward
    return FinancialBreakdown(
        total_cost=total_cost,
        reward_pool=reward_pool,
        participant_reward=reward_pool // rewards.participant_share_divisor,
        creator_royalty=total_cost * rewards.creator_royalty_pct // 100,
        community_bonus=community_vote_weight * rewards.community_bonus_per_vote,
    )


class CollaborationEngine:
    """Gatekeeper and orchestrator of collaborative customization.

    Args:
        policy:       Thresholds, pricing and reward rules. Immutable.
        scoring:      Metric source; defaults to the policy's constants.
        transfer:     Value-transfer collaborator sharing the store's
                      transaction.
        schedule:     Fixed fees and the fee sink account.
        audit_stream: Audit stream name, or ``None`` to disable auditing.
    """

    def __init__(
        self,
        *,
        policy: CollaborationPolicy,
        schedule: FeeSchedule,
        scoring: ScoringPolicy | None = None,
        transfer: ValueTransfer | None = None,
        audit_stream: str | None = None,
    ) -> None:
        self._policy = policy
        self._schedule = schedule
        self._scoring = scoring or ConstantScoringPolicy(policy.metrics)
        self._transfer = transfer or SqliteAccountTransfer()
        self._audit_stream = audit_stream

    @property
    def policy(self) -> CollaborationPolicy:
        return self._policy

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def customize(
        self,
        request: CollaborationRequest,
        *,
        caller: str,
        now: int,
    ) -> CollaborationResult:
        """Run one collaboration atomically and return its result.

        Raises:
            NotFoundError:            Unknown asset or trait type.
            UnauthorizedError:        ``caller`` does not own the asset.
            CustomizationLockedError: The asset is locked.
            InvalidTraitError:        Consensus or conflict gate failed, or the
                                      combination size is out of range.
            InvalidInputError:        Malformed collaboration type, stage or
                                      caller.
            CapacityExceededError:    A trait reached its application cap.
            MaxTraitsExceededError:   The combination does not fit the asset.
            InsufficientPaymentError: ``caller`` cannot cover the price.
        """
        gates.validate_account(caller)
        self._log_stage(CollaborationStage.PROPOSED, request)
        try:
            with connection_scope(write=True) as conn:
                result = self._run(conn.cursor(), request, caller=caller, now=now)
        except Exception as exc:
            raise_write_error(
                "collab.customize",
                exc,
                details=f"asset_id={request.asset_id}, caller={caller!r}",
            )

        record_committed(
            self._audit_stream,
            AuditEvents.COLLABORATION_COMPLETED,
            result.to_event_payload(),
            logical_time=now,
        )
        self._log_stage(CollaborationStage.RECORDED, request)
        logger.info(
            "Collaboration %r on asset %d by %r: +%d traits, cost %d, rarity %d.",
            request.collaboration_type,
            request.asset_id,
            caller,
            len(request.trait_combination),
            result.financials.total_cost,
            result.final_rarity_score,
        )
        return result

    def quote(self, request: CollaborationRequest, *, caller: str) -> CollaborationQuote:
        """Price and reward preview; runs every gate except funding, writes nothing."""
        gates.validate_account(caller)
        try:
            with connection_scope() as conn:
                cursor = conn.cursor()
                asset, definitions = self._validate(cursor, request, caller)
                total_cost = self._price(request)
                balance = self._transfer.current_balance(cursor, caller)
        except Exception as exc:
            raise_read_error(
                "collab.quote",
                exc,
                details=f"asset_id={request.asset_id}, caller={caller!r}",
            )

        projected = asset.rarity_score + sum(d.base_rarity for d in definitions)
        if request.rarity_boost_enabled:
            projected = apply_boost(projected, self._policy.evolution.boost_pct)
        return CollaborationQuote(
            asset_id=asset.asset_id,
            financials=compute_financials(
                total_cost,
                request.community_vote_weight,
                request.evolution_stage,
                self._policy,
            ),
            projected_rarity_score=projected,
            balance=balance,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _run(
        self,
        cursor: sqlite3.Cursor,
        request: CollaborationRequest,
        *,
        caller: str,
        now: int,
    ) -> CollaborationResult:
        asset, definitions = self._validate(cursor, request, caller)
        total_cost = self._price(request)
        require_funds(cursor, self._transfer, caller, total_cost)
        self._log_stage(CollaborationStage.VALIDATED, request)

        settle(
            cursor,
            self._transfer,
            payer=caller,
            beneficiary=self._schedule.fee_sink,
            amount=total_cost,
            schedule=self._schedule,
        )
        self._log_stage(CollaborationStage.SETTLED, request)

        slots = traits_repo.append_many(
            cursor,
            asset_id=asset.asset_id,
            entries=[(d.name, request.collaboration_type, d.base_rarity) for d in definitions],
            applier=caller,
            applied_at=now,
        )
        for name, count in Counter(request.trait_combination).items():
            catalog_repo.record_application(cursor, name, count)

        new_count = asset.trait_count + len(definitions)
        if request.rarity_boost_enabled:
            traits_repo.record_boost(
                cursor,
                asset_id=asset.asset_id,
                slot_watermark=new_count,
                boost_pct=self._policy.evolution.boost_pct,
                applied_at=now,
            )
        updated = assets_repo.replace_fields(
            cursor,
            asset.asset_id,
            trait_count=new_count,
            rarity_score=recompute_stored_rarity(cursor, asset.asset_id),
            last_modified_at=now,
        )
        self._log_stage(CollaborationStage.APPLIED, request)

        financials = compute_financials(
            total_cost,
            request.community_vote_weight,
            request.evolution_stage,
            self._policy,
        )
        counters_repo.increment_total_customizations(cursor)
        stats_repo.bump(
            cursor,
            caller,
            customizations_applied=1,
            collaboration_earnings=financials.participant_reward,
        )
        return self._build_result(request, updated, tuple(slots), financials, now)

    def _validate(
        self,
        cursor: sqlite3.Cursor,
        request: CollaborationRequest,
        caller: str,
    ) -> tuple[Asset, list[TraitDefinition]]:
        """Run every gate except funding, in order; return the asset and definitions."""
        thresholds = self._policy.thresholds

        asset = assets_repo.get_asset(cursor, request.asset_id)
        gates.require_owner(asset, caller)
        gates.require_unlocked(asset)

        if request.community_vote_weight <= thresholds.approval_threshold:
            raise InvalidTraitError(
                "consensus_not_reached",
                f"Community vote weight {request.community_vote_weight} does not exceed "
                f"the approval threshold {thresholds.approval_threshold}.",
            )

        context = ScoringContext(asset=asset, request=request)
        conflict = self._scoring.conflict_score(context)
        if conflict >= thresholds.conflict_ceiling:
            raise InvalidTraitError(
                "conflict_detected",
                f"Trait conflict score {conflict} is not below {thresholds.conflict_ceiling}.",
            )

        self._validate_shape(request)
        definitions = [catalog_repo.require(cursor, name) for name in request.trait_combination]
        for name, count in Counter(request.trait_combination).items():
            catalog_repo.ensure_capacity(catalog_repo.require(cursor, name), count)
        gates.require_slots(asset, len(definitions))
        return asset, definitions

    def _validate_shape(self, request: CollaborationRequest) -> None:
        size = len(request.trait_combination)
        limit = self._policy.thresholds.max_combination
        if not 1 <= size <= limit:
            raise InvalidTraitError(
                "combination_size",
                f"Trait combination must hold 1..{limit} entries, got {size}.",
            )
        if not 1 <= len(request.collaboration_type or "") <= MAX_COLLABORATION_TYPE_LENGTH:
            raise InvalidInputError(
                f"Collaboration type must be 1..{MAX_COLLABORATION_TYPE_LENGTH} characters."
            )
        if request.evolution_stage < 0:
            raise InvalidInputError("Evolution stage must be non-negative.")

    def _price(self, request: CollaborationRequest) -> int:
        return dynamic_cost(
            request.trait_combination[0],
            request.community_vote_weight,
            request.evolution_stage,
            request.rarity_boost_enabled,
            schedule=self._schedule,
            pricing=self._policy.pricing,
        )

    def _build_result(
        self,
        request: CollaborationRequest,
        asset: Asset,
        slots: tuple[int, ...],
        financials: FinancialBreakdown,
        now: int,
    ) -> CollaborationResult:
        context = ScoringContext(asset=asset, request=request)
        metrics = EvolutionMetrics(
            stage=request.evolution_stage,
            innovation_score=self._scoring.innovation_score(context),
            synergy_rating=self._scoring.synergy_rating(context),
            market_appeal=self._scoring.market_appeal(context),
        )
        aesthetic = self._scoring.aesthetic_improvement(context)
        return CollaborationResult(
            asset_id=asset.asset_id,
            collaboration_type=request.collaboration_type,
            trait_combination=tuple(request.trait_combination),
            slots=slots,
            timestamp=now,
            collaboration_complete=True,
            evolution_stage_achieved=request.evolution_stage,
            final_rarity_score=asset.rarity_score,
            community_impact_rating=self._scoring.community_impact(context),
            next_evolution_unlock=now + self._policy.evolution.cooldown,
            collaboration_signature=collaboration_signature(
                now, asset.asset_id, request.evolution_stage
            ),
            artistic_enhancement_confirmed=(
                aesthetic > self._policy.thresholds.aesthetic_confirmation
            ),
            financials=financials,
            metrics=metrics,
        )

    @staticmethod
    def _log_stage(stage: CollaborationStage, request: CollaborationRequest) -> None:
        logger.debug("collaboration asset=%d stage=%s", request.asset_id, stage.value)
