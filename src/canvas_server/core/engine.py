"""Canvas registry engine.

:class:`CanvasEngine` is the single entry point for every registry
operation. The HTTP layer and the CLI hold one instance each; tests build
their own against a temporary database.

Every mutating method follows the same shape:

1. Validate arguments that need no state (account names, amounts).
2. Open one ``BEGIN IMMEDIATE`` transaction.
3. Re-read the asset and catalog rows and run the gates in order.
4. Settle the fee, then write the registry, ledger, catalog, counters and
   stats.
5. Commit, then append the audit event. An audit failure is logged and the
   committed result is still returned.

Any exception inside step 3 or 4 rolls back everything, including the
settlement, so a rejected operation leaves no trace.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass

from canvas_server.audit import AuditEvents, record_committed
from canvas_server.collab.engine import CollaborationEngine
from canvas_server.collab.policy import CollaborationPolicy, ScoringPolicy, load_configured_policy
from canvas_server.collab.types import CollaborationQuote, CollaborationRequest, CollaborationResult
from canvas_server.core import gates
from canvas_server.db import assets_repo, catalog_repo, counters_repo, stats_repo, traits_repo
from canvas_server.db.connection import connection_scope
from canvas_server.db.errors import raise_write_error
from canvas_server.db.types import (
    AppliedTrait,
    Asset,
    RegistryCounters,
    TraitDefinition,
    UserStats,
)
from canvas_server.errors import NotFoundError
from canvas_server.rarity import RarityCheck, recompute_stored_rarity, verify_rarity
from canvas_server.settlement import (
    FeeSchedule,
    SqliteAccountTransfer,
    ValueTransfer,
    fund_account,
    get_balance,
    simple_cost,
)
from canvas_server.settlement.fees import require_funds, settle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomizationReceipt:
    """Outcome of a committed single-trait customization."""

    asset: Asset
    slot_index: int
    trait_type: str
    cost: int


class CanvasEngine:
    """Registry, catalog, ledger and settlement behind one façade.

    Args:
        schedule:     Fixed fees and fee sink.
        policy:       Collaboration policy.
        scoring:      Optional scoring policy for collaborations.
        transfer:     Value-transfer collaborator; defaults to the built-in
                      SQLite accounts table.
        audit_stream: Audit stream name, or ``None`` to disable auditing.
    """

    def __init__(
        self,
        *,
        schedule: FeeSchedule | None = None,
        policy: CollaborationPolicy | None = None,
        scoring: ScoringPolicy | None = None,
        transfer: ValueTransfer | None = None,
        audit_stream: str | None = None,
    ) -> None:
        self._schedule = schedule or FeeSchedule()
        self._transfer = transfer or SqliteAccountTransfer()
        self._audit_stream = audit_stream
        self._collab = CollaborationEngine(
            policy=policy or CollaborationPolicy(),
            schedule=self._schedule,
            scoring=scoring,
            transfer=self._transfer,
            audit_stream=audit_stream,
        )

    @classmethod
    def from_config(cls) -> CanvasEngine:
        """Build an engine from the loaded server configuration."""
        from canvas_server.config import config

        return cls(
            schedule=FeeSchedule.from_config(),
            policy=load_configured_policy(),
            audit_stream=config.audit.stream_id if config.audit.enabled else None,
        )

    @property
    def schedule(self) -> FeeSchedule:
        return self._schedule

    @property
    def collaboration(self) -> CollaborationEngine:
        return self._collab

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def mint_asset(self, *, caller: str, template: str, now: int) -> Asset:
        """Charge the mint fee and register a fresh asset owned by ``caller``.

        Raises:
            InvalidInputError:        Bad caller or template, or ``caller`` is
                                      the fee sink.
            InsufficientPaymentError: ``caller`` cannot cover the mint fee; no
                                      asset id is consumed.
        """
        gates.validate_account(caller)
        template = assets_repo.validate_template(template)
        try:
            with connection_scope(write=True) as conn:
                cursor = conn.cursor()
                require_funds(cursor, self._transfer, caller, self._schedule.mint_fee)
                self._settle(cursor, caller, self._schedule.mint_fee)
                asset_id = assets_repo.create_asset(
                    cursor, owner=caller, template=template, now=now
                )
                stats_repo.bump(cursor, caller, assets_owned=1)
                asset = assets_repo.get_asset(cursor, asset_id)
        except Exception as exc:
            raise_write_error("engine.mint_asset", exc, details=f"caller={caller!r}")

        self._record(
            AuditEvents.ASSET_MINTED,
            {
                "asset_id": asset.asset_id,
                "owner": asset.owner,
                "base_template": asset.base_template,
                "fee": self._schedule.mint_fee,
            },
            now,
        )
        logger.info("Minted asset %d for %r from template %r.", asset.asset_id, caller, template)
        return asset

    def define_trait(
        self,
        *,
        caller: str,
        name: str,
        base_rarity: int,
        customization_cost: int,
        now: int,
    ) -> TraitDefinition:
        """Register a new trait type authored by ``caller``.

        Raises:
            InvalidInputError:  Bad name, caller or negative cost.
            InvalidTraitError:  Base rarity outside ``0..100``.
            AlreadyExistsError: The name is taken.
        """
        gates.validate_account(caller)
        try:
            with connection_scope(write=True) as conn:
                cursor = conn.cursor()
                definition = catalog_repo.define_trait(
                    cursor,
                    name=name,
                    base_rarity=base_rarity,
                    customization_cost=customization_cost,
                    creator=caller,
                    created_at=now,
                )
                stats_repo.bump(cursor, caller, traits_created=1)
        except Exception as exc:
            raise_write_error("engine.define_trait", exc, details=f"name={name!r}")

        self._record(
            AuditEvents.TRAIT_DEFINED,
            {
                "name": definition.name,
                "base_rarity": definition.base_rarity,
                "customization_cost": definition.customization_cost,
                "creator": definition.creator,
            },
            now,
        )
        logger.info("Defined trait %r (rarity %d) by %r.", name, base_rarity, caller)
        return definition

    def apply_customization(
        self,
        *,
        caller: str,
        asset_id: int,
        trait_type: str,
        trait_value: str,
        now: int,
    ) -> CustomizationReceipt:
        """Apply one trait to an asset the caller owns.

        Gates in order: asset exists, ownership, lock, trait exists, value
        length, catalog capacity, slot capacity, funding.

        Raises:
            NotFoundError:            Unknown asset or trait.
            UnauthorizedError:        ``caller`` is not the owner.
            CustomizationLockedError: Asset is locked.
            InvalidTraitError:        Trait value too long.
            CapacityExceededError:    Trait hit its application cap.
            MaxTraitsExceededError:   Asset already holds 12 traits.
            InsufficientPaymentError: ``caller`` cannot cover the price.
        """
        gates.validate_account(caller)
        try:
            with connection_scope(write=True) as conn:
                receipt = self._apply(
                    conn.cursor(),
                    caller=caller,
                    asset_id=asset_id,
                    trait_type=trait_type,
                    trait_value=trait_value,
                    now=now,
                )
        except Exception as exc:
            raise_write_error(
                "engine.apply_customization",
                exc,
                details=f"asset_id={asset_id}, trait={trait_type!r}",
            )

        self._record(
            AuditEvents.TRAIT_APPLIED,
            {
                "asset_id": asset_id,
                "slot_index": receipt.slot_index,
                "trait_type": trait_type,
                "trait_value": trait_value,
                "cost": receipt.cost,
                "rarity_score": receipt.asset.rarity_score,
            },
            now,
        )
        logger.info(
            "Applied %r to asset %d at slot %d (rarity %d).",
            trait_type,
            asset_id,
            receipt.slot_index,
            receipt.asset.rarity_score,
        )
        return receipt

    def lock_customization(self, *, caller: str, asset_id: int, now: int) -> Asset:
        """Permanently freeze an asset against further customization.

        Raises:
            NotFoundError:            Unknown asset.
            UnauthorizedError:        ``caller`` is not the owner.
            CustomizationLockedError: Already locked.
        """
        gates.validate_account(caller)
        try:
            with connection_scope(write=True) as conn:
                cursor = conn.cursor()
                asset = assets_repo.get_asset(cursor, asset_id)
                gates.require_mutable(asset, caller)
                asset = assets_repo.replace_fields(
                    cursor, asset_id, customization_locked=True, last_modified_at=now
                )
        except Exception as exc:
            raise_write_error("engine.lock_customization", exc, details=f"asset_id={asset_id}")

        self._record(AuditEvents.ASSET_LOCKED, {"asset_id": asset_id, "owner": caller}, now)
        logger.info("Locked asset %d.", asset_id)
        return asset

    def collaborate(
        self,
        request: CollaborationRequest,
        *,
        caller: str,
        now: int,
    ) -> CollaborationResult:
        return self._collab.customize(request, caller=caller, now=now)

    def quote_collaboration(
        self, request: CollaborationRequest, *, caller: str
    ) -> CollaborationQuote:
        return self._collab.quote(request, caller=caller)

    def fund_account(self, account: str, amount: int) -> int:
        gates.validate_account(account, "account")
        gates.validate_amount(amount)
        return fund_account(account, amount)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_asset(self, asset_id: int) -> Asset:
        return assets_repo.fetch_asset(asset_id)

    def list_assets(self, owner: str) -> list[Asset]:
        return assets_repo.list_assets_by_owner(owner)

    def list_applied_traits(self, asset_id: int) -> list[AppliedTrait]:
        return traits_repo.list_applied_traits(asset_id)

    def get_trait(self, name: str) -> TraitDefinition:
        """Return a definition or raise ``NotFoundError``."""
        definition = catalog_repo.get_trait(name)
        if definition is None:
            raise NotFoundError("trait", name)
        return definition

    def list_traits(self) -> list[TraitDefinition]:
        return catalog_repo.list_traits()

    def get_user_stats(self, account: str) -> UserStats:
        return stats_repo.get_user_stats(account)

    def get_registry_counters(self) -> RegistryCounters:
        return counters_repo.get_registry_counters()

    def get_balance(self, account: str) -> int:
        return get_balance(account)

    def verify_rarity(self, asset_id: int) -> RarityCheck:
        return verify_rarity(asset_id)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _apply(
        self,
        cursor: sqlite3.Cursor,
        *,
        caller: str,
        asset_id: int,
        trait_type: str,
        trait_value: str,
        now: int,
    ) -> CustomizationReceipt:
        asset = assets_repo.get_asset(cursor, asset_id)
        gates.require_mutable(asset, caller)
        definition = catalog_repo.require(cursor, trait_type)
        traits_repo.validate_trait_value(trait_value)
        catalog_repo.ensure_capacity(definition)
        gates.require_slots(asset)

        cost = simple_cost(definition, self._schedule)
        require_funds(cursor, self._transfer, caller, cost)
        self._settle(cursor, caller, cost)

        slot = traits_repo.append(
            cursor,
            asset_id=asset_id,
            trait_type=trait_type,
            trait_value=trait_value,
            rarity_tier=definition.base_rarity,
            applier=caller,
            applied_at=now,
        )
        catalog_repo.record_application(cursor, trait_type)
        updated = assets_repo.replace_fields(
            cursor,
            asset_id,
            trait_count=asset.trait_count + 1,
            rarity_score=recompute_stored_rarity(cursor, asset_id),
            last_modified_at=now,
        )
        counters_repo.increment_total_customizations(cursor)
        stats_repo.bump(cursor, caller, customizations_applied=1)
        return CustomizationReceipt(
            asset=updated, slot_index=slot, trait_type=trait_type, cost=cost
        )

    def _settle(self, cursor: sqlite3.Cursor, payer: str, amount: int) -> None:
        settle(
            cursor,
            self._transfer,
            payer=payer,
            beneficiary=self._schedule.fee_sink,
            amount=amount,
            schedule=self._schedule,
        )

    def _record(self, event_type: str, data: dict, now: int) -> None:
        record_committed(self._audit_stream, event_type, data, logical_time=now)
