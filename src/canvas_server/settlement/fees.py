"""Fee computation and settlement.

Prices:

- mint: ``FeeSchedule.mint_fee``
- single customization: ``customization_fee + trait.customization_cost``
- collaboration: ``floor(customization_fee * collaboration_fee_multiplier
  * demand_multiplier_pct / 100)``

The collaboration price deliberately ignores vote weight and evolution stage;
those only feed the reward pool (see :mod:`canvas_server.collab.engine`).

:func:`settle` is the only path by which an engine moves value. It runs
inside the operation's transaction, so a failure after settlement rolls the
transfer back along with everything else.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass

from canvas_server.db import counters_repo
from canvas_server.db.types import TraitDefinition
from canvas_server.errors import InsufficientPaymentError, InvalidInputError
from canvas_server.settlement.transfer import InsufficientFundsError, ValueTransfer

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FeeSchedule:
    """Fixed fees and the account that receives them."""

    mint_fee: int = 1000
    customization_fee: int = 500
    fee_sink: str = "canvas-registry"

    @classmethod
    def from_config(cls) -> FeeSchedule:
        from canvas_server.config import config

        return cls(
            mint_fee=config.fees.mint_fee,
            customization_fee=config.fees.customization_fee,
            fee_sink=config.fees.fee_sink,
        )


@dataclass(frozen=True, slots=True)
class PricingRules:
    """Collaboration pricing knobs (loaded from the collaboration policy)."""

    collaboration_fee_multiplier: int = 2
    demand_multiplier_pct: int = 134


def simple_cost(definition: TraitDefinition, schedule: FeeSchedule) -> int:
    """Price of one single-trait customization."""
    return schedule.customization_fee + definition.customization_cost


def base_collaboration_fee(schedule: FeeSchedule, pricing: PricingRules) -> int:
    return schedule.customization_fee * pricing.collaboration_fee_multiplier


def dynamic_cost(
    trait_type: str | None,
    community_vote_weight: int,
    evolution_stage: int,
    rarity_boost_enabled: bool,
    *,
    schedule: FeeSchedule,
    pricing: PricingRules,
) -> int:
    """Price of one collaborative customization.

    ``trait_type``, ``community_vote_weight``, ``evolution_stage`` and
    ``rarity_boost_enabled`` are accepted so alternative pricing rules can use
    them; the demand-multiplier rule does not.
    """
    del trait_type, community_vote_weight, evolution_stage, rarity_boost_enabled
    return base_collaboration_fee(schedule, pricing) * pricing.demand_multiplier_pct // 100


def require_funds(
    cursor: sqlite3.Cursor,
    transfer: ValueTransfer,
    payer: str,
    amount: int,
) -> None:
    """Pre-flight affordability check; raises ``InsufficientPaymentError``."""
    available = transfer.current_balance(cursor, payer)
    if available < amount:
        raise InsufficientPaymentError(payer, amount, available)


def settle(
    cursor: sqlite3.Cursor,
    transfer: ValueTransfer,
    *,
    payer: str,
    beneficiary: str,
    amount: int,
    schedule: FeeSchedule,
) -> None:
    """Move ``amount`` from ``payer`` to ``beneficiary``.

    When the beneficiary is the fee sink the registry's contract balance
    accrues by the same amount. The fee sink cannot pay itself.

    Raises:
        InvalidInputError: ``payer`` is the fee sink.
        InsufficientPaymentError: The collaborator reported insufficient funds.
    """
    if payer == schedule.fee_sink:
        raise InvalidInputError(f"Fee sink {payer!r} cannot pay registry fees.")
    try:
        transfer.transfer_value(cursor, payer, beneficiary, amount)
    except InsufficientFundsError as exc:
        raise InsufficientPaymentError(exc.account, exc.required, exc.available) from exc

    if beneficiary == schedule.fee_sink:
        counters_repo.accrue_contract_balance(cursor, amount)
    logger.debug("settled %d from %r to %r", amount, payer, beneficiary)
