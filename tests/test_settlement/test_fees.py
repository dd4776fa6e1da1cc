"""Tests for fee computation and settlement."""

import pytest

from canvas_server.db import counters_repo
from canvas_server.db.connection import connection_scope
from canvas_server.db.types import TraitDefinition
from canvas_server.errors import InsufficientPaymentError, InvalidInputError
from canvas_server.settlement import (
    FeeSchedule,
    PricingRules,
    SqliteAccountTransfer,
    dynamic_cost,
    fund_account,
    get_balance,
    settle,
    simple_cost,
)

SCHEDULE = FeeSchedule()


def _definition(cost: int) -> TraitDefinition:
    return TraitDefinition(
        name="texture",
        base_rarity=40,
        customization_cost=cost,
        max_applications=1000,
        current_applications=0,
        creator="curator",
        created_at=0,
    )


@pytest.mark.unit
class TestPricing:
    def test_simple_cost_adds_fixed_fee(self):
        """simple_cost adds the customization fee to the trait cost."""
        assert simple_cost(_definition(1000), SCHEDULE) == 1500
        assert simple_cost(_definition(0), SCHEDULE) == 500

    def test_dynamic_cost_reference_value(self):
        """dynamic_cost yields 1340 under the default rules."""
        price = dynamic_cost("texture", 71, 0, False, schedule=SCHEDULE, pricing=PricingRules())

        assert price == 1340

    @pytest.mark.parametrize(
        "vote, stage, boost",
        [(71, 0, False), (100, 5, True), (500, 99, False)],
    )
    def test_dynamic_cost_ignores_vote_stage_and_boost(self, vote, stage, boost):
        """Vote, stage and boost do not change the dynamic price."""
        price = dynamic_cost("glow", vote, stage, boost, schedule=SCHEDULE, pricing=PricingRules())

        assert price == 1340

    def test_dynamic_cost_follows_schedule(self):
        """dynamic_cost scales with the customization fee."""
        schedule = FeeSchedule(customization_fee=333)

        # 333 * 2 * 134 // 100
        assert dynamic_cost(None, 80, 1, False, schedule=schedule, pricing=PricingRules()) == 892


@pytest.mark.unit
class TestSettle:
    def test_moves_value_and_accrues_contract_balance(self, test_db):
        """Paying the sink moves value and accrues the contract balance."""
        fund_account("alice", 2000)

        with connection_scope(write=True) as conn:
            settle(
                conn.cursor(),
                SqliteAccountTransfer(),
                payer="alice",
                beneficiary=SCHEDULE.fee_sink,
                amount=1500,
                schedule=SCHEDULE,
            )

        assert get_balance("alice") == 500
        assert get_balance(SCHEDULE.fee_sink) == 1500
        assert counters_repo.get_registry_counters().contract_balance == 1500

    def test_other_beneficiary_does_not_accrue(self, test_db):
        """Paying another account leaves the contract balance alone."""
        fund_account("alice", 2000)

        with connection_scope(write=True) as conn:
            settle(
                conn.cursor(),
                SqliteAccountTransfer(),
                payer="alice",
                beneficiary="bob",
                amount=700,
                schedule=SCHEDULE,
            )

        assert get_balance("bob") == 700
        assert counters_repo.get_registry_counters().contract_balance == 0

    def test_insufficient_funds_maps_to_payment_error(self, test_db):
        """A short payer surfaces as InsufficientPaymentError."""
        fund_account("alice", 100)

        with pytest.raises(InsufficientPaymentError) as exc_info:
            with connection_scope(write=True) as conn:
                settle(
                    conn.cursor(),
                    SqliteAccountTransfer(),
                    payer="alice",
                    beneficiary=SCHEDULE.fee_sink,
                    amount=1500,
                    schedule=SCHEDULE,
                )

        assert exc_info.value.required == 1500
        assert exc_info.value.available == 100
        assert get_balance("alice") == 100

    def test_later_failure_rolls_back_settlement(self, test_db):
        """A failure later in the transaction undoes the settlement."""
        fund_account("alice", 2000)

        with pytest.raises(RuntimeError):
            with connection_scope(write=True) as conn:
                settle(
                    conn.cursor(),
                    SqliteAccountTransfer(),
                    payer="alice",
                    beneficiary=SCHEDULE.fee_sink,
                    amount=1500,
                    schedule=SCHEDULE,
                )
                raise RuntimeError("mutation failed")

        assert get_balance("alice") == 2000
        assert counters_repo.get_registry_counters().contract_balance == 0

    def test_fee_sink_cannot_pay_itself(self, test_db):
        """A fee sink paying its own fee is rejected before any accrual."""
        fund_account(SCHEDULE.fee_sink, 2000)

        with pytest.raises(InvalidInputError):
            with connection_scope(write=True) as conn:
                settle(
                    conn.cursor(),
                    SqliteAccountTransfer(),
                    payer=SCHEDULE.fee_sink,
                    beneficiary=SCHEDULE.fee_sink,
                    amount=1500,
                    schedule=SCHEDULE,
                )

        assert get_balance(SCHEDULE.fee_sink) == 2000
        assert counters_repo.get_registry_counters().contract_balance == 0
