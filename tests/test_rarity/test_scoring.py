"""Tests for rarity scoring (``canvas_server.rarity.scoring``).

Pure functions are tested with hand-built ledgers; the ledger-backed helpers
are tested through the engine so that stored scores come from real
operations.
"""

import pytest

from canvas_server.collab import CollaborationRequest
from canvas_server.db.connection import connection_scope
from canvas_server.db.types import AppliedTrait, AssetBoost
from canvas_server.errors import NotFoundError
from canvas_server.rarity import apply_boost, score, score_asset, stored_rarity, verify_rarity
from tests.constants import NOW


def _trait(slot: int, tier: int) -> AppliedTrait:
    return AppliedTrait(
        asset_id=1,
        slot_index=slot,
        trait_type="texture",
        trait_value="v",
        rarity_tier=tier,
        applied_by="alice",
        applied_at=0,
    )


def _boost(watermark: int, pct: int = 150) -> AssetBoost:
    return AssetBoost(asset_id=1, slot_watermark=watermark, boost_pct=pct, applied_at=0)


@pytest.mark.unit
class TestPureScoring:
    def test_empty_ledger_scores_base(self):
        """An empty ledger scores the base rarity."""
        assert score([]) == 100
        assert stored_rarity([], []) == 100

    def test_score_sums_tiers(self):
        """score adds each tier to the base."""
        assert score([_trait(0, 40), _trait(1, 25)]) == 165

    def test_apply_boost_floors(self):
        """apply_boost floors the boosted score."""
        assert apply_boost(165, 150) == 247
        assert apply_boost(101, 150) == 151

    def test_single_boost(self):
        """One boost multiplies the score at its watermark."""
        traits = [_trait(0, 40), _trait(1, 25)]

        assert stored_rarity(traits, [_boost(2)]) == 247

    def test_boosts_compound_at_each_watermark(self):
        """Each boost applies to the running score at its watermark."""
        traits = [_trait(0, 40), _trait(1, 25), _trait(2, 10)]

        # (100 + 40 + 25) * 1.5 = 247; (247 + 10) * 1.5 = 385
        assert stored_rarity(traits, [_boost(2), _boost(3)]) == 385

    def test_trait_after_boost_is_not_boosted(self):
        """Traits added after a boost are not multiplied."""
        traits = [_trait(0, 40), _trait(1, 10)]

        assert stored_rarity(traits, [_boost(1)]) == 220

    def test_replay_order_follows_slots(self):
        """Replay orders traits by slot, not input order."""
        traits = [_trait(1, 10), _trait(0, 40)]

        assert stored_rarity(traits, [_boost(1)]) == 220


@pytest.mark.unit
class TestVerifyRarity:
    def test_matches_after_customizations(self, engine, minted):
        """Stored rarity matches the replay after mixed customizations."""
        engine.apply_customization(
            caller="alice", asset_id=minted, trait_type="texture", trait_value="rough", now=NOW
        )
        engine.collaborate(
            CollaborationRequest(
                asset_id=minted,
                collaboration_type="duet",
                trait_combination=("glow", "grain"),
                community_vote_weight=80,
                evolution_stage=1,
                rarity_boost_enabled=True,
            ),
            caller="alice",
            now=NOW,
        )

        check = verify_rarity(minted)

        assert check.base_score == 175
        assert check.expected == check.stored == 262
        assert check.boosts_applied == 1
        assert check.consistent

    def test_unknown_asset(self, engine):
        """verify_rarity raises NotFoundError for a missing asset."""
        with pytest.raises(NotFoundError):
            verify_rarity(404)

    def test_score_asset_is_a_repeatable_read(self, engine, minted):
        """score_asset gives the same value when called twice on one cursor."""
        engine.apply_customization(
            caller="alice", asset_id=minted, trait_type="texture", trait_value="rough", now=NOW
        )

        with connection_scope() as conn:
            cursor = conn.cursor()
            first = score_asset(cursor, minted)
            second = score_asset(cursor, minted)

        assert first == second == 140
        assert engine.get_asset(minted).rarity_score == 140
