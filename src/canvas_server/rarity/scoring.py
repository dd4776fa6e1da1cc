"""Rarity scoring.

Two scores exist for every asset:

``score``
    ``BASE_RARITY_SCORE + sum(rarity_tier)`` over the applied-trait ledger.
    Pure, deterministic, never cached.

``stored_rarity``
    What ``assets.rarity_score`` holds. It replays the ledger slot by slot and
    multiplies the running score by each recorded boost once its slot
    watermark is reached. Successive boosted collaborations therefore
    compound (``floor((floor(s * 1.5) + t) * 1.5)`` and so on), while the
    stored value stays recomputable from persisted rows alone.

The boost arithmetic lives only in :func:`apply_boost`.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from canvas_server.db import assets_repo, traits_repo
from canvas_server.db.connection import connection_scope
from canvas_server.db.constants import BASE_RARITY_SCORE
from canvas_server.db.errors import raise_read_error
from canvas_server.db.types import AppliedTrait, AssetBoost

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RarityCheck:
    """Result of comparing a stored rarity score with a fresh recomputation.

    Attributes:
        asset_id: Checked asset.
        base_score: ``score`` over the current ledger (no boosts).
        expected: ``stored_rarity`` recomputed from ledger + boosts.
        stored: Value currently held by the asset row.
        boosts_applied: Number of boost rows replayed.
    """

    asset_id: int
    base_score: int
    expected: int
    stored: int
    boosts_applied: int

    @property
    def consistent(self) -> bool:
        return self.expected == self.stored


def apply_boost(score: int, boost_pct: int) -> int:
    """Return ``floor(score * boost_pct / 100)``."""
    return score * boost_pct // 100


def score(traits: Iterable[AppliedTrait]) -> int:
    """Return ``100 + sum of rarity tiers``."""
    return BASE_RARITY_SCORE + sum(trait.rarity_tier for trait in traits)


def stored_rarity(traits: Sequence[AppliedTrait], boosts: Sequence[AssetBoost]) -> int:
    """Replay ``traits`` in slot order, boosting at each boost watermark."""
    pending = sorted(boosts, key=lambda b: b.slot_watermark)
    running = BASE_RARITY_SCORE
    index = 0
    ordered = sorted(traits, key=lambda t: t.slot_index)

    for position, trait in enumerate(ordered, start=1):
        running += trait.rarity_tier
        while index < len(pending) and pending[index].slot_watermark <= position:
            running = apply_boost(running, pending[index].boost_pct)
            index += 1

    # Boosts recorded at a watermark beyond the ledger would mean a corrupt
    # ledger; apply them anyway so the mismatch surfaces in verify_rarity.
    for boost in pending[index:]:
        logger.warning(
            "Boost at watermark %d exceeds ledger length %d for asset %d.",
            boost.slot_watermark,
            len(ordered),
            boost.asset_id,
        )
        running = apply_boost(running, boost.boost_pct)
    return running


def score_asset(cursor: sqlite3.Cursor, asset_id: int) -> int:
    """Return :func:`score` for the asset's current ledger."""
    return score(traits_repo.traits_of(cursor, asset_id))


def recompute_stored_rarity(cursor: sqlite3.Cursor, asset_id: int) -> int:
    """Return :func:`stored_rarity` for the asset's current ledger and boosts."""
    return stored_rarity(
        traits_repo.traits_of(cursor, asset_id),
        traits_repo.boosts_of(cursor, asset_id),
    )


def check_rarity(cursor: sqlite3.Cursor, asset_id: int) -> RarityCheck:
    asset = assets_repo.get_asset(cursor, asset_id)
    traits = traits_repo.traits_of(cursor, asset_id)
    boosts = traits_repo.boosts_of(cursor, asset_id)
    return RarityCheck(
        asset_id=asset_id,
        base_score=score(traits),
        expected=stored_rarity(traits, boosts),
        stored=asset.rarity_score,
        boosts_applied=len(boosts),
    )


def verify_rarity(asset_id: int) -> RarityCheck:
    """Recompute an asset's rarity in its own read scope.

    Raises:
        NotFoundError: Unknown asset.
    """
    try:
        with connection_scope() as conn:
            result = check_rarity(conn.cursor(), asset_id)
    except Exception as exc:
        raise_read_error("rarity.verify_rarity", exc, details=f"asset_id={asset_id}")

    if not result.consistent:
        logger.error(
            "Rarity mismatch for asset %d: stored=%d expected=%d.",
            asset_id,
            result.stored,
            result.expected,
        )
    return result
