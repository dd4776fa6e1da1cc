"""Rarity scoring package.

Typical usage::

    from canvas_server.rarity import score, stored_rarity, verify_rarity
"""

from canvas_server.rarity.scoring import (
    RarityCheck,
    apply_boost,
    check_rarity,
    recompute_stored_rarity,
    score,
    score_asset,
    stored_rarity,
    verify_rarity,
)

__all__ = [
    "RarityCheck",
    "apply_boost",
    "check_rarity",
    "recompute_stored_rarity",
    "score",
    "score_asset",
    "stored_rarity",
    "verify_rarity",
]
