"""Trait application ledger for the SQLite backend.

Every applied trait is one immutable row keyed by ``(asset_id, slot_index)``.
Rows are appended at ``slot = asset.trait_count`` so the slots of an asset are
always contiguous from 0. The caller bumps ``assets.trait_count`` in the same
transaction; this module never touches the asset row.

Boost rows (``asset_boosts``) live here as well: together with the trait rows
they are everything the rarity engine needs to recompute a stored score.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Sequence

from canvas_server.db import assets_repo
from canvas_server.db.connection import connection_scope
from canvas_server.db.constants import MAX_TRAIT_VALUE_LENGTH, MAX_TRAITS_PER_ASSET
from canvas_server.db.errors import raise_read_error
from canvas_server.db.types import AppliedTrait, AssetBoost
from canvas_server.errors import InvalidTraitError, MaxTraitsExceededError


def validate_trait_value(value: str) -> str:
    if value is None or len(value) > MAX_TRAIT_VALUE_LENGTH:
        raise InvalidTraitError(
            "value_too_long",
            f"Trait value must be at most {MAX_TRAIT_VALUE_LENGTH} characters.",
        )
    return value


def append(
    cursor: sqlite3.Cursor,
    *,
    asset_id: int,
    trait_type: str,
    trait_value: str,
    rarity_tier: int,
    applier: str,
    applied_at: int,
) -> int:
    """Write one ledger row at the asset's next free slot and return the slot.

    Raises:
        NotFoundError: Unknown asset.
        MaxTraitsExceededError: The asset already holds ``MAX_TRAITS_PER_ASSET``.
    """
    slots = append_many(
        cursor,
        asset_id=asset_id,
        entries=[(trait_type, trait_value, rarity_tier)],
        applier=applier,
        applied_at=applied_at,
    )
    return slots[0]


def append_many(
    cursor: sqlite3.Cursor,
    *,
    asset_id: int,
    entries: Sequence[tuple[str, str, int]],
    applier: str,
    applied_at: int,
) -> list[int]:
    """Write consecutive ledger rows for ``(trait_type, value, tier)`` entries.

    All-or-nothing: capacity is checked for the whole batch before the first
    insert.
    """
    asset = assets_repo.get_asset(cursor, asset_id)
    if asset.trait_count + len(entries) > MAX_TRAITS_PER_ASSET:
        raise MaxTraitsExceededError(asset_id, asset.trait_count, len(entries))

    for _, value, _ in entries:
        validate_trait_value(value)

    slots = []
    for offset, (trait_type, trait_value, rarity_tier) in enumerate(entries):
        slot = asset.trait_count + offset
        cursor.execute(
            """
            INSERT INTO applied_traits
                (asset_id, slot_index, trait_type, trait_value, rarity_tier,
                 applied_by, applied_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (asset_id, slot, trait_type, trait_value, rarity_tier, applier, applied_at),
        )
        slots.append(slot)
    return slots


def traits_of(cursor: sqlite3.Cursor, asset_id: int) -> list[AppliedTrait]:
    """Return the asset's applied traits ordered by slot."""
    cursor.execute(
        """
        SELECT asset_id, slot_index, trait_type, trait_value, rarity_tier,
               applied_by, applied_at
        FROM applied_traits
        WHERE asset_id = ?
        ORDER BY slot_index
        """,
        (asset_id,),
    )
    return [AppliedTrait.from_row(row) for row in cursor.fetchall()]


def record_boost(
    cursor: sqlite3.Cursor,
    *,
    asset_id: int,
    slot_watermark: int,
    boost_pct: int,
    applied_at: int,
) -> AssetBoost:
    cursor.execute(
        """
        INSERT INTO asset_boosts (asset_id, slot_watermark, boost_pct, applied_at)
        VALUES (?, ?, ?, ?)
        """,
        (asset_id, slot_watermark, boost_pct, applied_at),
    )
    return AssetBoost(
        asset_id=asset_id,
        slot_watermark=slot_watermark,
        boost_pct=boost_pct,
        applied_at=applied_at,
    )


def boosts_of(cursor: sqlite3.Cursor, asset_id: int) -> list[AssetBoost]:
    """Return the asset's boosts ordered by watermark."""
    cursor.execute(
        """
        SELECT asset_id, slot_watermark, boost_pct, applied_at
        FROM asset_boosts
        WHERE asset_id = ?
        ORDER BY slot_watermark
        """,
        (asset_id,),
    )
    return [AssetBoost.from_row(row) for row in cursor.fetchall()]


def list_applied_traits(asset_id: int) -> list[AppliedTrait]:
    """Read an asset's ledger in its own scope; raises ``NotFoundError`` on miss."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            assets_repo.get_asset(cursor, asset_id)
            return traits_of(cursor, asset_id)
    except Exception as exc:
        raise_read_error("traits.list_applied_traits", exc, details=f"asset_id={asset_id}")
