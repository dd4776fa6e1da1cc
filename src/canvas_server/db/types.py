"""Shared DB-layer dataclasses for repository contracts."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Asset:
    """
    Canonical registry record for one canvas.

    Attributes:
        asset_id: Sequential id assigned at mint time, never reused.
        owner: Account that may customize the asset.
        base_template: Template the asset was minted from.
        trait_count: Number of applied traits (0..12); never decreases.
        rarity_score: Stored rarity, including any compounded boosts.
        customization_locked: True once the owner froze the asset.
        created_at: Logical timestamp of the mint.
        last_modified_at: Logical timestamp of the latest mutation.
    """

    asset_id: int
    owner: str
    base_template: str
    trait_count: int
    rarity_score: int
    customization_locked: bool
    created_at: int
    last_modified_at: int

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> Asset:
        return cls(
            asset_id=int(row["id"]),
            owner=row["owner"],
            base_template=row["base_template"],
            trait_count=int(row["trait_count"]),
            rarity_score=int(row["rarity_score"]),
            customization_locked=bool(row["customization_locked"]),
            created_at=int(row["created_at"]),
            last_modified_at=int(row["last_modified_at"]),
        )


@dataclass(frozen=True, slots=True)
class TraitDefinition:
    """
    Catalog entry for one trait type.

    Attributes:
        name: Unique, case-sensitive trait-type name.
        base_rarity: Intrinsic rarity (0..100), copied onto applied traits.
        customization_cost: Per-application cost added to the fixed fee.
        max_applications: Usage ceiling.
        current_applications: Successful applications so far.
        creator: Account that defined the trait.
        created_at: Logical timestamp of the definition.
    """

    name: str
    base_rarity: int
    customization_cost: int
    max_applications: int
    current_applications: int
    creator: str
    created_at: int

    @property
    def remaining_applications(self) -> int:
        return self.max_applications - self.current_applications

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> TraitDefinition:
        return cls(
            name=row["name"],
            base_rarity=int(row["base_rarity"]),
            customization_cost=int(row["customization_cost"]),
            max_applications=int(row["max_applications"]),
            current_applications=int(row["current_applications"]),
            creator=row["creator"],
            created_at=int(row["created_at"]),
        )


@dataclass(frozen=True, slots=True)
class AppliedTrait:
    """
    Immutable ledger row: one trait instance in one asset slot.

    ``rarity_tier`` is copied from the definition when the row is written and
    never follows later catalog changes.
    """

    asset_id: int
    slot_index: int
    trait_type: str
    trait_value: str
    rarity_tier: int
    applied_by: str
    applied_at: int

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> AppliedTrait:
        return cls(
            asset_id=int(row["asset_id"]),
            slot_index=int(row["slot_index"]),
            trait_type=row["trait_type"],
            trait_value=row["trait_value"],
            rarity_tier=int(row["rarity_tier"]),
            applied_by=row["applied_by"],
            applied_at=int(row["applied_at"]),
        )


@dataclass(frozen=True, slots=True)
class AssetBoost:
    """
    A rarity boost recorded by a boosted collaborative operation.

    Attributes:
        asset_id: Boosted asset.
        slot_watermark: Trait count right after the boosted operation; the
            boost applies to the running score once this many slots are summed.
        boost_pct: Multiplier in percent (150 = 1.5x).
        applied_at: Logical timestamp of the operation.
    """

    asset_id: int
    slot_watermark: int
    boost_pct: int
    applied_at: int

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> AssetBoost:
        return cls(
            asset_id=int(row["asset_id"]),
            slot_watermark=int(row["slot_watermark"]),
            boost_pct=int(row["boost_pct"]),
            applied_at=int(row["applied_at"]),
        )


@dataclass(frozen=True, slots=True)
class UserStats:
    """Per-account counters maintained as a side effect of core operations."""

    account: str
    assets_owned: int = 0
    customizations_applied: int = 0
    traits_created: int = 0
    collaboration_earnings: int = 0


@dataclass(frozen=True, slots=True)
class RegistryCounters:
    """Snapshot of the registry-wide scalar counters."""

    next_asset_id: int
    total_customizations: int
    contract_balance: int
