"""Shared database constants for the DB package.

Centralizes limits that the schema CHECK constraints, the repositories and
the engines all depend on, so they cannot drift apart.
"""

from __future__ import annotations

# Slot capacity of a single asset.
MAX_TRAITS_PER_ASSET = 12

# Rarity score of an asset with no applied traits.
BASE_RARITY_SCORE = 100

# Inclusive upper bound for TraitDefinition.base_rarity.
MAX_BASE_RARITY = 100

# Application ceiling assigned to every new trait definition.
MAX_TRAIT_APPLICATIONS = 1000

# Bounded string lengths.
MAX_TEMPLATE_LENGTH = 64
MAX_TRAIT_NAME_LENGTH = 32
MAX_TRAIT_VALUE_LENGTH = 64
MAX_ACCOUNT_LENGTH = 128

# Ceiling for balances, fees and costs (SQLite INTEGER range).
MAX_AMOUNT = 2**63 - 1

# Names of the scalar rows in ``registry_counters``.
COUNTER_NEXT_ASSET_ID = "next_asset_id"
COUNTER_TOTAL_CUSTOMIZATIONS = "total_customizations"
COUNTER_CONTRACT_BALANCE = "contract_balance"
