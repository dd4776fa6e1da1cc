"""Schema creation and invariant trigger wiring for the SQLite backend.

The schema layer is isolated from query code so schema changes are
reviewable without wading through repository logic.

Invariants enforced here (in addition to the repository checks):
    - asset trait counts stay within ``0..MAX_TRAITS_PER_ASSET`` and never
      decrease; assets are never deleted; the lock flag is never cleared.
    - applied-trait and boost rows are append-only.
    - trait application counters never decrease and never pass their cap.
    - account balances never go negative.
"""

from __future__ import annotations

import logging
import sqlite3

from canvas_server.db.connection import get_connection
from canvas_server.db.constants import (
    BASE_RARITY_SCORE,
    COUNTER_CONTRACT_BALANCE,
    COUNTER_NEXT_ASSET_ID,
    COUNTER_TOTAL_CUSTOMIZATIONS,
    MAX_BASE_RARITY,
    MAX_TRAITS_PER_ASSET,
)

logger = logging.getLogger(__name__)

TABLE_STATEMENTS = (
    f"""
    CREATE TABLE IF NOT EXISTS assets (
        id INTEGER PRIMARY KEY,
        owner TEXT NOT NULL,
        base_template TEXT NOT NULL,
        trait_count INTEGER NOT NULL DEFAULT 0
            CHECK (trait_count BETWEEN 0 AND {MAX_TRAITS_PER_ASSET}),
        rarity_score INTEGER NOT NULL DEFAULT {BASE_RARITY_SCORE}
            CHECK (rarity_score >= {BASE_RARITY_SCORE}),
        customization_locked INTEGER NOT NULL DEFAULT 0
            CHECK (customization_locked IN (0, 1)),
        created_at INTEGER NOT NULL,
        last_modified_at INTEGER NOT NULL
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS trait_definitions (
        name TEXT PRIMARY KEY,
        base_rarity INTEGER NOT NULL CHECK (base_rarity BETWEEN 0 AND {MAX_BASE_RARITY}),
        customization_cost INTEGER NOT NULL CHECK (customization_cost >= 0),
        max_applications INTEGER NOT NULL CHECK (max_applications >= 0),
        current_applications INTEGER NOT NULL DEFAULT 0
            CHECK (current_applications BETWEEN 0 AND max_applications),
        creator TEXT NOT NULL,
        created_at INTEGER NOT NULL
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS applied_traits (
        asset_id INTEGER NOT NULL REFERENCES assets(id),
        slot_index INTEGER NOT NULL
            CHECK (slot_index BETWEEN 0 AND {MAX_TRAITS_PER_ASSET - 1}),
        trait_type TEXT NOT NULL REFERENCES trait_definitions(name),
        trait_value TEXT NOT NULL,
        rarity_tier INTEGER NOT NULL CHECK (rarity_tier BETWEEN 0 AND {MAX_BASE_RARITY}),
        applied_by TEXT NOT NULL,
        applied_at INTEGER NOT NULL,
        PRIMARY KEY (asset_id, slot_index)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS asset_boosts (
        asset_id INTEGER NOT NULL REFERENCES assets(id),
        slot_watermark INTEGER NOT NULL,
        boost_pct INTEGER NOT NULL CHECK (boost_pct > 0),
        applied_at INTEGER NOT NULL,
        PRIMARY KEY (asset_id, slot_watermark)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS registry_counters (
        name TEXT PRIMARY KEY,
        value INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS accounts (
        account TEXT PRIMARY KEY,
        balance INTEGER NOT NULL DEFAULT 0 CHECK (balance >= 0)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_stats (
        account TEXT PRIMARY KEY,
        assets_owned INTEGER NOT NULL DEFAULT 0,
        customizations_applied INTEGER NOT NULL DEFAULT 0,
        traits_created INTEGER NOT NULL DEFAULT 0,
        collaboration_earnings INTEGER NOT NULL DEFAULT 0
    )
    """,
)

INDEX_STATEMENTS = (
    "CREATE INDEX IF NOT EXISTS idx_assets_owner ON assets(owner)",
    "CREATE INDEX IF NOT EXISTS idx_applied_traits_type ON applied_traits(trait_type)",
)


def create_invariant_triggers(conn: sqlite3.Connection) -> None:
    """Create triggers that keep ledger rows immutable and counters monotonic.

    These protect integrity for both repository paths and direct SQL writes.
    """
    cursor = conn.cursor()
    triggers = {
        "applied_traits_no_update": """
            CREATE TRIGGER applied_traits_no_update
            BEFORE UPDATE ON applied_traits
            BEGIN
                SELECT RAISE(ABORT, 'applied trait rows are immutable');
            END
        """,
        "applied_traits_no_delete": """
            CREATE TRIGGER applied_traits_no_delete
            BEFORE DELETE ON applied_traits
            BEGIN
                SELECT RAISE(ABORT, 'applied trait rows are immutable');
            END
        """,
        "asset_boosts_no_update": """
            CREATE TRIGGER asset_boosts_no_update
            BEFORE UPDATE ON asset_boosts
            BEGIN
                SELECT RAISE(ABORT, 'asset boost rows are immutable');
            END
        """,
        "asset_boosts_no_delete": """
            CREATE TRIGGER asset_boosts_no_delete
            BEFORE DELETE ON asset_boosts
            BEGIN
                SELECT RAISE(ABORT, 'asset boost rows are immutable');
            END
        """,
        "assets_no_delete": """
            CREATE TRIGGER assets_no_delete
            BEFORE DELETE ON assets
            BEGIN
                SELECT RAISE(ABORT, 'assets are never deleted');
            END
        """,
        "assets_monotonic_update": """
            CREATE TRIGGER assets_monotonic_update
            BEFORE UPDATE ON assets
            BEGIN
                SELECT
                    CASE
                        WHEN NEW.trait_count < OLD.trait_count
                        THEN RAISE(ABORT, 'asset invariant violated: trait_count decreased')
                    END;
                SELECT
                    CASE
                        WHEN OLD.customization_locked = 1 AND NEW.customization_locked = 0
                        THEN RAISE(ABORT, 'asset invariant violated: lock cleared')
                    END;
            END
        """,
        "trait_definitions_monotonic_update": """
            CREATE TRIGGER trait_definitions_monotonic_update
            BEFORE UPDATE ON trait_definitions
            BEGIN
                SELECT
                    CASE
                        WHEN NEW.current_applications < OLD.current_applications
                        THEN RAISE(ABORT, 'trait invariant violated: applications decreased')
                    END;
            END
        """,
    }
    for name, statement in triggers.items():
        cursor.execute(f"DROP TRIGGER IF EXISTS {name}")
        cursor.execute(statement)


def seed_counters(cursor: sqlite3.Cursor) -> None:
    """Insert the scalar counter rows if they do not exist yet."""
    cursor.executemany(
        "INSERT OR IGNORE INTO registry_counters (name, value) VALUES (?, ?)",
        (
            (COUNTER_NEXT_ASSET_ID, 1),
            (COUNTER_TOTAL_CUSTOMIZATIONS, 0),
            (COUNTER_CONTRACT_BALANCE, 0),
        ),
    )


def init_database() -> None:
    """Create every table, index, trigger and counter row (idempotent)."""
    conn = get_connection()
    try:
        cursor = conn.cursor()
        for statement in TABLE_STATEMENTS:
            cursor.execute(statement)
        for statement in INDEX_STATEMENTS:
            cursor.execute(statement)
        create_invariant_triggers(conn)
        seed_counters(cursor)
        conn.commit()
    finally:
        conn.close()
    logger.info("Database schema initialised.")
