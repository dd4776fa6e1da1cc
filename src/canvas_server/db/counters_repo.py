"""Registry-wide scalar counters.

Three counters live in ``registry_counters``: the next asset id, the total
number of customization operations, and the registry's accrued fee balance.
They are only ever changed through the cursor helpers below, inside the same
write transaction as the operation that moves them.
"""

from __future__ import annotations

import sqlite3

from canvas_server.db.connection import connection_scope
from canvas_server.db.constants import (
    COUNTER_CONTRACT_BALANCE,
    COUNTER_NEXT_ASSET_ID,
    COUNTER_TOTAL_CUSTOMIZATIONS,
)
from canvas_server.db.errors import raise_read_error
from canvas_server.db.types import RegistryCounters


def _read(cursor: sqlite3.Cursor, name: str) -> int:
    cursor.execute("SELECT value FROM registry_counters WHERE name = ?", (name,))
    row = cursor.fetchone()
    if row is None:
        raise RuntimeError(f"Counter {name!r} is not seeded; run init_database().")
    return int(row[0])


def _add(cursor: sqlite3.Cursor, name: str, amount: int) -> int:
    current = _read(cursor, name)
    updated = current + amount
    cursor.execute("UPDATE registry_counters SET value = ? WHERE name = ?", (updated, name))
    return updated


def allocate_asset_id(cursor: sqlite3.Cursor) -> int:
    """Return the next asset id and advance the counter.

    A rolled-back transaction also rolls the counter back, so a failed mint
    never burns an id.
    """
    asset_id = _read(cursor, COUNTER_NEXT_ASSET_ID)
    cursor.execute(
        "UPDATE registry_counters SET value = ? WHERE name = ?",
        (asset_id + 1, COUNTER_NEXT_ASSET_ID),
    )
    return asset_id


def increment_total_customizations(cursor: sqlite3.Cursor) -> int:
    return _add(cursor, COUNTER_TOTAL_CUSTOMIZATIONS, 1)


def accrue_contract_balance(cursor: sqlite3.Cursor, amount: int) -> int:
    if amount < 0:
        raise ValueError("Contract balance accrual must be non-negative.")
    return _add(cursor, COUNTER_CONTRACT_BALANCE, amount)


def read_counters(cursor: sqlite3.Cursor) -> RegistryCounters:
    return RegistryCounters(
        next_asset_id=_read(cursor, COUNTER_NEXT_ASSET_ID),
        total_customizations=_read(cursor, COUNTER_TOTAL_CUSTOMIZATIONS),
        contract_balance=_read(cursor, COUNTER_CONTRACT_BALANCE),
    )


def get_registry_counters() -> RegistryCounters:
    """Return a snapshot of all registry counters."""
    try:
        with connection_scope() as conn:
            return read_counters(conn.cursor())
    except Exception as exc:
        raise_read_error("counters.get_registry_counters", exc)
