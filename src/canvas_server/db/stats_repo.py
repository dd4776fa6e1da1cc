"""Per-account statistics counters.

A write-only sink from the point of view of the engines: core logic bumps
these counters as a side effect of successful operations and never reads
them back. ``get_user_stats`` exists for the HTTP layer and tests.
"""

from __future__ import annotations

import sqlite3

from canvas_server.db.connection import connection_scope
from canvas_server.db.errors import raise_read_error
from canvas_server.db.types import UserStats

STAT_FIELDS = frozenset(
    {
        "assets_owned",
        "customizations_applied",
        "traits_created",
        "collaboration_earnings",
    }
)


def bump(cursor: sqlite3.Cursor, account: str, **increments: int) -> None:
    """Add ``increments`` (field name -> amount) to ``account``'s counters."""
    unknown = set(increments) - STAT_FIELDS
    if unknown:
        raise ValueError(f"Unknown stat fields: {sorted(unknown)}")
    if not increments:
        return

    cursor.execute("INSERT OR IGNORE INTO user_stats (account) VALUES (?)", (account,))
    # Field names come from the STAT_FIELDS allow-list above.
    assignments = ", ".join(f"{name} = {name} + ?" for name in increments)
    cursor.execute(
        f"UPDATE user_stats SET {assignments} WHERE account = ?",  # nosec B608
        (*increments.values(), account),
    )


def get_user_stats(account: str) -> UserStats:
    """Return the counters for ``account`` (all zero when never touched)."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT account, assets_owned, customizations_applied,
                       traits_created, collaboration_earnings
                FROM user_stats
                WHERE account = ?
                """,
                (account,),
            )
            row = cursor.fetchone()
    except Exception as exc:
        raise_read_error("stats.get_user_stats", exc, details=f"account={account!r}")

    if row is None:
        return UserStats(account=account)
    return UserStats(
        account=row["account"],
        assets_owned=int(row["assets_owned"]),
        customizations_applied=int(row["customizations_applied"]),
        traits_created=int(row["traits_created"]),
        collaboration_earnings=int(row["collaboration_earnings"]),
    )
