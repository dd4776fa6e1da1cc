"""Asset registry repository operations for the SQLite backend.

The registry holds one canonical row per canvas. Cursor-level helpers
(``create_asset``, ``get_asset``, ``update_asset``) run inside a caller-owned
write transaction; the module-level readers open their own read scope.
"""

from __future__ import annotations

import dataclasses
import sqlite3
from collections.abc import Callable

from canvas_server.db import counters_repo
from canvas_server.db.connection import connection_scope
from canvas_server.db.constants import (
    BASE_RARITY_SCORE,
    MAX_TEMPLATE_LENGTH,
    MAX_TRAITS_PER_ASSET,
)
from canvas_server.db.errors import raise_read_error
from canvas_server.db.types import Asset
from canvas_server.errors import InvalidInputError, NotFoundError

_SELECT_ASSET = """
    SELECT id, owner, base_template, trait_count, rarity_score,
           customization_locked, created_at, last_modified_at
    FROM assets
"""


def validate_template(template: str) -> str:
    """Return the stripped template name or raise ``InvalidInputError``."""
    cleaned = (template or "").strip()
    if not cleaned:
        raise InvalidInputError("Base template must be a non-empty string.")
    if len(cleaned) > MAX_TEMPLATE_LENGTH:
        raise InvalidInputError(
            f"Base template exceeds {MAX_TEMPLATE_LENGTH} characters."
        )
    return cleaned


def create_asset(cursor: sqlite3.Cursor, *, owner: str, template: str, now: int) -> int:
    """Insert a fresh asset under the next sequential id and return the id."""
    template = validate_template(template)
    asset_id = counters_repo.allocate_asset_id(cursor)
    cursor.execute(
        """
        INSERT INTO assets
            (id, owner, base_template, trait_count, rarity_score,
             customization_locked, created_at, last_modified_at)
        VALUES (?, ?, ?, 0, ?, 0, ?, ?)
        """,
        (asset_id, owner, template, BASE_RARITY_SCORE, now, now),
    )
    return asset_id


def find_asset(cursor: sqlite3.Cursor, asset_id: int) -> Asset | None:
    cursor.execute(_SELECT_ASSET + " WHERE id = ?", (asset_id,))
    row = cursor.fetchone()
    return Asset.from_row(row) if row else None


def get_asset(cursor: sqlite3.Cursor, asset_id: int) -> Asset:
    """Return the asset or raise ``NotFoundError``."""
    asset = find_asset(cursor, asset_id)
    if asset is None:
        raise NotFoundError("asset", asset_id)
    return asset


def update_asset(
    cursor: sqlite3.Cursor,
    asset_id: int,
    mutate: Callable[[Asset], Asset],
) -> Asset:
    """Apply ``mutate`` to the current row and persist the result.

    ``mutate`` receives the freshly read asset and returns the replacement
    (typically via :func:`dataclasses.replace`). The result is rejected with
    ``ValueError`` if it would break a registry invariant; callers are expected
    to have gated the operation before getting here.
    """
    current = get_asset(cursor, asset_id)
    updated = mutate(current)

    if updated.asset_id != current.asset_id:
        raise ValueError("Asset id is immutable.")
    if updated.trait_count < current.trait_count:
        raise ValueError("Asset trait count never decreases.")
    if updated.trait_count > MAX_TRAITS_PER_ASSET:
        raise ValueError(f"Asset trait count exceeds {MAX_TRAITS_PER_ASSET}.")
    if updated.rarity_score < BASE_RARITY_SCORE:
        raise ValueError(f"Rarity score below base score {BASE_RARITY_SCORE}.")
    if current.customization_locked and not updated.customization_locked:
        raise ValueError("Customization lock cannot be cleared.")

    cursor.execute(
        """
        UPDATE assets
        SET owner = ?, base_template = ?, trait_count = ?, rarity_score = ?,
            customization_locked = ?, last_modified_at = ?
        WHERE id = ?
        """,
        (
            updated.owner,
            updated.base_template,
            updated.trait_count,
            updated.rarity_score,
            int(updated.customization_locked),
            updated.last_modified_at,
            asset_id,
        ),
    )
    return updated


def replace_fields(cursor: sqlite3.Cursor, asset_id: int, **changes: object) -> Asset:
    """Shorthand for :func:`update_asset` with a ``dataclasses.replace`` mutator."""
    return update_asset(
        cursor,
        asset_id,
        lambda current: dataclasses.replace(current, **changes),  # type: ignore[arg-type]
    )


def fetch_asset(asset_id: int) -> Asset:
    """Read one asset in its own scope; raises ``NotFoundError`` on miss."""
    try:
        with connection_scope() as conn:
            return get_asset(conn.cursor(), asset_id)
    except Exception as exc:
        raise_read_error("assets.fetch_asset", exc, details=f"asset_id={asset_id}")


def list_assets_by_owner(owner: str) -> list[Asset]:
    """Return every asset owned by ``owner`` in id order."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(_SELECT_ASSET + " WHERE owner = ? ORDER BY id", (owner,))
            return [Asset.from_row(row) for row in cursor.fetchall()]
    except Exception as exc:
        raise_read_error("assets.list_assets_by_owner", exc, details=f"owner={owner!r}")
