"""Trait catalog repository operations for the SQLite backend.

The catalog is the registry of trait definitions. A definition is written
once, never deleted, and only ever changes by bumping its application
counter when a customization succeeds.
"""

from __future__ import annotations

import sqlite3

from canvas_server.db.connection import connection_scope
from canvas_server.db.constants import (
    MAX_AMOUNT,
    MAX_BASE_RARITY,
    MAX_TRAIT_APPLICATIONS,
    MAX_TRAIT_NAME_LENGTH,
)
from canvas_server.db.errors import raise_read_error
from canvas_server.db.types import TraitDefinition
from canvas_server.errors import (
    AlreadyExistsError,
    CapacityExceededError,
    InvalidInputError,
    InvalidTraitError,
    NotFoundError,
)

_SELECT_TRAIT = """
    SELECT name, base_rarity, customization_cost, max_applications,
           current_applications, creator, created_at
    FROM trait_definitions
"""


def validate_trait_name(name: str) -> str:
    """Check a trait-type name. Names are case-sensitive and not stripped."""
    if not name or not name.strip():
        raise InvalidInputError("Trait name must be a non-empty string.")
    if len(name) > MAX_TRAIT_NAME_LENGTH:
        raise InvalidInputError(f"Trait name exceeds {MAX_TRAIT_NAME_LENGTH} characters.")
    return name


def lookup(cursor: sqlite3.Cursor, name: str) -> TraitDefinition | None:
    """Return the definition for ``name`` or ``None``."""
    cursor.execute(_SELECT_TRAIT + " WHERE name = ?", (name,))
    row = cursor.fetchone()
    return TraitDefinition.from_row(row) if row else None


def require(cursor: sqlite3.Cursor, name: str) -> TraitDefinition:
    """Return the definition for ``name`` or raise ``NotFoundError``."""
    definition = lookup(cursor, name)
    if definition is None:
        raise NotFoundError("trait", name)
    return definition


def define_trait(
    cursor: sqlite3.Cursor,
    *,
    name: str,
    base_rarity: int,
    customization_cost: int,
    creator: str,
    created_at: int,
) -> TraitDefinition:
    """Register a new trait type.

    Raises:
        InvalidInputError: Empty/oversized name or a cost outside
            ``0..MAX_AMOUNT``.
        InvalidTraitError: ``base_rarity`` outside ``0..100``.
        AlreadyExistsError: ``name`` is already registered (row untouched).
    """
    validate_trait_name(name)
    if not 0 <= base_rarity <= MAX_BASE_RARITY:
        raise InvalidTraitError(
            "rarity_out_of_range",
            f"Base rarity {base_rarity} outside 0..{MAX_BASE_RARITY}.",
        )
    if customization_cost < 0:
        raise InvalidInputError("Customization cost must be non-negative.")
    if customization_cost > MAX_AMOUNT:
        raise InvalidInputError(f"Customization cost must not exceed {MAX_AMOUNT}.")
    if lookup(cursor, name) is not None:
        raise AlreadyExistsError(name)

    cursor.execute(
        """
        INSERT INTO trait_definitions
            (name, base_rarity, customization_cost, max_applications,
             current_applications, creator, created_at)
        VALUES (?, ?, ?, ?, 0, ?, ?)
        """,
        (name, base_rarity, customization_cost, MAX_TRAIT_APPLICATIONS, creator, created_at),
    )
    return TraitDefinition(
        name=name,
        base_rarity=base_rarity,
        customization_cost=customization_cost,
        max_applications=MAX_TRAIT_APPLICATIONS,
        current_applications=0,
        creator=creator,
        created_at=created_at,
    )


def ensure_capacity(definition: TraitDefinition, count: int = 1) -> None:
    """Raise ``CapacityExceededError`` if ``count`` more applications do not fit."""
    if definition.current_applications + count > definition.max_applications:
        raise CapacityExceededError(definition.name, definition.max_applications)


def record_application(cursor: sqlite3.Cursor, name: str, count: int = 1) -> TraitDefinition:
    """Increment ``current_applications`` by ``count``.

    Raises:
        NotFoundError: Unknown trait type.
        CapacityExceededError: The increment would pass ``max_applications``.
    """
    definition = require(cursor, name)
    ensure_capacity(definition, count)
    cursor.execute(
        """
        UPDATE trait_definitions
        SET current_applications = current_applications + ?
        WHERE name = ?
        """,
        (count, name),
    )
    return require(cursor, name)


def get_trait(name: str) -> TraitDefinition | None:
    """Read one definition in its own scope."""
    try:
        with connection_scope() as conn:
            return lookup(conn.cursor(), name)
    except Exception as exc:
        raise_read_error("catalog.get_trait", exc, details=f"name={name!r}")


def list_traits() -> list[TraitDefinition]:
    """Return the full catalog ordered by name."""
    try:
        with connection_scope() as conn:
            cursor = conn.cursor()
            cursor.execute(_SELECT_TRAIT + " ORDER BY name")
            return [TraitDefinition.from_row(row) for row in cursor.fetchall()]
    except Exception as exc:
        raise_read_error("catalog.list_traits", exc)
