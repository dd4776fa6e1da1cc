"""Precondition checks shared by every mutating operation.

Each gate raises the matching :class:`~canvas_server.errors.CanvasError`
and never writes. Gates run against the asset row read inside the
operation's own write transaction, never against a cached snapshot.
"""

from __future__ import annotations

from canvas_server.db.constants import MAX_ACCOUNT_LENGTH, MAX_AMOUNT, MAX_TRAITS_PER_ASSET
from canvas_server.db.types import Asset
from canvas_server.errors import (
    CustomizationLockedError,
    InvalidInputError,
    MaxTraitsExceededError,
    UnauthorizedError,
)


def validate_account(account: str, label: str = "caller") -> str:
    if not account or not account.strip():
        raise InvalidInputError(f"{label} must be a non-empty account identifier.")
    if len(account) > MAX_ACCOUNT_LENGTH:
        raise InvalidInputError(f"{label} must be at most {MAX_ACCOUNT_LENGTH} characters.")
    return account


def validate_amount(amount: int, label: str = "amount") -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise InvalidInputError(f"{label} must be a non-negative integer.")
    if amount > MAX_AMOUNT:
        raise InvalidInputError(f"{label} must not exceed {MAX_AMOUNT}.")
    return amount


def require_owner(asset: Asset, caller: str) -> None:
    if asset.owner != caller:
        raise UnauthorizedError(caller, asset.asset_id)


def require_unlocked(asset: Asset) -> None:
    if asset.customization_locked:
        raise CustomizationLockedError(asset.asset_id)


def require_slots(asset: Asset, count: int = 1) -> None:
    """Raise ``MaxTraitsExceededError`` unless ``count`` more traits fit."""
    if asset.trait_count + count > MAX_TRAITS_PER_ASSET:
        raise MaxTraitsExceededError(asset.asset_id, asset.trait_count, count)


def require_mutable(asset: Asset, caller: str) -> None:
    """Ownership then lock, in that order."""
    require_owner(asset, caller)
    require_unlocked(asset)
