"""Typed domain exceptions for registry operations.

Every rejected operation raises a :class:`CanvasError` subclass.  Each
subclass carries a stable :class:`ErrorKind` so the HTTP layer (and any other
caller) can map failures without string matching.

A raised ``CanvasError`` always means the operation was rejected *before*
anything was committed: the enclosing write transaction is rolled back by
:func:`~canvas_server.db.connection.connection_scope`.

Infrastructure failures (SQLite errors) are not domain errors; they surface
as :class:`~canvas_server.db.errors.DatabaseError`.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-friendly failure categories."""

    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    INSUFFICIENT_PAYMENT = "insufficient_payment"
    INVALID_TRAIT = "invalid_trait"
    CUSTOMIZATION_LOCKED = "customization_locked"
    MAX_TRAITS_EXCEEDED = "max_traits_exceeded"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    INVALID_INPUT = "invalid_input"


class CanvasError(Exception):
    """Base class for rejected registry operations.

    Attributes:
        kind: The :class:`ErrorKind` of the failure.
        detail: Human-readable description.
    """

    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)


class UnauthorizedError(CanvasError):
    """Caller is not the asset owner."""

    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, caller: str, asset_id: int) -> None:
        self.caller = caller
        self.asset_id = asset_id
        super().__init__(f"Account {caller!r} does not own asset {asset_id}.")


class NotFoundError(CanvasError):
    """Unknown asset id or trait type.

    Attributes:
        entity: ``"asset"`` or ``"trait"``.
        key: The identifier that could not be resolved.
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, key: object) -> None:
        self.entity = entity
        self.key = key
        super().__init__(f"{entity.capitalize()} {key!r} not found.")


class AlreadyExistsError(CanvasError):
    """Trait type name is already registered."""

    kind = ErrorKind.ALREADY_EXISTS

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Trait {name!r} is already defined.")


class InsufficientPaymentError(CanvasError):
    """Payer balance does not cover the required amount."""

    kind = ErrorKind.INSUFFICIENT_PAYMENT

    def __init__(self, account: str, required: int, available: int) -> None:
        self.account = account
        self.required = required
        self.available = available
        super().__init__(
            f"Account {account!r} holds {available}, operation requires {required}."
        )


class InvalidTraitError(CanvasError):
    """Trait data out of range, or a collaboration gate rejected the request.

    Attributes:
        reason: Short machine-friendly reason, e.g. ``"rarity_out_of_range"``,
            ``"consensus_not_reached"`` or ``"conflict_detected"``.
    """

    kind = ErrorKind.INVALID_TRAIT

    def __init__(self, reason: str, detail: str) -> None:
        self.reason = reason
        super().__init__(detail)


class CustomizationLockedError(CanvasError):
    """Asset is locked against further mutation."""

    kind = ErrorKind.CUSTOMIZATION_LOCKED

    def __init__(self, asset_id: int) -> None:
        self.asset_id = asset_id
        super().__init__(f"Asset {asset_id} is locked against customization.")


class MaxTraitsExceededError(CanvasError):
    """Asset slot capacity reached."""

    kind = ErrorKind.MAX_TRAITS_EXCEEDED

    def __init__(self, asset_id: int, trait_count: int, requested: int = 1) -> None:
        self.asset_id = asset_id
        self.trait_count = trait_count
        self.requested = requested
        super().__init__(
            f"Asset {asset_id} holds {trait_count} traits; "
            f"{requested} more would exceed the slot limit."
        )


class CapacityExceededError(CanvasError):
    """Trait definition reached its maximum number of applications."""

    kind = ErrorKind.CAPACITY_EXCEEDED

    def __init__(self, name: str, max_applications: int) -> None:
        self.name = name
        self.max_applications = max_applications
        super().__init__(
            f"Trait {name!r} reached its application cap of {max_applications}."
        )


class InvalidInputError(CanvasError):
    """Bounded string or amount constraint violated."""

    kind = ErrorKind.INVALID_INPUT
