"""Value-transfer collaborator.

The engines only depend on the :class:`ValueTransfer` protocol: a balance
query for pre-flight affordability checks, and an atomic debit/credit.
Both take the operation's cursor so the transfer commits or rolls back with
the rest of the operation.

:class:`SqliteAccountTransfer` is the built-in implementation. It keeps
balances in the ``accounts`` table of the registry database.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Protocol

from canvas_server.db.connection import connection_scope
from canvas_server.db.constants import MAX_AMOUNT
from canvas_server.db.errors import raise_read_error, raise_write_error
from canvas_server.errors import InvalidInputError

logger = logging.getLogger(__name__)


class InsufficientFundsError(Exception):
    """Raised by a transfer collaborator when the payer cannot cover the amount.

    Attributes:
        account: Payer account.
        required: Requested amount.
        available: Payer balance at the time of the attempt.
    """

    def __init__(self, account: str, required: int, available: int) -> None:
        self.account = account
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient funds in {account!r}: required {required}, available {available}."
        )


class ValueTransfer(Protocol):
    """Contract of the settlement primitive."""

    def current_balance(self, cursor: sqlite3.Cursor, account: str) -> int: ...

    def transfer_value(
        self,
        cursor: sqlite3.Cursor,
        from_account: str,
        to_account: str,
        amount: int,
    ) -> None: ...


class SqliteAccountTransfer:
    """Balances stored in the ``accounts`` table of the registry database."""

    def current_balance(self, cursor: sqlite3.Cursor, account: str) -> int:
        cursor.execute("SELECT balance FROM accounts WHERE account = ?", (account,))
        row = cursor.fetchone()
        return int(row[0]) if row else 0

    def credit(self, cursor: sqlite3.Cursor, account: str, amount: int) -> int:
        """Add ``amount`` to ``account`` and return the new balance.

        Raises:
            ValueError: Negative amount.
            InvalidInputError: The resulting balance would exceed ``MAX_AMOUNT``.
        """
        if amount < 0:
            raise ValueError("Credit amount must be non-negative.")
        balance = self.current_balance(cursor, account)
        if balance > MAX_AMOUNT - amount:
            raise InvalidInputError(
                f"Crediting {amount} would overflow the balance of {account!r}."
            )
        cursor.execute(
            """
            INSERT INTO accounts (account, balance) VALUES (?, ?)
            ON CONFLICT(account) DO UPDATE SET balance = balance + excluded.balance
            """,
            (account, amount),
        )
        return self.current_balance(cursor, account)

    def transfer_value(
        self,
        cursor: sqlite3.Cursor,
        from_account: str,
        to_account: str,
        amount: int,
    ) -> None:
        """Debit ``from_account`` and credit ``to_account`` by ``amount``.

        Raises:
            ValueError: Negative amount.
            InsufficientFundsError: Payer balance below ``amount``; nothing is
                written in that case.
        """
        if amount < 0:
            raise ValueError("Transfer amount must be non-negative.")
        available = self.current_balance(cursor, from_account)
        if available < amount:
            raise InsufficientFundsError(from_account, amount, available)
        if amount == 0 or from_account == to_account:
            return

        cursor.execute(
            "UPDATE accounts SET balance = balance - ? WHERE account = ?",
            (amount, from_account),
        )
        self.credit(cursor, to_account, amount)
        logger.debug("transfer: %s -> %s amount=%d", from_account, to_account, amount)


def fund_account(account: str, amount: int) -> int:
    """Credit ``account`` in its own write scope and return the new balance."""
    if not account or not account.strip():
        raise ValueError("Account must be a non-empty string.")
    try:
        with connection_scope(write=True) as conn:
            balance = SqliteAccountTransfer().credit(conn.cursor(), account, amount)
    except ValueError:
        raise
    except Exception as exc:
        raise_write_error("accounts.fund_account", exc, details=f"account={account!r}")
    logger.info("Funded account %r with %d (balance %d).", account, amount, balance)
    return balance


def get_balance(account: str) -> int:
    """Return the balance of ``account`` (0 when unknown)."""
    try:
        with connection_scope() as conn:
            return SqliteAccountTransfer().current_balance(conn.cursor(), account)
    except Exception as exc:
        raise_read_error("accounts.get_balance", exc, details=f"account={account!r}")
