"""Tests for the built-in SQLite value-transfer collaborator."""

import pytest

from canvas_server.db.connection import connection_scope
from canvas_server.db.constants import MAX_AMOUNT
from canvas_server.errors import InvalidInputError
from canvas_server.settlement import (
    InsufficientFundsError,
    SqliteAccountTransfer,
    fund_account,
    get_balance,
)


@pytest.mark.unit
class TestSqliteAccountTransfer:
    def test_unknown_account_has_zero_balance(self, test_db):
        """An unknown account has a zero balance."""
        assert get_balance("nobody") == 0

    def test_fund_accumulates(self, test_db):
        """Successive deposits add up."""
        fund_account("alice", 100)

        assert fund_account("alice", 50) == 150

    def test_fund_rejects_blank_account(self, test_db):
        """fund_account raises ValueError for a blank account."""
        with pytest.raises(ValueError):
            fund_account("  ", 10)

    def test_transfer_debits_and_credits(self, test_db):
        """transfer_value debits the payer and credits the payee."""
        fund_account("alice", 100)

        with connection_scope(write=True) as conn:
            SqliteAccountTransfer().transfer_value(conn.cursor(), "alice", "bob", 60)

        assert get_balance("alice") == 40
        assert get_balance("bob") == 60

    def test_insufficient_funds_writes_nothing(self, test_db):
        """A short payer raises InsufficientFundsError and writes nothing."""
        fund_account("alice", 10)

        with pytest.raises(InsufficientFundsError) as exc_info:
            with connection_scope(write=True) as conn:
                SqliteAccountTransfer().transfer_value(conn.cursor(), "alice", "bob", 11)

        assert exc_info.value.available == 10
        assert get_balance("alice") == 10
        assert get_balance("bob") == 0

    def test_negative_amount_rejected(self, test_db):
        """transfer_value rejects a negative amount."""
        with pytest.raises(ValueError):
            with connection_scope(write=True) as conn:
                SqliteAccountTransfer().transfer_value(conn.cursor(), "alice", "bob", -1)

    def test_credit_that_would_overflow_is_rejected(self, test_db):
        """Crediting past MAX_AMOUNT raises InvalidInputError and keeps the balance."""
        fund_account("alice", MAX_AMOUNT - 5)

        with pytest.raises(InvalidInputError):
            fund_account("alice", 6)

        assert get_balance("alice") == MAX_AMOUNT - 5
        assert fund_account("alice", 5) == MAX_AMOUNT

    def test_transfer_into_full_account_writes_nothing(self, test_db):
        """A transfer whose credit would overflow also rolls back the debit."""
        fund_account("alice", 10)
        fund_account("bob", MAX_AMOUNT)

        with pytest.raises(InvalidInputError):
            with connection_scope(write=True) as conn:
                SqliteAccountTransfer().transfer_value(conn.cursor(), "alice", "bob", 1)

        assert get_balance("alice") == 10
        assert get_balance("bob") == MAX_AMOUNT
