"""Tests for the shared operation gates and the logical clock."""

from unittest.mock import patch

import pytest

from canvas_server.core import gates
from canvas_server.core.clock import BlockClock
from canvas_server.db.types import Asset
from canvas_server.errors import (
    CustomizationLockedError,
    InvalidInputError,
    MaxTraitsExceededError,
    UnauthorizedError,
)


def _asset(**overrides) -> Asset:
    fields = {
        "asset_id": 1,
        "owner": "alice",
        "base_template": "portrait",
        "trait_count": 0,
        "rarity_score": 100,
        "customization_locked": False,
        "created_at": 0,
        "last_modified_at": 0,
    }
    fields.update(overrides)
    return Asset(**fields)


@pytest.mark.unit
class TestGates:
    def test_owner(self):
        """require_owner compares accounts case-sensitively."""
        gates.require_owner(_asset(), "alice")

        with pytest.raises(UnauthorizedError):
            gates.require_owner(_asset(), "Alice")

    def test_unlocked(self):
        """require_unlocked rejects a locked asset."""
        with pytest.raises(CustomizationLockedError):
            gates.require_unlocked(_asset(customization_locked=True))

    def test_mutable_checks_owner_first(self):
        """require_mutable reports ownership before the lock."""
        with pytest.raises(UnauthorizedError):
            gates.require_mutable(_asset(customization_locked=True), "bob")

    @pytest.mark.parametrize("count, fits", [(1, True), (2, True), (3, False)])
    def test_slots(self, count, fits):
        """require_slots allows filling up to twelve traits."""
        asset = _asset(trait_count=10)

        if fits:
            gates.require_slots(asset, count)
        else:
            with pytest.raises(MaxTraitsExceededError):
                gates.require_slots(asset, count)

    @pytest.mark.parametrize("account", ["", "   ", "a" * 129])
    def test_bad_account(self, account):
        """Blank and oversized accounts are invalid input."""
        with pytest.raises(InvalidInputError):
            gates.validate_account(account)

    @pytest.mark.parametrize("amount", [-1, True, 1.5, "10", 2**63])
    def test_bad_amount(self, amount):
        """Non-integers, negatives and values past the ceiling are invalid."""
        with pytest.raises(InvalidInputError):
            gates.validate_amount(amount)

    def test_zero_amount_is_valid(self):
        """Zero is a valid amount."""
        assert gates.validate_amount(0) == 0

    def test_largest_amount_is_valid(self):
        """The integer ceiling itself is a valid amount."""
        assert gates.validate_amount(2**63 - 1) == 2**63 - 1


@pytest.mark.unit
class TestBlockClock:
    def test_follows_wall_clock(self):
        """BlockClock reports wall-clock seconds."""
        with patch("canvas_server.core.clock.time.time", return_value=1_700_000_000.9):
            assert BlockClock().now() == 1_700_000_000

    def test_never_goes_backwards(self):
        """BlockClock never returns an earlier time."""
        clock = BlockClock()
        with patch("canvas_server.core.clock.time.time", return_value=2_000.0):
            assert clock.now() == 2_000
        with patch("canvas_server.core.clock.time.time", return_value=1_000.0):
            assert clock.now() == 2_000

    def test_start_floor(self):
        """BlockClock starts no earlier than its floor."""
        with patch("canvas_server.core.clock.time.time", return_value=5.0):
            assert BlockClock(start=50).now() == 50
