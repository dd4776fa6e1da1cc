"""Tests for the trait catalog repository (``canvas_server.db.catalog_repo``)."""

import pytest

from canvas_server.db import catalog_repo
from canvas_server.db.connection import connection_scope
from canvas_server.db.constants import MAX_AMOUNT, MAX_TRAIT_APPLICATIONS
from canvas_server.errors import (
    AlreadyExistsError,
    CapacityExceededError,
    InvalidInputError,
    InvalidTraitError,
    NotFoundError,
)


def _define(name="texture", base_rarity=40, cost=1000, creator="curator"):
    with connection_scope(write=True) as conn:
        return catalog_repo.define_trait(
            conn.cursor(),
            name=name,
            base_rarity=base_rarity,
            customization_cost=cost,
            creator=creator,
            created_at=10,
        )


@pytest.mark.unit
class TestDefineTrait:
    def test_defines_with_zero_applications_and_fixed_cap(self, test_db):
        """A new trait starts with no applications and the fixed cap."""
        definition = _define()

        assert definition.current_applications == 0
        assert definition.max_applications == MAX_TRAIT_APPLICATIONS
        assert catalog_repo.get_trait("texture") == definition

    def test_duplicate_name_leaves_existing_row_untouched(self, test_db):
        """A duplicate name keeps the original row."""
        original = _define()

        with pytest.raises(AlreadyExistsError):
            _define(base_rarity=99, cost=1, creator="mallory")

        assert catalog_repo.get_trait("texture") == original

    def test_names_are_case_sensitive(self, test_db):
        """Names that differ only by case are distinct rows."""
        _define("texture")
        _define("Texture")

        assert [d.name for d in catalog_repo.list_traits()] == ["Texture", "texture"]

    @pytest.mark.parametrize("rarity", [-1, 101])
    def test_rarity_out_of_range(self, test_db, rarity):
        """Rarity outside 0..100 raises rarity_out_of_range and writes nothing."""
        with pytest.raises(InvalidTraitError) as exc_info:
            _define(base_rarity=rarity)

        assert exc_info.value.reason == "rarity_out_of_range"
        assert catalog_repo.get_trait("texture") is None

    @pytest.mark.parametrize("rarity", [0, 100])
    def test_rarity_bounds_inclusive(self, test_db, rarity):
        """Rarity 0 and 100 are both accepted."""
        assert _define(base_rarity=rarity).base_rarity == rarity

    def test_rejects_negative_cost(self, test_db):
        """A negative cost is invalid input."""
        with pytest.raises(InvalidInputError):
            _define(cost=-1)

    def test_rejects_cost_above_max_amount(self, test_db):
        """A cost past the integer ceiling is invalid input and writes nothing."""
        with pytest.raises(InvalidInputError):
            _define(cost=MAX_AMOUNT + 1)

        assert catalog_repo.get_trait("texture") is None

    def test_accepts_max_amount_cost(self, test_db):
        """A cost equal to the integer ceiling is stored intact."""
        assert _define(cost=MAX_AMOUNT).customization_cost == MAX_AMOUNT

    @pytest.mark.parametrize("name", ["", "x" * 33])
    def test_rejects_bad_names(self, test_db, name):
        """Empty or oversized names are invalid input."""
        with pytest.raises(InvalidInputError):
            _define(name=name)


@pytest.mark.unit
class TestRecordApplication:
    def test_increments_current_applications(self, test_db):
        """record_application adds to the application count."""
        _define()
        with connection_scope(write=True) as conn:
            updated = catalog_repo.record_application(conn.cursor(), "texture", 3)

        assert updated.current_applications == 3
        assert catalog_repo.get_trait("texture").remaining_applications == (
            MAX_TRAIT_APPLICATIONS - 3
        )

    def test_unknown_trait(self, test_db):
        """record_application raises NotFoundError for a missing trait."""
        with pytest.raises(NotFoundError):
            with connection_scope(write=True) as conn:
                catalog_repo.record_application(conn.cursor(), "missing")

    def test_capacity_exceeded_rolls_back(self, test_db):
        """Exceeding the cap raises and keeps the previous count."""
        _define()
        with connection_scope(write=True) as conn:
            catalog_repo.record_application(conn.cursor(), "texture", MAX_TRAIT_APPLICATIONS - 1)

        with pytest.raises(CapacityExceededError):
            with connection_scope(write=True) as conn:
                catalog_repo.record_application(conn.cursor(), "texture", 2)

        assert catalog_repo.get_trait("texture").current_applications == (
            MAX_TRAIT_APPLICATIONS - 1
        )

    def test_lookup_is_pure(self, test_db):
        """lookup returns the same row twice and None for a missing name."""
        _define()
        with connection_scope() as conn:
            first = catalog_repo.lookup(conn.cursor(), "texture")
            second = catalog_repo.lookup(conn.cursor(), "texture")

        assert first == second
        assert catalog_repo.get_trait("nope") is None
