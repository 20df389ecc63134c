"""
Tests for QuantityPolicy.
"""

import pytest

from tagman import TagError
from tagman.models import Direction
from tagman.protocols import BatchInfo, ProductInfo
from tagman.services import QuantityPolicy

UNIT = ProductInfo(id=1, name='Gauze', units_per_package=1)
BOX = ProductInfo(id=2, name='Amoxicillin', units_per_package=20)
BATCH = BatchInfo(id=10, product_id=2, tag='AMOX0001', quantity=40)


@pytest.fixture
def policy():
    return QuantityPolicy(max_quantity=1000)


class TestConfirmationRule:
    """requires_confirmation() / default_quantity()."""

    def test_single_unit_needs_no_confirmation(self, policy):
        assert not policy.requires_confirmation(UNIT)
        assert policy.default_quantity(UNIT) == 1

    def test_zero_units_per_package_treated_as_single(self, policy):
        product = ProductInfo(id=3, name='Legacy', units_per_package=0)

        assert not policy.requires_confirmation(product)
        assert policy.default_quantity(product) == 1

    def test_package_requires_confirmation(self, policy):
        assert policy.requires_confirmation(BOX)

        with pytest.raises(TagError) as exc:
            policy.default_quantity(BOX)

        assert exc.value.code == 'QUANTITY_REQUIRED'
        assert exc.value.data['units_per_package'] == 20


class TestCoerce:
    """coerce()."""

    @pytest.mark.parametrize('value, expected', [(1, 1), (15, 15), ('7', 7), (' 12 ', 12), (3.0, 3)])
    def test_accepts_positive_integers(self, policy, value, expected):
        assert policy.coerce(value) == expected

    @pytest.mark.parametrize('value', [0, -1, '0', '-3', '1.5', 2.5, 'ten', None, True, False, ''])
    def test_rejects_everything_else(self, policy, value):
        with pytest.raises(TagError) as exc:
            policy.coerce(value)

        assert exc.value.code == 'QUANTITY_INVALID'

    def test_rejects_above_cap(self, policy):
        assert policy.coerce(1000) == 1000

        with pytest.raises(TagError) as exc:
            policy.coerce(1001)

        assert exc.value.code == 'QUANTITY_INVALID'
        assert exc.value.data['maximum'] == 1000


class TestValidate:
    """validate()."""

    def test_exit_within_stock(self, policy):
        assert policy.validate(15, BATCH, Direction.EXIT) == 15
        assert policy.validate(40, BATCH, 'exit') == 40

    def test_exit_above_stock(self, policy):
        with pytest.raises(TagError) as exc:
            policy.validate(41, BATCH, Direction.EXIT)

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert exc.value.available == 40
        assert exc.value.requested == 41

    def test_entry_has_no_stock_bound(self, policy):
        assert policy.validate(500, BATCH, Direction.ENTRY) == 500

    def test_invalid_quantity_checked_first(self, policy):
        with pytest.raises(TagError) as exc:
            policy.validate(0, BATCH, Direction.EXIT)

        assert exc.value.code == 'QUANTITY_INVALID'


class TestPackages:
    """packages_for()."""

    def test_single_unit_has_no_package_equivalent(self, policy):
        assert policy.packages_for(UNIT, 5) is None

    @pytest.mark.parametrize('quantity, boxes', [(1, 1), (20, 1), (21, 2), (40, 2), (45, 3)])
    def test_rounds_up(self, policy, quantity, boxes):
        assert policy.packages_for(BOX, quantity) == boxes
