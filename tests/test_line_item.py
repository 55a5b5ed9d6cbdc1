from decimal import Decimal

import pytest

from invoicing.core.errors import ValidationError
from invoicing.models.line_item import LineItem
from invoicing.models.money import Money

from conftest import NOW, usd


def test_create_computes_amount():
    item = LineItem.create("inv-1", "  Consulting  ", 2, usd("50.00"), created_at=NOW)

    assert item.description == "Consulting"
    assert item.quantity == Decimal("2")
    assert item.amount == usd("100.00")
    assert item.invoice_id == "inv-1"


def test_fractional_quantity_rounds_half_up():
    item = LineItem.create("inv-1", "Hours", "1.5", Money(minor_units=333))
    assert item.amount.minor_units == 500


def test_zero_unit_price_is_allowed():
    item = LineItem.create("inv-1", "Courtesy visit", 1, usd("0"))
    assert item.amount.is_zero()


@pytest.mark.parametrize(
    "description, quantity, unit_price, code",
    [
        ("", 1, Money(minor_units=100), "DESCRIPTION_REQUIRED"),
        ("   ", 1, Money(minor_units=100), "DESCRIPTION_REQUIRED"),
        ("x" * 501, 1, Money(minor_units=100), "DESCRIPTION_TOO_LONG"),
        ("Widget", 0, Money(minor_units=100), "INVALID_QUANTITY"),
        ("Widget", "-1", Money(minor_units=100), "INVALID_QUANTITY"),
        ("Widget", 1, Money(minor_units=-1), "INVALID_UNIT_PRICE"),
    ],
)
def test_create_rejects_invalid_input(description, quantity, unit_price, code):
    with pytest.raises(ValidationError) as exc:
        LineItem.create("inv-1", description, quantity, unit_price)
    assert exc.value.code == code


def test_update_returns_new_item_with_same_identity():
    item = LineItem.create("inv-1", "Widget", 1, usd("10.00"), created_at=NOW)

    updated = item.update("Widget XL", 3, usd("12.50"))

    assert updated.id == item.id
    assert updated.created_at == item.created_at
    assert updated.amount == usd("37.50")
    assert item.amount == usd("10.00")


def test_update_validates_like_create():
    item = LineItem.create("inv-1", "Widget", 1, usd("10.00"))
    with pytest.raises(ValidationError):
        item.update("Widget", 0, usd("10.00"))
