from decimal import Decimal

import pytest

from backend.billing import BillableItem, CheckoutSelection, InvalidAmount, ItemKind


def _invoice(item_id, amount):
    return BillableItem(id=item_id, kind=ItemKind.INVOICE, description=f"INV-{item_id}", unit_amount=amount)


def test_total_is_exact_to_the_cent():
    # Arrange
    selection = CheckoutSelection()
    # Act
    for i, amount in enumerate(["0.10", "0.20", "0.30"], start=1):
        selection.add(_invoice(i, amount))
    # Assert: pas de dérive flottante (0.1 + 0.2 + 0.3)
    assert selection.total_amount == Decimal("0.60")


def test_float_amounts_keep_their_written_value():
    selection = CheckoutSelection.of([_invoice(1, 0.1), _invoice(2, 0.2)])
    assert selection.total_amount == Decimal("0.30")


def test_add_then_remove_restores_previous_total():
    selection = CheckoutSelection.of([_invoice(1, "99.00"), _invoice(2, "149.00")])
    before = selection.total_amount

    selection.add(_invoice(3, "299.99"))
    assert selection.total_amount == Decimal("548.99")
    selection.remove(ItemKind.INVOICE, 3)

    assert selection.total_amount == before == Decimal("248.00")


def test_items_are_unique_by_kind_and_id():
    selection = CheckoutSelection()
    assert selection.add(_invoice(1, "10")) is True
    assert selection.add(_invoice(1, "10")) is False
    # même id, autre type: élément distinct
    selection.add(BillableItem(id=1, kind=ItemKind.SERVICE, description="Web Design", unit_amount=399))

    assert len(selection) == 2
    assert selection.total_amount == Decimal("409.00")


def test_toggle_selects_then_unselects():
    selection = CheckoutSelection()
    item = _invoice(2, "149.00")

    assert selection.toggle(item) is True
    assert item in selection
    assert selection.toggle(item) is False
    assert item not in selection
    assert selection.total_amount == Decimal("0.00")


def test_clear_resets_total():
    selection = CheckoutSelection.of([_invoice(1, "5"), _invoice(2, "6")])
    selection.clear()
    assert len(selection) == 0
    assert selection.total_amount == Decimal("0.00")


def test_remove_unknown_item_is_noop():
    selection = CheckoutSelection.of([_invoice(1, "5")])
    assert selection.remove(ItemKind.INVOICE, 42) is None
    assert selection.total_amount == Decimal("5.00")


@pytest.mark.parametrize("amount", [0, "0.00", -1, "-12.50"])
def test_billable_item_rejects_non_positive_amount(amount):
    with pytest.raises(InvalidAmount):
        _invoice(1, amount)


@pytest.mark.parametrize("amount", [None, True, "abc", "NaN", float("inf")])
def test_billable_item_rejects_non_numeric_amount(amount):
    with pytest.raises(InvalidAmount):
        _invoice(1, amount)


def test_from_service_uses_catalog_price():
    service = {"id": 3, "name": "Branding", "price": 799}
    item = BillableItem.from_service(service)

    assert item.kind is ItemKind.SERVICE
    assert item.description == "Branding"
    assert item.unit_amount == Decimal("799")


def test_from_invoice_builds_description_from_number():
    invoice = {"id": 2, "invoiceNumber": "INV-2025-002", "description": "Social Media Management - Mar 2025", "amount": 149.0}
    item = BillableItem.from_invoice(invoice)

    assert item.key == (ItemKind.INVOICE, 2)
    assert item.description == "INV-2025-002 - Social Media Management - Mar 2025"
    assert item.unit_amount == Decimal("149.0")


def test_ids_of_and_kinds():
    selection = CheckoutSelection.of([
        _invoice(4, "1"),
        _invoice(2, "1"),
        BillableItem(id=7, kind=ItemKind.SUBSCRIPTION, description="Monthly", unit_amount="9.99"),
    ])
    assert selection.ids_of(ItemKind.INVOICE) == [4, 2]
    assert selection.kinds() == {ItemKind.INVOICE, ItemKind.SUBSCRIPTION}
