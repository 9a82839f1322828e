from decimal import Decimal

import pytest

from sharetab.services.expenses import (
    Item,
    SplitType,
    expense_participants,
    new_equal_expense,
    new_itemized_expense,
)
from sharetab.services.validation import ValidationError


def test_new_equal_expense_normalizes_names():
    expense = new_equal_expense(" Dinner ", "90", " Alice", ["alice", "BOB", "Bob "], tax=9)

    assert expense.split_type is SplitType.EQUAL
    assert expense.description == "Dinner"
    assert expense.paid_by == "alice"
    assert expense.split_among == ["alice", "bob"]
    assert expense.amount == Decimal("99.00")
    assert expense.creation_time > 0


def test_new_equal_expense_rejects_bad_input():
    with pytest.raises(ValidationError, match="subtotal cannot be negative"):
        new_equal_expense("Dinner", -1, "a", ["a"])
    with pytest.raises(ValidationError, match="splitAmong cannot be empty"):
        new_equal_expense("Dinner", 10, "a", [])
    with pytest.raises(ValidationError, match="description is required"):
        new_equal_expense(" ", 10, "a", ["a"])
    with pytest.raises(ValidationError, match="service charge cannot be negative"):
        new_equal_expense("Dinner", 10, "a", ["a"], service_charge=-2)


def test_new_itemized_expense_recomputes_amounts():
    items = [
        Item(
            description=" Beer ",
            unit_price=Decimal("4.50"),
            quantity=3,
            item_discount=Decimal("1.50"),
            paid_by="Bob",
            consumers=["Alice", "bob"],
            amount=Decimal("999"),
        ),
        Item(description="Water", unit_price=Decimal("0"), quantity=1, paid_by="alice", consumers=["alice"]),
    ]

    expense = new_itemized_expense("Bar", items, tax=1.2)

    assert expense.split_type is SplitType.ITEMS
    assert expense.paid_by == "bob"
    assert expense.items[0].description == "Beer"
    assert expense.items[0].amount == Decimal("12.00")
    assert expense.items[0].consumers == ["alice", "bob"]
    assert expense.subtotal == Decimal("12.00")
    assert expense.tax == Decimal("1.20")
    assert expense.amount == Decimal("13.20")


def test_new_itemized_expense_reports_item_position():
    items = [
        Item(description="Beer", unit_price=Decimal("4"), quantity=1, paid_by="bob", consumers=["bob"]),
        Item(description="Chips", unit_price=Decimal("2"), quantity=1, paid_by="", consumers=["bob"]),
    ]

    with pytest.raises(ValidationError, match="Item 2: item paidBy is required"):
        new_itemized_expense("Bar", items)


def test_new_itemized_expense_rejects_negative_price():
    items = [Item(description="Refund", unit_price=Decimal("-4"), quantity=1, paid_by="bob", consumers=["bob"])]

    with pytest.raises(ValidationError, match="Item 1: item price cannot be negative"):
        new_itemized_expense("Bar", items)


def test_expense_participants():
    equal = new_equal_expense("Taxi", 20, "carol", ["alice", "carol"])
    itemized = new_itemized_expense(
        "Bar",
        [
            Item(description="Beer", unit_price=Decimal("4"), quantity=1, paid_by="dave", consumers=["bob"]),
            Item(description="Wine", unit_price=Decimal("6"), quantity=1, paid_by="bob", consumers=["erin", "dave"]),
        ],
    )

    assert expense_participants(equal) == ["carol", "alice"]
    assert expense_participants(itemized) == ["dave", "bob", "erin"]
