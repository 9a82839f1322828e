from decimal import Decimal

import pytest

from sharetab.services.validation import ValidationError
from sharetab.utils.parse import (
    body_lines,
    parse_amount,
    parse_extras,
    parse_item_line,
    parse_item_lines,
    parse_people,
    split_args,
)


def test_split_args():
    assert split_args("/pay ABC123 | alice | bob | 10", "pay") == ["ABC123", "alice", "bob", "10"]
    assert split_args("/settle@sharetab_bot abc123", "settle") == ["abc123"]
    assert split_args("/trip", "trip") == []


def test_split_args_ignores_body_lines():
    text = "/additems ABC123 | Dinner | tax=5\nPizza | 10 | alice | alice"

    assert split_args(text, "additems") == ["ABC123", "Dinner", "tax=5"]
    assert body_lines(text) == ["Pizza | 10 | alice | alice"]


def test_parse_amount():
    assert parse_amount("12.5") == Decimal("12.5")
    assert parse_amount("1,5") == Decimal("1.5")
    assert parse_amount("1,234.50") == Decimal("1234.50")
    assert parse_amount("2_000") == Decimal("2000")


@pytest.mark.parametrize("value", ["abc", "", "nan"])
def test_parse_amount_invalid(value):
    with pytest.raises(ValidationError, match="Invalid amount"):
        parse_amount(value)


def test_parse_people():
    assert parse_people("alice, bob; carol,") == ["alice", "bob", "carol"]


def test_parse_extras_positional_and_named():
    assert parse_extras(["10", "5"]) == {"tax": Decimal("10"), "service_charge": Decimal("5")}
    assert parse_extras(["", "", "3"]) == {"total_discount": Decimal("3")}
    assert parse_extras(["tax=10 disc=2"]) == {"tax": Decimal("10"), "total_discount": Decimal("2")}


def test_parse_extras_errors():
    with pytest.raises(ValidationError, match="Unknown charge: tip"):
        parse_extras(["tip=3"])
    with pytest.raises(ValidationError, match="Unexpected argument: 4"):
        parse_extras(["1", "2", "3", "4"])


def test_parse_item_line():
    item = parse_item_line("Cola | 5 x2 -1 | Bob | bob, alice")

    assert item.description == "Cola"
    assert item.unit_price == Decimal("5")
    assert item.quantity == 2
    assert item.item_discount == Decimal("1")
    assert item.amount == Decimal("9.00")
    assert item.paid_by == "Bob"
    assert item.consumers == ["bob", "alice"]


def test_parse_item_lines_with_extras_line():
    items, extras = parse_item_lines(["Pizza | 100 | alice | alice, bob", "tax=10 service=5"])

    assert len(items) == 1
    assert items[0].amount == Decimal("100.00")
    assert extras == {"tax": Decimal("10"), "service_charge": Decimal("5")}


def test_parse_item_lines_reports_line():
    with pytest.raises(ValidationError, match="Line 2: Invalid price: abc"):
        parse_item_lines(["Pizza | 100 | alice | alice", "Salad | abc | bob | bob"])
    with pytest.raises(ValidationError, match="Line 1: Item format"):
        parse_item_lines(["Pizza | 100 | alice"])
