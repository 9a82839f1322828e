from decimal import Decimal

import pytest

from sharetab.services.balances import aggregate_balances, apply_payments, find_primary_payer
from sharetab.services.expenses import EqualExpense, Item, ItemizedExpense, new_equal_expense, new_itemized_expense
from sharetab.services.payments import PaymentDraft
from sharetab.services.validation import ValidationError


def test_equal_split_balances():
    expense = new_equal_expense("Dinner", 90, "a", ["a", "b", "c"])

    balances = aggregate_balances([expense])

    assert balances == {"a": Decimal("60.00"), "b": Decimal("-30.00"), "c": Decimal("-30.00")}
    assert sum(balances.values()) == 0


def test_equal_split_includes_extras():
    expense = new_equal_expense("Taxi", 40, "a", ["a", "b"], tax=4, total_discount=2)

    balances = aggregate_balances([expense])

    assert balances == {"a": Decimal("21.00"), "b": Decimal("-21.00")}


def test_equal_split_remainder_cent_stays_with_payer():
    expense = new_equal_expense("Museum", 100, "a", ["a", "b", "c"])

    balances = aggregate_balances([expense])

    assert balances == {"a": Decimal("66.67"), "b": Decimal("-33.33"), "c": Decimal("-33.33")}
    assert sum(balances.values()) == Decimal("0.01")


def test_itemized_balances_with_extras():
    expense = new_itemized_expense(
        "Dinner",
        [
            Item(description="Steak", unit_price=Decimal("30"), quantity=1, paid_by="alice", consumers=["alice"]),
            Item(description="Salad", unit_price=Decimal("10"), quantity=1, paid_by="bob", consumers=["bob", "carol"]),
        ],
        tax=10,
    )

    balances = aggregate_balances([expense])

    assert balances == {
        "alice": Decimal("2.50"),
        "bob": Decimal("3.75"),
        "carol": Decimal("-6.25"),
    }
    assert sum(balances.values()) == 0


def test_itemized_extras_residual_goes_to_last_consumer():
    expense = new_itemized_expense(
        "Hotpot",
        [Item(description="Pot", unit_price=Decimal("30"), quantity=1, paid_by="a", consumers=["a", "b", "c"])],
        service_charge=10,
    )

    balances = aggregate_balances([expense])

    assert balances == {"a": Decimal("26.67"), "b": Decimal("-13.33"), "c": Decimal("-13.34")}
    assert sum(balances.values()) == 0


def test_itemized_without_extras_skips_reconciliation():
    expense = new_itemized_expense(
        "Snacks",
        [Item(description="Chips", unit_price=Decimal("6"), quantity=1, paid_by="a", consumers=["a", "b"])],
    )

    assert aggregate_balances([expense]) == {"a": Decimal("3.00"), "b": Decimal("-3.00")}


def test_primary_payer_is_largest_item_payer():
    expense = new_itemized_expense(
        "Market",
        [
            Item(description="Bread", unit_price=Decimal("3"), quantity=1, paid_by="alice", consumers=["alice"]),
            Item(description="Cheese", unit_price=Decimal("12"), quantity=1, paid_by="bob", consumers=["bob"]),
        ],
    )

    assert expense.paid_by == "alice"
    assert find_primary_payer(expense) == "bob"


def test_primary_payer_tie_keeps_first_payer():
    expense = new_itemized_expense(
        "Lunch",
        [
            Item(description="A", unit_price=Decimal("10"), quantity=1, paid_by="bob", consumers=["bob"]),
            Item(description="B", unit_price=Decimal("10"), quantity=1, paid_by="alice", consumers=["alice"]),
        ],
    )

    assert find_primary_payer(expense) == "bob"


def test_primary_payer_falls_back_to_expense_payer():
    expense = ItemizedExpense(
        description="Free water",
        items=[Item(description="Water", unit_price=Decimal("0"), quantity=1, paid_by="bob", consumers=["bob"])],
        paid_by="carol",
    )

    assert find_primary_payer(expense) == "carol"


def test_aggregate_reports_invalid_expense_position():
    valid = new_equal_expense("Dinner", 90, "a", ["a", "b"])
    broken = EqualExpense(description="Taxi", subtotal=Decimal("10"), paid_by="a", split_among=[])

    with pytest.raises(ValidationError, match="Expense 2: splitAmong cannot be empty"):
        aggregate_balances([valid, broken])


def test_aggregate_requires_payer():
    broken = EqualExpense(description="Taxi", subtotal=Decimal("10"), paid_by=" ", split_among=["a"])

    with pytest.raises(ValidationError, match="Expense 1: paidBy is required"):
        aggregate_balances([broken])


def test_aggregate_empty():
    assert aggregate_balances([]) == {}


def test_apply_payments_returns_new_map():
    balances = {"a": Decimal("60.00"), "b": Decimal("-30.00"), "c": Decimal("-30.00")}

    adjusted = apply_payments(balances, [PaymentDraft(from_person="B", to_person="a", amount=Decimal("30"))])

    assert adjusted == {"a": Decimal("30.00"), "b": Decimal("0.00"), "c": Decimal("-30.00")}
    assert balances["a"] == Decimal("60.00")


def test_aggregate_accepts_float_amounts():
    equal = EqualExpense(description="Taxi", subtotal=90.5, paid_by="a", split_among=["a", "b"])
    itemized = ItemizedExpense(
        description="Hotpot",
        items=[Item(description="Pot", unit_price=Decimal("10"), quantity=1, paid_by="a", consumers=["a", "b"])],
        tax=2.5,
    )

    assert equal.subtotal == Decimal("90.5")
    assert itemized.tax == Decimal("2.5")
    assert aggregate_balances([equal]) == {"a": Decimal("45.25"), "b": Decimal("-45.25")}
    assert aggregate_balances([itemized]) == {"a": Decimal("6.25"), "b": Decimal("-6.25")}


def test_aggregate_rejects_infinite_subtotal():
    broken = EqualExpense(description="Taxi", subtotal=Decimal("Infinity"), paid_by="a", split_among=["a"])

    with pytest.raises(ValidationError, match="Expense 1: subtotal must be a finite number"):
        aggregate_balances([broken])


def test_aggregate_and_payments_share_normalized_names():
    expense = EqualExpense(
        description="Dinner",
        subtotal=Decimal("90"),
        paid_by="Alice",
        split_among=["alice", "Bob ", "carol"],
    )

    balances = aggregate_balances([expense])
    assert balances == {"alice": Decimal("60.00"), "bob": Decimal("-30.00"), "carol": Decimal("-30.00")}

    adjusted = apply_payments(balances, [PaymentDraft(from_person="BOB", to_person="alice", amount=Decimal("30"))])
    assert adjusted == {"alice": Decimal("30.00"), "bob": Decimal("0.00"), "carol": Decimal("-30.00")}


def test_repeated_consumer_takes_two_shares():
    expense = new_itemized_expense(
        "Pizza",
        [Item(description="Pizza", unit_price=Decimal("30"), quantity=1, paid_by="b", consumers=["a", "A", "b"])],
    )

    assert expense.items[0].consumers == ["a", "a", "b"]
    assert aggregate_balances([expense]) == {"b": Decimal("20.00"), "a": Decimal("-20.00")}
