from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Mapping, Protocol, Sequence

from sharetab.logging import get_logger
from sharetab.services.expenses import EqualExpense, Expense, ItemizedExpense, validate_expenses
from sharetab.services.money import ZERO, divide_money, round_money
from sharetab.services.names import normalize_name

log = get_logger(__name__)


class PaymentLike(Protocol):
    from_person: str
    to_person: str
    amount: Decimal


def _credit(balances: dict[str, Decimal], person: str, amount: Decimal) -> None:
    person = normalize_name(person)
    balances[person] = balances.get(person, ZERO) + amount


def _apply_equal_expense(expense: EqualExpense, balances: dict[str, Decimal]) -> None:
    amount = expense.amount
    _credit(balances, expense.paid_by, amount)

    share = divide_money(amount, len(expense.split_among))
    for person in expense.split_among:
        _credit(balances, person, -share)


def find_primary_payer(expense: ItemizedExpense) -> str:
    """Item payer with the largest paid total; the first one wins a tie."""
    paid: dict[str, Decimal] = {}
    for item in expense.items:
        payer = normalize_name(item.paid_by)
        paid[payer] = paid.get(payer, ZERO) + item.amount

    primary = ""
    highest = ZERO
    for payer, amount in paid.items():
        if amount > highest:
            highest = amount
            primary = payer

    return primary or expense.paid_by


def _apply_itemized_expense(expense: ItemizedExpense, balances: dict[str, Decimal]) -> None:
    extra_charges = expense.tax + expense.service_charge - expense.total_discount

    item_totals: dict[str, Decimal] = {}
    total_item_amount = ZERO

    for item in expense.items:
        _credit(balances, item.paid_by, item.amount)

        share = divide_money(item.amount, len(item.consumers))
        for consumer in item.consumers:
            _credit(balances, consumer, -share)
            person = normalize_name(consumer)
            item_totals[person] = item_totals.get(person, ZERO) + share

        total_item_amount += item.amount

    if extra_charges == 0 or total_item_amount <= 0:
        return

    _credit(balances, find_primary_payer(expense), extra_charges)

    allocated = ZERO
    last_person: str | None = None
    for person, item_total in item_totals.items():
        extra_share = round_money(extra_charges * (item_total / total_item_amount))
        _credit(balances, person, -extra_share)
        allocated += extra_share
        last_person = person

    rounding_diff = round_money(extra_charges - allocated)
    if rounding_diff != 0 and last_person is not None:
        _credit(balances, last_person, -rounding_diff)


def aggregate_balances(expenses: Sequence[Expense]) -> dict[str, Decimal]:
    """Net position per person: positive is owed money, negative owes money.

    Keys are normalized names, so "Alice" and "alice " are one person.
    """
    validate_expenses(expenses)

    balances: dict[str, Decimal] = {}
    for expense in expenses:
        if isinstance(expense, EqualExpense):
            _apply_equal_expense(expense, balances)
        else:
            _apply_itemized_expense(expense, balances)

    result = {person: round_money(balance) for person, balance in balances.items()}
    log.debug("balances.aggregated", expenses=len(expenses), people=len(result))
    return result


def apply_payments(balances: Mapping[str, Decimal], payments: Iterable[PaymentLike]) -> dict[str, Decimal]:
    """Fold recorded payments into a balance map without touching the input."""
    adjusted: dict[str, Decimal] = {}
    for person, balance in balances.items():
        _credit(adjusted, person, balance)
    for payment in payments:
        amount = round_money(payment.amount)
        _credit(adjusted, payment.from_person, amount)
        _credit(adjusted, payment.to_person, -amount)
    return {person: round_money(balance) for person, balance in adjusted.items()}
