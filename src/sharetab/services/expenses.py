from __future__ import annotations

import time
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Iterable, Sequence, Union

from sharetab.services.money import ZERO, Numeric, round_money, to_money
from sharetab.services.names import normalize_name, normalize_names, unique_names
from sharetab.services.validation import (
    ValidationError,
    require_names,
    require_non_negative,
    require_not_empty,
    require_positive,
    require_text,
    validate_extras,
    with_context,
)


class SplitType(str, Enum):
    EQUAL = "equal"
    ITEMS = "items"


@dataclass(slots=True)
class Item:
    description: str
    unit_price: Decimal
    quantity: int
    paid_by: str
    consumers: list[str]
    item_discount: Decimal = ZERO
    amount: Decimal | None = None

    def __post_init__(self) -> None:
        self.unit_price = to_money(self.unit_price)
        self.item_discount = to_money(self.item_discount)
        if self.amount is not None:
            self.amount = round_money(self.amount)
        elif self.unit_price.is_finite() and self.item_discount.is_finite():
            self.amount = round_money(self.unit_price * self.quantity - self.item_discount)
        else:
            # validate_item rejects it before anything is computed
            self.amount = Decimal("NaN")

    def normalized(self) -> Item:
        # repeated consumers stay, each one takes a share
        return replace(
            self,
            paid_by=normalize_name(self.paid_by),
            consumers=normalize_names(self.consumers),
        )


@dataclass(slots=True)
class EqualExpense:
    split_type: ClassVar[SplitType] = SplitType.EQUAL

    description: str
    subtotal: Decimal
    paid_by: str
    split_among: list[str]
    tax: Decimal = ZERO
    service_charge: Decimal = ZERO
    total_discount: Decimal = ZERO
    id: str | None = None
    creation_time: int = 0

    def __post_init__(self) -> None:
        self.subtotal = to_money(self.subtotal)
        _coerce_extras(self)

    @property
    def amount(self) -> Decimal:
        return round_money(self.subtotal + self.tax + self.service_charge - self.total_discount)


@dataclass(slots=True)
class ItemizedExpense:
    split_type: ClassVar[SplitType] = SplitType.ITEMS

    description: str
    items: list[Item]
    paid_by: str = ""
    tax: Decimal = ZERO
    service_charge: Decimal = ZERO
    total_discount: Decimal = ZERO
    subtotal: Decimal | None = None
    id: str | None = None
    creation_time: int = 0

    def __post_init__(self) -> None:
        if self.subtotal is None:
            self.subtotal = round_money(sum((item.amount for item in self.items), ZERO))
        else:
            self.subtotal = to_money(self.subtotal)
        _coerce_extras(self)

    @property
    def amount(self) -> Decimal:
        return round_money(self.subtotal + self.tax + self.service_charge - self.total_discount)


Expense = Union[EqualExpense, ItemizedExpense]


def _coerce_extras(expense: Expense) -> None:
    expense.tax = to_money(expense.tax)
    expense.service_charge = to_money(expense.service_charge)
    expense.total_discount = to_money(expense.total_discount)


def _now_ms() -> int:
    return int(time.time() * 1000)


def validate_item(item: Item, *, allow_free: bool = False) -> None:
    require_text(item.description, "item description")
    if allow_free:
        require_non_negative(item.unit_price, "item price")
    else:
        require_positive(item.unit_price, "item price")
    if item.quantity <= 0:
        raise ValidationError("item quantity must be positive")
    require_non_negative(item.item_discount, "item discount")
    require_text(item.paid_by, "item paidBy")
    require_not_empty(item.consumers, "item consumers")
    require_names(item.consumers, "consumer")


def validate_items(items: Sequence[Item], *, allow_free: bool = False) -> None:
    require_not_empty(items, "items")
    for index, item in enumerate(items, start=1):
        try:
            validate_item(item, allow_free=allow_free)
        except ValidationError as exc:
            raise with_context(f"Item {index}", exc) from exc


def validate_expense(expense: Expense) -> None:
    validate_extras(expense.tax, expense.service_charge, expense.total_discount)
    if isinstance(expense, EqualExpense):
        require_non_negative(expense.subtotal, "subtotal")
        require_text(expense.paid_by, "paidBy")
        require_not_empty(expense.split_among, "splitAmong")
        require_names(expense.split_among)
        return
    validate_items(expense.items, allow_free=True)


def validate_expenses(expenses: Iterable[Expense]) -> None:
    for index, expense in enumerate(expenses, start=1):
        try:
            validate_expense(expense)
        except ValidationError as exc:
            raise with_context(f"Expense {index}", exc) from exc


def new_equal_expense(
    description: str,
    subtotal: Numeric,
    paid_by: str,
    split_among: Iterable[str],
    tax: Numeric = 0,
    service_charge: Numeric = 0,
    total_discount: Numeric = 0,
) -> EqualExpense:
    require_text(description, "description")
    expense = EqualExpense(
        description=description.strip(),
        subtotal=round_money(subtotal),
        paid_by=normalize_name(paid_by),
        split_among=unique_names(split_among),
        tax=round_money(tax),
        service_charge=round_money(service_charge),
        total_discount=round_money(total_discount),
        creation_time=_now_ms(),
    )
    validate_expense(expense)
    return expense


def new_itemized_expense(
    description: str,
    items: Sequence[Item],
    tax: Numeric = 0,
    service_charge: Numeric = 0,
    total_discount: Numeric = 0,
) -> ItemizedExpense:
    """Build an itemized expense from raw items.

    Item amounts are recomputed from price, quantity and discount, names are
    normalized, and the first item payer becomes the expense's ``paid_by``.
    """
    require_text(description, "description")
    validate_items(items, allow_free=True)
    validate_extras(to_money(tax), to_money(service_charge), to_money(total_discount))

    # amount=None makes __post_init__ recompute it
    normalized = [
        replace(item.normalized(), description=item.description.strip(), amount=None)
        for item in items
    ]
    return ItemizedExpense(
        description=description.strip(),
        items=normalized,
        paid_by=normalized[0].paid_by,
        tax=round_money(tax),
        service_charge=round_money(service_charge),
        total_discount=round_money(total_discount),
        creation_time=_now_ms(),
    )


def expense_participants(expense: Expense) -> list[str]:
    if isinstance(expense, EqualExpense):
        return unique_names([expense.paid_by, *expense.split_among])
    names: list[str] = []
    for item in expense.items:
        names.append(item.paid_by)
        names.extend(item.consumers)
    return unique_names(names)
