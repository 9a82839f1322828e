from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Sequence

from sharetab.logging import get_logger
from sharetab.services.expenses import Item, validate_items
from sharetab.services.money import ZERO, Numeric, divide_money, money_to_float, round_money, to_money
from sharetab.services.names import format_name_keys, unique_names
from sharetab.services.validation import validate_extras

log = get_logger(__name__)


@dataclass(slots=True)
class PersonChargeBreakdown:
    subtotal: Decimal = ZERO
    tax: Decimal = ZERO
    service_charge: Decimal = ZERO
    discount: Decimal = ZERO
    total: Decimal = ZERO

    def rounded(self) -> PersonChargeBreakdown:
        return PersonChargeBreakdown(
            subtotal=round_money(self.subtotal),
            tax=round_money(self.tax),
            service_charge=round_money(self.service_charge),
            discount=round_money(self.discount),
            total=round_money(self.total),
        )

    def to_payload(self) -> dict[str, float]:
        return {
            "subtotal": money_to_float(self.subtotal),
            "tax": money_to_float(self.tax),
            "serviceCharge": money_to_float(self.service_charge),
            "discount": money_to_float(self.discount),
            "total": money_to_float(self.total),
        }


@dataclass(slots=True)
class BillCalculation:
    amount: Decimal
    subtotal: Decimal
    tax: Decimal
    service_charge: Decimal
    total_discount: Decimal
    per_person_charges: dict[str, Decimal] = field(default_factory=dict)
    per_person_breakdown: dict[str, PersonChargeBreakdown] = field(default_factory=dict)

    def to_payload(self) -> dict:
        return {
            "amount": money_to_float(self.amount),
            "subtotal": money_to_float(self.subtotal),
            "tax": money_to_float(self.tax),
            "serviceCharge": money_to_float(self.service_charge),
            "totalDiscount": money_to_float(self.total_discount),
            "perPersonCharges": {p: money_to_float(v) for p, v in self.per_person_charges.items()},
            "perPersonBreakdown": {p: b.to_payload() for p, b in self.per_person_breakdown.items()},
        }


def validate_bill(items: Sequence[Item], tax: Decimal, service_charge: Decimal, total_discount: Decimal) -> None:
    validate_items(items)
    validate_extras(tax, service_charge, total_discount)


def extract_participants(items: Sequence[Item]) -> list[str]:
    return unique_names(consumer for item in items for consumer in item.consumers)


def allocate_charges(
    items: Sequence[Item],
    tax: Numeric,
    service_charge: Numeric,
    total_discount: Numeric,
    participants: Sequence[str],
) -> tuple[dict[str, Decimal], dict[str, PersonChargeBreakdown]]:
    """Split one itemized bill between its consumers.

    Each item is divided evenly between its consumers (rounded per share,
    without passing the leftover cent to anyone). Tax, service charge and the
    bill-wide discount are then spread in proportion to each person's
    subtotal. When every item is free the extras are divided evenly instead.

    Returns ``(per_person_charges, per_person_breakdown)`` keyed by the names
    as given; callers normalize names beforehand.
    """
    tax = to_money(tax)
    service_charge = to_money(service_charge)
    total_discount = to_money(total_discount)
    validate_bill(items, tax, service_charge, total_discount)

    breakdown: dict[str, PersonChargeBreakdown] = {
        person: PersonChargeBreakdown() for person in participants
    }

    for item in items:
        item_amount = round_money(item.unit_price * item.quantity - item.item_discount)
        share = divide_money(item_amount, len(item.consumers))
        for consumer in item.consumers:
            person = breakdown.setdefault(consumer, PersonChargeBreakdown())
            person.subtotal += share
            person.total += share

    total_subtotal = sum((b.subtotal for b in breakdown.values()), ZERO)

    if breakdown and total_subtotal > 0:
        for person in breakdown.values():
            proportion = person.subtotal / total_subtotal
            person.tax = round_money(tax * proportion)
            person.service_charge = round_money(service_charge * proportion)
            person.discount = round_money(total_discount * proportion)
            person.total = round_money(
                person.subtotal + person.tax + person.service_charge - person.discount
            )
    elif breakdown:
        count = len(breakdown)
        extra_per_person = divide_money(tax + service_charge - total_discount, count)
        for person in breakdown.values():
            person.subtotal = ZERO
            person.tax = divide_money(tax, count)
            person.service_charge = divide_money(service_charge, count)
            person.discount = divide_money(total_discount, count)
            person.total = extra_per_person

    rounded = {name: person.rounded() for name, person in breakdown.items()}
    charges = {name: person.total for name, person in rounded.items()}
    return charges, rounded


def calculate_single_bill(
    items: Sequence[Item],
    tax: Numeric = 0,
    service_charge: Numeric = 0,
    total_discount: Numeric = 0,
) -> BillCalculation:
    tax = to_money(tax)
    service_charge = to_money(service_charge)
    total_discount = to_money(total_discount)
    validate_bill(items, tax, service_charge, total_discount)

    normalized = [item.normalized() for item in items]
    participants = extract_participants(normalized)
    charges, breakdown = allocate_charges(normalized, tax, service_charge, total_discount, participants)

    subtotal = sum(
        (item.unit_price * item.quantity - item.item_discount for item in normalized),
        ZERO,
    )
    amount = subtotal + tax + service_charge - total_discount

    log.debug(
        "bill.calculated",
        items=len(normalized),
        participants=len(participants),
        amount=str(round_money(amount)),
    )

    return BillCalculation(
        amount=round_money(amount),
        subtotal=round_money(subtotal),
        tax=round_money(tax),
        service_charge=round_money(service_charge),
        total_discount=round_money(total_discount),
        per_person_charges=format_name_keys(charges),
        per_person_breakdown=format_name_keys(breakdown),
    )
