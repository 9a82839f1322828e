from __future__ import annotations

import secrets
from decimal import Decimal
from html import escape
from typing import Iterable, Mapping

from sharetab.db.models import Trip
from sharetab.services.money import format_money
from sharetab.services.names import format_name_for_display

ID_CHARSET = "abcdefghijklmnopqrstuvwxyz0123456789"
CODE_CHARSET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
ID_LENGTH = 20
CODE_LENGTH = 6


def _random_string(charset: str, length: int) -> str:
    return "".join(secrets.choice(charset) for _ in range(length))


def generate_id() -> str:
    return _random_string(ID_CHARSET, ID_LENGTH)


def generate_code() -> str:
    return _random_string(CODE_CHARSET, CODE_LENGTH)


def normalize_code(code: str) -> str:
    return code.strip().upper()


def format_trip_card(trip: Trip) -> str:
    lines = [f"<b>{escape(trip.name)}</b>", f"Code: <code>{trip.code}</code>", "", "Participants:"]
    if not trip.participants:
        lines.append("• nobody yet")
    for participant in trip.participants:
        lines.append(f"• {escape(format_name_for_display(participant))}")
    return "\n".join(lines)


def format_balances(balances: Mapping[str, Decimal], currency: str) -> str:
    lines = ["Balances:"]
    if not balances:
        lines.append("• no expenses yet")
    for person, balance in balances.items():
        label = escape(format_name_for_display(person))
        if balance > 0:
            lines.append(f"• {label} is owed {format_money(balance, currency)}")
        elif balance < 0:
            lines.append(f"• {label} owes {format_money(-balance, currency)}")
        else:
            lines.append(f"• {label} is settled")
    return "\n".join(lines)


def format_transfers(transfers: Iterable, currency: str) -> str:
    lines = ["To settle up:"]
    for t in transfers:
        lines.append(
            f"• {escape(format_name_for_display(t.from_person))} → "
            f"{escape(format_name_for_display(t.to_person))}: {format_money(t.amount, currency)}"
        )
    if len(lines) == 1:
        lines.append("• nothing to settle")
    return "\n".join(lines)


def format_expenses(expenses: Iterable, currency: str) -> str:
    lines = ["Expenses:"]
    for expense in expenses:
        payer = escape(format_name_for_display(expense.paid_by))
        kind = "equal split" if expense.split_type.value == "equal" else f"{len(expense.items)} items"
        lines.append(
            f"• <code>{expense.id}</code> {escape(expense.description)}: "
            f"{format_money(expense.amount, currency)} ({kind}, paid by {payer})"
        )
    if len(lines) == 1:
        lines.append("• no expenses yet")
    return "\n".join(lines)


def format_payments(payments: Iterable, currency: str) -> str:
    lines = ["Payments:"]
    for payment in payments:
        line = (
            f"• #{payment.id} {escape(format_name_for_display(payment.from_person))} → "
            f"{escape(format_name_for_display(payment.to_person))}: {format_money(payment.amount, currency)}"
        )
        if payment.description:
            line += f" ({escape(payment.description)})"
        lines.append(line)
    if len(lines) == 1:
        lines.append("• no payments recorded")
    return "\n".join(lines)


def format_bill(bill, currency: str) -> str:
    lines = ["🧾 <b>Bill</b>", f"Subtotal: {format_money(bill.subtotal, currency)}"]
    if bill.tax:
        lines.append(f"Tax: {format_money(bill.tax, currency)}")
    if bill.service_charge:
        lines.append(f"Service: {format_money(bill.service_charge, currency)}")
    if bill.total_discount:
        lines.append(f"Discount: -{format_money(bill.total_discount, currency)}")
    lines.append(f"<b>Total: {format_money(bill.amount, currency)}</b>")
    lines.append("")
    for person, breakdown in bill.per_person_breakdown.items():
        lines.append(f"• {escape(person)}: <b>{format_money(breakdown.total, currency)}</b>")
        details = [f"items {format_money(breakdown.subtotal)}"]
        if breakdown.tax:
            details.append(f"tax {format_money(breakdown.tax)}")
        if breakdown.service_charge:
            details.append(f"service {format_money(breakdown.service_charge)}")
        if breakdown.discount:
            details.append(f"discount -{format_money(breakdown.discount)}")
        lines.append("   " + ", ".join(details))
    return "\n".join(lines)
