from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List, Mapping, Protocol, Sequence

from sharetab.logging import get_logger
from sharetab.services.balances import PaymentLike, aggregate_balances, apply_payments
from sharetab.services.expenses import Expense
from sharetab.services.money import ZERO, money_to_float, round_money
from sharetab.services.names import format_name_for_display, format_name_keys

log = get_logger(__name__)


class Repository(Protocol):
    async def get_expenses_for_trip(self, trip_id: str) -> list[Expense]: ...

    async def get_payments_for_trip(self, trip_id: str) -> list[PaymentLike]: ...


@dataclass(slots=True)
class Settlement:
    from_person: str
    to_person: str
    amount: Decimal

    def to_payload(self) -> dict:
        return {
            "from": self.from_person,
            "to": self.to_person,
            "amount": money_to_float(self.amount),
        }


@dataclass(slots=True)
class SettlementResult:
    settlements: list[Settlement] = field(default_factory=list)
    individual_balances: dict[str, Decimal] = field(default_factory=dict)

    def for_display(self) -> SettlementResult:
        return SettlementResult(
            settlements=[
                Settlement(
                    from_person=format_name_for_display(s.from_person),
                    to_person=format_name_for_display(s.to_person),
                    amount=s.amount,
                )
                for s in self.settlements
            ],
            individual_balances=format_name_keys(self.individual_balances),
        )

    def to_payload(self) -> dict:
        return {
            "settlements": [s.to_payload() for s in self.settlements],
            "individualBalances": {
                person: money_to_float(balance) for person, balance in self.individual_balances.items()
            },
        }


def minimize_settlements(balances: Mapping[str, Decimal]) -> List[Settlement]:
    creditors: list[list] = []
    debtors: list[list] = []

    for person, balance in balances.items():
        balance = round_money(balance)
        if balance > 0:
            creditors.append([person, balance])
        elif balance < 0:
            debtors.append([person, -balance])

    # sorted() is stable, equal magnitudes keep insertion order
    creditors.sort(key=lambda x: x[1], reverse=True)
    debtors.sort(key=lambda x: x[1], reverse=True)

    settlements: list[Settlement] = []
    i, j = 0, 0

    while i < len(creditors) and j < len(debtors):
        creditor = creditors[i]
        debtor = debtors[j]

        amount = round_money(min(creditor[1], debtor[1]))
        if amount > 0:
            settlements.append(Settlement(from_person=debtor[0], to_person=creditor[0], amount=amount))

        creditor[1] -= amount
        debtor[1] -= amount

        if round_money(creditor[1]) == 0:
            i += 1
        if round_money(debtor[1]) == 0:
            j += 1

    return settlements


def calculate_settlements(
    expenses: Sequence[Expense],
    payments: Iterable[PaymentLike] = (),
) -> SettlementResult:
    payments = list(payments)
    if not expenses and not payments:
        return SettlementResult()

    balances = aggregate_balances(expenses)
    if payments:
        balances = apply_payments(balances, payments)

    settlements = minimize_settlements(balances)
    log.debug(
        "settlement.computed",
        expenses=len(expenses),
        payments=len(payments),
        transfers=len(settlements),
        total=str(sum((s.amount for s in settlements), ZERO)),
    )
    return SettlementResult(settlements=settlements, individual_balances=balances)


async def settle_trip(repo: Repository, trip_id: str) -> SettlementResult:
    expenses = await repo.get_expenses_for_trip(trip_id)
    payments = await repo.get_payments_for_trip(trip_id)
    return calculate_settlements(expenses, payments)
