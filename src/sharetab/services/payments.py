from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sharetab.services.money import Numeric, round_money
from sharetab.services.names import normalize_name
from sharetab.services.validation import ValidationError, require_positive, require_text


@dataclass(slots=True)
class PaymentDraft:
    from_person: str
    to_person: str
    amount: Decimal
    description: str = ""


def new_payment(from_person: str, to_person: str, amount: Numeric, description: str = "") -> PaymentDraft:
    require_text(from_person, "from_person")
    require_text(to_person, "to_person")

    payer = normalize_name(from_person)
    receiver = normalize_name(to_person)
    if payer == receiver:
        raise ValidationError("cannot pay to yourself")

    value = round_money(amount)
    require_positive(value, "amount")
    return PaymentDraft(from_person=payer, to_person=receiver, amount=value, description=description.strip())
