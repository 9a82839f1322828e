from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from sharetab.services.expenses import Item
from sharetab.services.validation import ValidationError

EXTRA_KEYS = {
    "tax": "tax",
    "service": "service_charge",
    "svc": "service_charge",
    "discount": "total_discount",
    "disc": "total_discount",
}

# "12.50", "12.50 x2", "12.50 x2 -1.50"
PRICE_RE = re.compile(r"^(?P<price>[\d.,_]+)(?:\s*[x×*]\s*(?P<qty>\d+))?(?:\s*-\s*(?P<discount>[\d.,_]+))?$")
EXTRA_RE = re.compile(r"(?P<key>[a-z]+)\s*=\s*(?P<value>[\d.,_]+)")


def split_args(text: str, command: str) -> list[str]:
    """Strip the command word and split the rest on '|'."""
    body = text.split("\n", 1)[0]
    body = re.sub(rf"^/{command}(@\w+)?", "", body.strip(), count=1)
    if not body.strip():
        return []
    return [part.strip() for part in body.split("|")]


def body_lines(text: str) -> list[str]:
    lines = text.split("\n")[1:]
    return [line.strip() for line in lines if line.strip()]


def parse_amount(value: str) -> Decimal:
    raw = value.strip().replace("_", "").replace(" ", "")
    if "," in raw and "." in raw:
        raw = raw.replace(",", "")
    elif "," in raw:
        raw = raw.replace(",", ".")
    try:
        amount = Decimal(raw)
    except InvalidOperation as exc:
        raise ValidationError(f"Invalid amount: {value}") from exc
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value}")
    return amount


def parse_people(value: str) -> list[str]:
    names = [name.strip() for name in re.split(r"[,;]", value)]
    return [name for name in names if name]


def parse_extras(parts: list[str]) -> dict[str, Decimal]:
    """Read tax/service/discount either positionally or as key=value pairs."""
    extras: dict[str, Decimal] = {}
    keys = ["tax", "service_charge", "total_discount"]
    for index, part in enumerate(parts):
        if not part:
            continue
        matches = list(EXTRA_RE.finditer(part.lower()))
        if matches:
            for match in matches:
                key = EXTRA_KEYS.get(match.group("key"))
                if key is None:
                    raise ValidationError(f"Unknown charge: {match.group('key')}")
                extras[key] = parse_amount(match.group("value"))
        elif index < len(keys):
            extras[keys[index]] = parse_amount(part)
        else:
            raise ValidationError(f"Unexpected argument: {part}")
    return extras


def parse_item_line(line: str) -> Item:
    parts = [part.strip() for part in line.split("|")]
    if len(parts) != 4:
        raise ValidationError("Item format: description | price [x qty] [-discount] | payer | consumers")

    description, price_part, payer, consumers = parts
    match = PRICE_RE.match(price_part.strip().lower())
    if match is None:
        raise ValidationError(f"Invalid price: {price_part}")

    return Item(
        description=description,
        unit_price=parse_amount(match.group("price")),
        quantity=int(match.group("qty") or 1),
        item_discount=parse_amount(match.group("discount")) if match.group("discount") else Decimal("0"),
        paid_by=payer,
        consumers=parse_people(consumers),
    )


def parse_item_lines(lines: list[str]) -> tuple[list[Item], dict[str, Decimal]]:
    """Item lines plus an optional trailing extras line such as 'tax=10 service=5'."""
    items: list[Item] = []
    extras: dict[str, Decimal] = {}
    for index, line in enumerate(lines, start=1):
        if "|" not in line and EXTRA_RE.search(line.lower()):
            extras.update(parse_extras([line]))
            continue
        try:
            items.append(parse_item_line(line))
        except ValidationError as exc:
            raise ValidationError(f"Line {index}: {exc}") from exc
    return items, extras
