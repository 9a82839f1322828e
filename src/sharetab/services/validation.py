from __future__ import annotations

from decimal import Decimal
from typing import Sized


class ValidationError(ValueError):
    pass


def with_context(prefix: str, exc: ValidationError) -> ValidationError:
    return ValidationError(f"{prefix}: {exc}")


def require_text(value: str | None, field: str) -> None:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required")


def require_finite(value: Decimal, field: str) -> None:
    if not value.is_finite():
        raise ValidationError(f"{field} must be a finite number")


def require_positive(value: Decimal, field: str) -> None:
    require_finite(value, field)
    if value <= 0:
        raise ValidationError(f"{field} must be positive")


def require_non_negative(value: Decimal, field: str) -> None:
    require_finite(value, field)
    if value < 0:
        raise ValidationError(f"{field} cannot be negative")


def require_not_empty(values: Sized | None, field: str) -> None:
    if not values:
        raise ValidationError(f"{field} cannot be empty")


def require_names(names: list[str], field: str = "participant") -> None:
    for index, name in enumerate(names, start=1):
        if not name or not name.strip():
            raise ValidationError(f"{field} {index} name cannot be empty")


def validate_extras(tax: Decimal, service_charge: Decimal, total_discount: Decimal) -> None:
    require_non_negative(tax, "tax")
    require_non_negative(service_charge, "service charge")
    require_non_negative(total_discount, "discount")
