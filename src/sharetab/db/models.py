from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass(slots=True)
class Trip:
    id: str
    code: str
    name: str
    creation_time: int
    participants: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Payment:
    id: int
    trip_id: str
    from_person: str
    to_person: str
    amount: Decimal
    description: Optional[str]
    payment_date: datetime
    created_at: datetime
