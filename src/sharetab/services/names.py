from __future__ import annotations

from typing import Iterable, Mapping, TypeVar

T = TypeVar("T")


def normalize_name(name: str) -> str:
    return name.strip().lower()


def normalize_names(names: Iterable[str]) -> list[str]:
    return [normalize_name(name) for name in names]


def unique_names(names: Iterable[str]) -> list[str]:
    """Normalize and drop repeats, keeping first-seen order."""
    seen: dict[str, None] = {}
    for name in names:
        seen.setdefault(normalize_name(name), None)
    return list(seen)


def format_name_for_display(name: str) -> str:
    return " ".join(part.capitalize() for part in name.strip().lower().split())


def format_name_keys(values: Mapping[str, T]) -> dict[str, T]:
    return {format_name_for_display(name): value for name, value in values.items()}
