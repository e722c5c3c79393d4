"""Presentation ordering and value formatting for report rows."""

from __future__ import annotations

import math
from typing import Any, Iterable, Optional, TypeVar

from crewstay.domain.models import (
    CATEGORY_LABELS,
    NOT_SPECIFIED,
    ROOM_CATEGORY_ORDER,
    category_code,
)


RowT = TypeVar("RowT")

NBSP = "\u00a0"


def _char_rank(char: str) -> int:
    if char.isdigit():
        return 1
    if "а" <= char <= "я":
        return 2
    if char.isalpha():
        return 3
    return 0


def collation_key(value: Optional[str]) -> tuple[tuple[tuple[int, str], ...], str]:
    """Russian-style ordering: punctuation, digits, Cyrillic, then Latin; case-insensitive."""
    text = value or ""
    folded = text.casefold().replace("ё", "е")
    return tuple((_char_rank(char), char) for char in folded), text


def category_rank(category: Optional[str]) -> int:
    code = category_code(category)
    if code in ROOM_CATEGORY_ORDER:
        return ROOM_CATEGORY_ORDER.index(code)
    return -1


def report_sort_key(
    hotel_name: Optional[str],
    category: Optional[str],
    room_name: Optional[str],
    room_id: Any,
    person_name: Optional[str],
) -> tuple:
    return (
        collation_key(hotel_name),
        category_rank(category),
        collation_key(room_name),
        collation_key("" if room_id is None else str(room_id)),
        collation_key(person_name),
    )


def sort_report_rows(rows: Iterable[RowT]) -> list[RowT]:
    """Order rows by hotel, category rank, room name, room id and guest name."""
    return sorted(
        rows,
        key=lambda row: report_sort_key(
            getattr(row, "hotel_name", None),
            getattr(row, "category", None),
            getattr(row, "room_name", None),
            getattr(row, "room_id", None),
            getattr(row, "person_name", None),
        ),
    )


def format_currency(value: Any) -> str:
    """Render `1234.5` as `1 234,50` with ru-RU separators."""
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        number = 0.0
    if not math.isfinite(number):
        number = 0.0
    rounded = round(number, 2)
    grouped = f"{abs(rounded):,.2f}".replace(",", NBSP).replace(".", ",")
    return f"-{grouped}" if rounded < 0 else grouped


def category_label(category: Optional[str]) -> str:
    if not category:
        return NOT_SPECIFIED
    code = category_code(category)
    return CATEGORY_LABELS.get(code, category)
