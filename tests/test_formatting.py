from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import pytest

from crewstay.services.formatting import (
    NBSP,
    category_label,
    category_rank,
    collation_key,
    format_currency,
    sort_report_rows,
)


@dataclass
class Row:
    hotel_name: Optional[str]
    category: Optional[str]
    room_name: Optional[str]
    room_id: Optional[str]
    person_name: Optional[str]


def test_rows_sorted_by_hotel_category_room_and_guest() -> None:
    rows = [
        Row("Бета", "twoPlace", "101", "1", "Иванов"),
        Row("Альфа", "onePlace", "202", "2", "Петров"),
        Row("Альфа", "studio", "305", "3", "Сидоров"),
        Row("Альфа", "onePlace", "202", "2", "Андреев"),
        Row("Альфа", "onePlace", "110", "4", "Яковлев"),
    ]

    ordered = sort_report_rows(rows)

    assert [row.person_name for row in ordered] == [
        "Сидоров",
        "Яковлев",
        "Андреев",
        "Петров",
        "Иванов",
    ]


def test_unknown_category_sorts_first() -> None:
    assert category_rank("mystery") == -1
    assert category_rank(None) == -1
    assert category_rank("studio") == 0
    assert category_rank("Апартаменты") == 1
    assert category_rank("tenPlace") > category_rank("twoPlace")


def test_collation_is_case_insensitive_and_folds_yo() -> None:
    assert collation_key("ёлкин")[0] == collation_key("Елкин")[0]
    assert collation_key("абв") < collation_key("Абг")


def test_collation_orders_digits_before_cyrillic_before_latin() -> None:
    values = ["Zeta", "Бета", "12", "alpha", "Альфа"]

    assert sorted(values, key=collation_key) == ["12", "Альфа", "Бета", "alpha", "Zeta"]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1234.5, f"1{NBSP}234,50"),
        (0, "0,00"),
        (None, "0,00"),
        ("oops", "0,00"),
        (1234567.891, f"1{NBSP}234{NBSP}567,89"),
        (-50, "-50,00"),
        (float("inf"), "0,00"),
    ],
)
def test_format_currency(value, expected: str) -> None:
    assert format_currency(value) == expected


def test_category_label() -> None:
    assert category_label("twoPlace") == "Двухместный"
    assert category_label("Двухместный") == "Двухместный"
    assert category_label(None) == "Не указано"
    assert category_label("custom") == "custom"
