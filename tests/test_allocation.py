"""Tests for day-by-day room cost allocation between co-occupants."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime

import pytest

from crewstay.domain.models import BookingRecord
from crewstay.services.allocation_service import (
    AllocationRangeError,
    booking_records_from_rows,
    build_allocation,
    build_room_day_rates,
    place_stays,
)
from crewstay.services.stay_days import calculate_effective_days


def _record(
    name: str,
    arrival: str,
    departure: str,
    room: str = "101",
    price: float | None = 1000.0,
    **extra,
) -> BookingRecord:
    return BookingRecord(
        person_name=name,
        room_id=room,
        room_name=f"Номер {room}",
        arrival=arrival,
        departure=departure,
        price=price,
        hotel_name="Аэропорт",
        **extra,
    )


def test_single_guest_full_week() -> None:
    records = [_record("Иванов", "2025-01-01T14:00", "2025-01-07T18:00", price=1400.0)]

    result = build_allocation(records, "2025-01-01", "2025-01-07T23:59")

    assert len(result.rows) == 1
    row = result.rows[0]
    assert row.index == 1
    assert row.total_days == 7
    assert row.total_living_cost == pytest.approx(9800.0)
    assert row.total_debt == pytest.approx(9800.0)
    assert row.price == pytest.approx(1400.0)
    assert row.share_note == "с 01.01.2025 по 07.01.2025 жил один"


def test_single_guest_day_count_matches_effective_days() -> None:
    arrival, departure = "2025-01-01T14:00", "2025-01-07T18:00"

    result = build_allocation([_record("Иванов", arrival, departure)])

    assert result.rows[0].total_days == calculate_effective_days(
        arrival, departure, "2025-01-01", "2025-01-07T23:59"
    )


def test_solo_noon_checkout_bills_effective_days_not_calendar_days() -> None:
    arrival, departure = "2025-01-01T14:00", "2025-01-08T12:00"

    result = build_allocation(
        [_record("Иванов", arrival, departure, price=1400.0)],
        "2025-01-01",
        "2025-01-31T23:59",
    )

    row = result.rows[0]
    assert row.total_days == pytest.approx(7.0)
    assert row.total_days == calculate_effective_days(
        arrival, departure, "2025-01-01", "2025-01-31T23:59"
    )
    assert row.total_living_cost == pytest.approx(9800.0)
    assert (row.stay_start, row.stay_end) == (date(2025, 1, 1), date(2025, 1, 8))
    assert row.share_note == "с 01.01.2025 по 07.01.2025 жил один"


def test_early_arrival_adds_a_day_to_the_shared_split() -> None:
    records = [
        _record("Иванов", "2025-01-01T05:00", "2025-01-03T12:00"),
        _record("Петров", "2025-01-01T14:00", "2025-01-03T12:00"),
    ]

    result = build_allocation(records, "2025-01-01", "2025-01-31")

    by_guest = {row.person_name: row for row in result.rows}
    assert by_guest["Иванов"].total_days == pytest.approx(3.0)
    assert by_guest["Петров"].total_days == pytest.approx(2.0)
    assert by_guest["Иванов"].total_living_cost == pytest.approx(1000.0 + 500.0)
    assert by_guest["Петров"].total_living_cost == pytest.approx(500.0 + 500.0)


def test_two_guests_share_first_three_days() -> None:
    records = [
        _record("Иванов", "2025-01-01T14:00", "2025-01-05T18:00"),
        _record("Петров", "2025-01-01T14:00", "2025-01-03T18:00"),
    ]

    result = build_allocation(records, "2025-01-01", "2025-01-05T23:59")

    by_guest = {row.person_name: row for row in result.rows}
    assert by_guest["Иванов"].total_living_cost == pytest.approx(3500.0)
    assert by_guest["Петров"].total_living_cost == pytest.approx(1500.0)
    assert by_guest["Иванов"].total_days == 5
    assert by_guest["Петров"].total_days == 3
    assert by_guest["Иванов"].share_note == (
        "с 01.01.2025 по 03.01.2025 жил с: Петров; с 04.01.2025 по 05.01.2025 жил один"
    )
    assert by_guest["Петров"].share_note == "с 01.01.2025 по 03.01.2025 жил с: Иванов"


def test_rows_expose_window_bounds_and_guest_interval() -> None:
    records = [_record("Петров", "2025-01-02T14:00", "2025-01-03T12:00")]

    result = build_allocation(records, "2025-01-01", "2025-01-05T23:59")

    row = result.rows[0]
    assert row.arrival == "01.01.2025 00:00:00"
    assert row.departure == "05.01.2025 23:59:00"
    assert (row.stay_start, row.stay_end) == (date(2025, 1, 2), date(2025, 1, 3))
    assert result.range_start == date(2025, 1, 1)
    assert result.range_end == date(2025, 1, 5)


def test_rows_sorted_by_room_then_guest_and_indexed() -> None:
    records = [
        _record("Сидоров", "2025-01-01", "2025-01-02", room="202"),
        _record("Петров", "2025-01-01", "2025-01-02", room="101"),
        _record("Алексеев", "2025-01-01", "2025-01-02", room="101"),
    ]

    result = build_allocation(records)

    assert [(row.room_id, row.person_name, row.index) for row in result.rows] == [
        ("101", "Алексеев", 1),
        ("101", "Петров", 2),
        ("202", "Сидоров", 3),
    ]


def test_cost_conservation_per_room() -> None:
    records = [
        _record("Иванов", "2025-01-01T14:00", "2025-01-06T12:00", price=1200.0),
        _record("Петров", "2025-01-03T14:00", "2025-01-08T12:00", price=1200.0),
        _record("Сидоров", "2025-01-04T14:00", "2025-01-05T12:00", price=1200.0),
    ]

    result = build_allocation(records, "2025-01-01", "2025-01-10")

    stays, _ = place_stays(records)
    rates = build_room_day_rates(stays, datetime(2025, 1, 1), datetime(2025, 1, 10))
    expected = sum(rates["101"].values())
    assert sum(row.total_living_cost for row in result.rows) == pytest.approx(expected)
    assert expected == pytest.approx(7 * 1200.0)


def test_overlapping_rates_in_same_room_are_averaged() -> None:
    records = [
        _record("Иванов", "2025-01-01T14:00", "2025-01-02T12:00", price=1000.0),
        _record("Петров", "2025-01-01T14:00", "2025-01-02T12:00", price=2000.0),
    ]

    result = build_allocation(records)

    assert [row.total_living_cost for row in result.rows] == [
        pytest.approx(750.0),
        pytest.approx(750.0),
    ]
    assert all(row.price == pytest.approx(1500.0) for row in result.rows)


def test_rate_falls_back_to_living_cost_per_day() -> None:
    records = [
        _record(
            "Иванов",
            "2025-01-01",
            "2025-01-04",
            price=None,
            total_living_cost=6000.0,
            total_days=4,
        )
    ]

    result = build_allocation(records)

    assert result.rows[0].total_living_cost == pytest.approx(6000.0)


def test_zero_rate_days_cost_nothing_but_keep_the_row() -> None:
    records = [_record("Иванов", "2025-01-01", "2025-01-02", price=0.0)]

    result = build_allocation(records)

    assert len(result.rows) == 1
    assert result.rows[0].total_days == 2
    assert result.rows[0].total_living_cost == 0.0


def test_guest_outside_window_is_not_emitted() -> None:
    records = [
        _record("Иванов", "2025-01-01", "2025-01-02"),
        _record("Петров", "2025-02-01", "2025-02-02"),
    ]

    result = build_allocation(records, "2025-01-01", "2025-01-31")

    assert [row.person_name for row in result.rows] == ["Иванов"]


def test_meals_are_resummed_and_zeroed_for_apartments() -> None:
    records = [
        _record(
            "Иванов",
            "2025-01-01",
            "2025-01-02",
            breakfast_count=2,
            lunch_count=1,
            dinner_count=2,
            total_meal_cost=1000.0,
        ),
        _record(
            "Иванов",
            "2025-01-03",
            "2025-01-04",
            breakfast_count=1,
            total_meal_cost=300.0,
        ),
        _record(
            "Петров",
            "2025-01-01",
            "2025-01-02",
            room="301",
            category="apartment",
            breakfast_count=2,
            total_meal_cost=800.0,
        ),
    ]

    result = build_allocation(records)

    by_guest = {row.person_name: row for row in result.rows}
    ivanov = by_guest["Иванов"]
    assert (ivanov.breakfast_count, ivanov.lunch_count, ivanov.dinner_count) == (3, 1, 2)
    assert ivanov.total_meal_cost == pytest.approx(1300.0)
    assert ivanov.total_days == 4
    assert ivanov.total_debt == pytest.approx(4000.0 + 1300.0)
    petrov = by_guest["Петров"]
    assert petrov.total_meal_cost == 0.0
    assert petrov.breakfast_count == 0


def test_inverted_stay_is_swapped() -> None:
    result = build_allocation([_record("Иванов", "2025-01-03", "2025-01-01")])

    assert result.rows[0].total_days == 3


def test_malformed_records_are_skipped_not_fatal() -> None:
    records = [
        _record("", "2025-01-01", "2025-01-02"),
        _record("Петров", "bad date", "2025-01-02"),
        BookingRecord(
            person_name="Сидоров",
            room_id=None,
            room_name=None,
            arrival="2025-01-01",
            departure="2025-01-02",
        ),
        _record("Иванов", "2025-01-01", "2025-01-02"),
    ]

    result = build_allocation(records)

    assert [row.person_name for row in result.rows] == ["Иванов"]
    assert [item.position for item in result.skipped] == [1, 2, 3]
    assert "arrival" in result.skipped[1].reason


def test_missing_window_without_valid_records_raises() -> None:
    with pytest.raises(AllocationRangeError):
        build_allocation([_record("Петров", "bad", "also bad")])


def test_missing_window_with_explicit_bounds_and_no_valid_records_is_empty() -> None:
    result = build_allocation([_record("Петров", "bad", "also bad")], "2025-01-01", "2025-01-02")

    assert result.rows == []
    assert len(result.skipped) == 1


@pytest.mark.parametrize(
    ("range_start", "range_end"),
    [("2025-13-01", "2025-01-31"), ("2025-01-01", "someday")],
)
def test_unparseable_explicit_range_is_rejected(range_start: str, range_end: str) -> None:
    records = [_record("Иванов", "2025-01-01T14:00", "2025-01-03T12:00")]

    with pytest.raises(AllocationRangeError):
        build_allocation(records, range_start, range_end)


def test_blank_range_bounds_are_inferred_from_stays() -> None:
    records = [_record("Иванов", "2025-01-02T14:00", "2025-01-04T12:00")]

    result = build_allocation(records, "", "  ")

    assert (result.range_start, result.range_end) == (date(2025, 1, 2), date(2025, 1, 4))


def test_empty_input_gives_empty_result() -> None:
    result = build_allocation([])

    assert result.rows == [] and result.skipped == []


def test_allocation_is_idempotent() -> None:
    records = [
        _record("Иванов", "2025-01-01T14:00", "2025-01-05T18:00"),
        _record("Петров", "2025-01-02T14:00", "2025-01-03T12:00"),
    ]

    first = build_allocation(records, "2025-01-01", "2025-01-05")
    second = build_allocation(records, "2025-01-01", "2025-01-05")

    assert first == second


def test_split_shares_sum_to_each_day_rate() -> None:
    records = [
        _record("Иванов", "2025-01-01T14:00", "2025-01-04T12:00"),
        _record("Петров", "2025-01-02T14:00", "2025-01-04T12:00"),
        _record("Сидоров", "2025-01-03T14:00", "2025-01-04T12:00"),
    ]

    result = build_allocation(records)

    totals: dict[str, float] = defaultdict(float)
    for row in result.rows:
        totals[row.room_id] += row.total_living_cost
    assert totals["101"] == pytest.approx(3000.0)
    by_guest = {row.person_name: row.total_living_cost for row in result.rows}
    assert by_guest["Сидоров"] == pytest.approx(1000.0 / 3)


def test_booking_records_from_rows_reads_report_output() -> None:
    rows = [
        {
            "personName": " Иванов ",
            "roomId": 101,
            "roomName": "101",
            "arrival": "01.01.2025 14:00:00",
            "departure": "03.01.2025 12:00:00",
            "category": "Двухместный",
            "price": "1 400,00",
            "breakfastCount": "2",
            "totalMealCost": None,
        }
    ]

    records = booking_records_from_rows(rows)

    assert records[0].person_name == "Иванов"
    assert records[0].room_id == "101"
    assert records[0].price == pytest.approx(1400.0)
    assert records[0].breakfast_count == 2
    assert records[0].total_meal_cost == 0.0
    result = build_allocation(records)
    assert result.rows[0].total_living_cost == pytest.approx(2800.0)
