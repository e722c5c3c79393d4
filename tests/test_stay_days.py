from __future__ import annotations

from datetime import date, datetime

import pytest

from crewstay.domain.constraints import StayRules
from crewstay.services.stay_days import (
    arrival_adjustment,
    calculate_effective_days,
    calculate_total_days,
    clip_stay,
    departure_adjustment,
    effective_day_weights,
)


WINDOW_START = "2025-01-01T00:00:00"
WINDOW_END = "2025-01-31T23:59:00"


def _days(arrival: str, departure: str, start: str = WINDOW_START, end: str = WINDOW_END) -> float:
    return calculate_effective_days(arrival, departure, start, end)


@pytest.mark.parametrize(
    ("clock", "expected"),
    [
        ((0, 10), 0.0),
        ((0, 0), 1.0),
        ((5, 59), 1.0),
        ((6, 0), 0.5),
        ((13, 59), 0.5),
        ((14, 0), 0.0),
        ((22, 0), 0.0),
    ],
)
def test_arrival_adjustment_thresholds(clock: tuple[int, int], expected: float) -> None:
    assert arrival_adjustment(*clock) == expected


@pytest.mark.parametrize(
    ("clock", "expected"),
    [
        ((23, 50), 1.0),
        ((18, 0), 1.0),
        ((17, 59), 0.5),
        ((12, 1), 0.5),
        ((12, 0), 0.0),
        ((8, 0), 0.0),
    ],
)
def test_departure_adjustment_thresholds(clock: tuple[int, int], expected: float) -> None:
    assert departure_adjustment(*clock) == expected


def test_standard_week_stay_bills_seven_days() -> None:
    assert _days("2025-01-05T14:00", "2025-01-12T12:00") == 7.0


def test_early_arrival_and_late_departure_add_full_days() -> None:
    # 2 midnights + early arrival 1 + late departure 1
    assert _days("2025-01-05T05:00", "2025-01-07T19:00") == 4.0


def test_half_day_adjustments() -> None:
    # 2 midnights + 0.5 + 0.5
    assert _days("2025-01-05T10:00", "2025-01-07T15:00") == 3.0


def test_placeholder_arrival_adds_nothing() -> None:
    assert _days("2025-01-05T00:10", "2025-01-07T12:00") == 2.0
    assert _days("2025-01-05T00:09", "2025-01-07T12:00") == 3.0


def test_end_of_day_departure_adds_full_day() -> None:
    assert _days("2025-01-05T14:00", "2025-01-07T23:50") == 3.0


def test_stay_is_clipped_to_window() -> None:
    # clipped to 2025-01-10 00:00 .. 2025-01-12 12:00, midnight start adds a full day
    assert _days("2025-01-05T14:00", "2025-01-12T12:00", "2025-01-10", "2025-01-20") == 3.0


def test_inverted_window_is_swapped() -> None:
    assert _days("2025-01-05T14:00", "2025-01-12T12:00", WINDOW_END, WINDOW_START) == 7.0


def test_stay_outside_window_bills_zero() -> None:
    assert _days("2024-12-01T14:00", "2024-12-05T12:00") == 0.0


def test_empty_or_inverted_stay_bills_zero() -> None:
    assert _days("2025-01-05T14:00", "2025-01-05T14:00") == 0.0
    assert _days("2025-01-07T14:00", "2025-01-05T12:00") == 0.0


def test_unparseable_input_bills_zero() -> None:
    assert _days("not a date", "2025-01-05T12:00") == 0.0


def test_same_day_short_stay_never_goes_negative() -> None:
    assert _days("2025-01-05T14:00", "2025-01-05T15:00") >= 0.0


def test_custom_rules_shift_thresholds() -> None:
    rules = StayRules(
        early_arrival_minutes=4 * 60,
        check_in_minutes=12 * 60,
        check_out_minutes=14 * 60,
        late_departure_minutes=20 * 60,
    )
    days = calculate_effective_days(
        datetime(2025, 1, 5, 5, 0),
        datetime(2025, 1, 7, 13, 0),
        WINDOW_START,
        WINDOW_END,
        rules,
    )
    # 2 midnights + 0.5 arrival + 0 departure
    assert days == 2.5


def test_calculate_total_days_rounds_up() -> None:
    assert calculate_total_days("2025-01-05T14:00", "2025-01-07T12:00") == 2
    assert calculate_total_days("2025-01-05T14:00", "2025-01-07T15:00") == 3
    assert calculate_total_days("bad", "2025-01-07T15:00") == 0


@pytest.mark.parametrize(
    ("arrival", "departure", "start", "end"),
    [
        ("2025-01-05T14:00", "2025-01-12T12:00", WINDOW_START, WINDOW_END),
        ("2025-01-05T05:00", "2025-01-07T19:00", WINDOW_START, WINDOW_END),
        ("2025-01-05T10:00", "2025-01-07T15:00", WINDOW_START, WINDOW_END),
        ("2025-01-05T00:10", "2025-01-07T23:50", WINDOW_START, WINDOW_END),
        ("2025-01-05T14:00", "2025-01-05T19:00", WINDOW_START, WINDOW_END),
        ("2025-01-05T14:00", "2025-01-12T12:00", "2025-01-10", "2025-01-20"),
    ],
)
def test_day_weights_add_up_to_effective_days(
    arrival: str, departure: str, start: str, end: str
) -> None:
    weights = effective_day_weights(arrival, departure, start, end)

    assert sum(weights.values()) == pytest.approx(
        calculate_effective_days(arrival, departure, start, end)
    )


def test_day_weights_put_adjustments_on_the_end_days() -> None:
    weights = effective_day_weights("2025-01-05T05:00", "2025-01-07T15:00", WINDOW_START, WINDOW_END)

    assert weights == {
        date(2025, 1, 5): 2.0,
        date(2025, 1, 6): 1.0,
        date(2025, 1, 7): 0.5,
    }


def test_day_weights_empty_outside_window() -> None:
    assert effective_day_weights("2024-12-01T14:00", "2024-12-05T12:00", WINDOW_START, WINDOW_END) == {}


def test_clip_stay_trims_to_window_and_drops_empty_stays() -> None:
    assert clip_stay("2025-01-05T14:00", "2025-01-12T12:00", "2025-01-10", "2025-01-20") == (
        datetime(2025, 1, 10),
        datetime(2025, 1, 12, 12, 0),
    )
    assert clip_stay("2025-01-05T14:00", "2025-01-05T14:00", WINDOW_START, WINDOW_END) is None
    assert clip_stay("bad", "2025-01-05T14:00", WINDOW_START, WINDOW_END) is None
