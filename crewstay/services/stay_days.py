"""Billable-day calculation for a stay clipped to a reporting window."""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Optional

from crewstay.domain.constraints import DEFAULT_STAY_RULES, StayRules
from crewstay.services.dates import each_day_inclusive, parse_local_datetime


# An arrival at exactly 00:10 adds nothing, unlike any other early arrival.
PLACEHOLDER_ARRIVAL = (0, 10)
# A departure at exactly 23:50 always adds a full day.
END_OF_DAY_DEPARTURE = (23, 50)

SECONDS_PER_DAY = 24 * 60 * 60


def arrival_adjustment(hour: int, minute: int, rules: StayRules = DEFAULT_STAY_RULES) -> float:
    if (hour, minute) == PLACEHOLDER_ARRIVAL:
        return 0.0
    minutes = hour * 60 + minute
    if minutes < rules.early_arrival_minutes:
        return 1.0
    if minutes < rules.check_in_minutes:
        return 0.5
    return 0.0


def departure_adjustment(hour: int, minute: int, rules: StayRules = DEFAULT_STAY_RULES) -> float:
    if (hour, minute) == END_OF_DAY_DEPARTURE:
        return 1.0
    minutes = hour * 60 + minute
    if minutes >= rules.late_departure_minutes:
        return 1.0
    if minutes > rules.check_out_minutes:
        return 0.5
    return 0.0


def clip_stay(
    arrival: Any,
    departure: Any,
    window_start: Any,
    window_end: Any,
) -> Optional[tuple[datetime, datetime]]:
    """Return the part of the stay inside the window, or None when nothing is left."""
    arrival_dt = parse_local_datetime(arrival)
    departure_dt = parse_local_datetime(departure)
    start_dt = parse_local_datetime(window_start)
    end_dt = parse_local_datetime(window_end)
    if arrival_dt is None or departure_dt is None or start_dt is None or end_dt is None:
        return None
    if start_dt > end_dt:
        start_dt, end_dt = end_dt, start_dt

    effective_arrival = max(arrival_dt, start_dt)
    effective_departure = min(departure_dt, end_dt)
    if effective_departure <= effective_arrival:
        return None
    return effective_arrival, effective_departure


def calculate_effective_days(
    arrival: Any,
    departure: Any,
    window_start: Any,
    window_end: Any,
    rules: StayRules = DEFAULT_STAY_RULES,
) -> float:
    """Return the fractional number of billable days inside the window.

    The stay is clipped to the window, whole calendar days are counted
    between the clipped ends, then the arrival and departure times add
    0, 0.5 or 1 day according to the check-in/check-out thresholds.
    Unparseable or empty intervals bill 0 days.
    """
    bounds = clip_stay(arrival, departure, window_start, window_end)
    if bounds is None:
        return 0.0
    effective_arrival, effective_departure = bounds

    base_days = (effective_departure.date() - effective_arrival.date()).days
    total = (
        base_days
        + arrival_adjustment(effective_arrival.hour, effective_arrival.minute, rules)
        + departure_adjustment(effective_departure.hour, effective_departure.minute, rules)
    )
    return max(0.0, float(total))


def effective_day_weights(
    arrival: Any,
    departure: Any,
    window_start: Any,
    window_end: Any,
    rules: StayRules = DEFAULT_STAY_RULES,
) -> dict[date, float]:
    """Spread the effective days of a clipped stay over its calendar days.

    Every night counts 1 on the day it starts. The arrival adjustment lands
    on the first day and the departure adjustment on the last one, so the
    weights add up to `calculate_effective_days` for the same arguments.
    """
    bounds = clip_stay(arrival, departure, window_start, window_end)
    if bounds is None:
        return {}
    effective_arrival, effective_departure = bounds
    first_day, last_day = effective_arrival.date(), effective_departure.date()

    weights = {
        day: 1.0 if day < last_day else 0.0
        for day in each_day_inclusive(first_day, last_day)
    }
    weights[first_day] += arrival_adjustment(
        effective_arrival.hour, effective_arrival.minute, rules
    )
    weights[last_day] += departure_adjustment(
        effective_departure.hour, effective_departure.minute, rules
    )
    return weights


def calculate_total_days(start: Any, end: Any) -> int:
    """Whole days between two instants, rounded up."""
    start_dt = parse_local_datetime(start)
    end_dt = parse_local_datetime(end)
    if start_dt is None or end_dt is None:
        return 0
    return math.ceil((end_dt - start_dt).total_seconds() / SECONDS_PER_DAY)
