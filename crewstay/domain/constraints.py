"""Domain-level validation rules for stay billing thresholds."""

from __future__ import annotations

import re
from dataclasses import dataclass


MINUTES_PER_DAY = 24 * 60

_CLOCK_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


@dataclass(frozen=True)
class StayRules:
    """Time-of-day thresholds, in minutes after midnight."""

    early_arrival_minutes: int = 6 * 60
    check_in_minutes: int = 14 * 60
    check_out_minutes: int = 12 * 60
    late_departure_minutes: int = 18 * 60


DEFAULT_STAY_RULES = StayRules()


def parse_clock(value: str) -> int:
    """Convert `HH:MM` into minutes after midnight."""
    match = _CLOCK_PATTERN.fullmatch(value.strip())
    if match is None:
        raise ValueError(f"time must follow HH:MM format, got {value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"time is out of range: {value!r}")
    return hours * 60 + minutes


def parse_clock_window(value: str) -> tuple[int, int]:
    """Convert `HH:MM-HH:MM` into a (start, end) minute pair."""
    parts = value.split("-")
    if len(parts) != 2:
        raise ValueError(f"window must follow HH:MM-HH:MM format, got {value!r}")
    start, end = parse_clock(parts[0]), parse_clock(parts[1])
    if start > end:
        raise ValueError(f"window start must not be after its end: {value!r}")
    return start, end


def validate_stay_rules(rules: StayRules) -> None:
    for name in (
        "early_arrival_minutes",
        "check_in_minutes",
        "check_out_minutes",
        "late_departure_minutes",
    ):
        value = getattr(rules, name)
        if not 0 <= value < MINUTES_PER_DAY:
            raise ValueError(f"{name} must be within one day")
    if rules.early_arrival_minutes >= rules.check_in_minutes:
        raise ValueError("early_arrival_minutes must be before check_in_minutes")
    if rules.check_out_minutes >= rules.late_departure_minutes:
        raise ValueError("check_out_minutes must be before late_departure_minutes")


def stay_rules_from_clock(
    early_arrival: str,
    check_in: str,
    check_out: str,
    late_departure: str,
) -> StayRules:
    rules = StayRules(
        early_arrival_minutes=parse_clock(early_arrival),
        check_in_minutes=parse_clock(check_in),
        check_out_minutes=parse_clock(check_out),
        late_departure_minutes=parse_clock(late_departure),
    )
    validate_stay_rules(rules)
    return rules
