"""Room cost allocation across guests sharing a room.

The allocator works on calendar days. Every stay spreads its effective days
over the days it touches: nights count 1 and the arrival and departure days
take the check-in and check-out adjustments. For every room it records
which guests are billed on each day of the reporting range, resolves the
room's rate for that day, and splits it between everyone present. Each
(guest, room) pair then becomes one row carrying the summed shares, the
re-aggregated meal figures, and a narrative of who the guest shared with.

The module is pure and keeps no state. Records that cannot be placed are
returned as `SkippedRecord`s instead of aborting the run.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Mapping, Optional, Sequence

from crewstay.domain.constraints import DEFAULT_STAY_RULES, StayRules
from crewstay.domain.models import (
    AllocationResult,
    AllocationRow,
    BookingRecord,
    SkippedRecord,
    is_meal_free_category,
)
from crewstay.services.dates import (
    format_day,
    format_local_datetime,
    parse_amount,
    parse_local_datetime,
)
from crewstay.services.formatting import collation_key
from crewstay.services.stay_days import clip_stay, effective_day_weights
from crewstay.utils.logger import get_logger


logger = get_logger(__name__)

OccupancyMap = dict[str, dict[date, dict[str, float]]]
RoomDayRates = dict[str, dict[date, float]]


class AllocationError(Exception):
    """Base failure of the room cost allocator."""


class AllocationRangeError(AllocationError):
    """Raised when no reporting range is given and none can be inferred."""


@dataclass(frozen=True)
class PlacedStay:
    position: int
    record: BookingRecord
    room_key: str
    arrival: datetime
    departure: datetime
    rate: Optional[float]

    @property
    def first_day(self) -> date:
        return self.arrival.date()

    @property
    def last_day(self) -> date:
        return self.departure.date()

    def overlaps(self, start: date, end: date) -> bool:
        return self.first_day <= end and self.last_day >= start


@dataclass(frozen=True)
class ShareSegment:
    start: date
    end: date
    others: frozenset[str]

    def describe(self) -> str:
        period = f"с {format_day(self.start)} по {format_day(self.end)}"
        if not self.others:
            return f"{period} жил один"
        names = ", ".join(sorted(self.others, key=collation_key))
        return f"{period} жил с: {names}"


def _safe_parse(value: Any) -> Optional[datetime]:
    try:
        return parse_local_datetime(value)
    except TypeError:
        return None


def place_stays(
    records: Sequence[BookingRecord],
) -> tuple[list[PlacedStay], list[SkippedRecord]]:
    """Normalize stay bounds; swap inverted intervals, skip unusable records."""
    placed: list[PlacedStay] = []
    skipped: list[SkippedRecord] = []
    for position, record in enumerate(records, start=1):
        reason = None
        arrival = _safe_parse(record.arrival)
        departure = _safe_parse(record.departure)
        if not record.person_name or not str(record.person_name).strip():
            reason = "guest name is missing"
        elif record.room_key is None:
            reason = "room id and room name are both missing"
        elif arrival is None:
            reason = f"unparseable arrival {record.arrival!r}"
        elif departure is None:
            reason = f"unparseable departure {record.departure!r}"

        if reason is not None:
            skipped.append(
                SkippedRecord(position=position, person_name=record.person_name, reason=reason)
            )
            logger.warning("Allocation record skipped | position=%s | reason=%s", position, reason)
            continue

        if arrival > departure:
            arrival, departure = departure, arrival
        placed.append(
            PlacedStay(
                position=position,
                record=record,
                room_key=str(record.room_key),
                arrival=arrival,
                departure=departure,
                rate=record.daily_rate(),
            )
        )
    return placed, skipped


def _explicit_bound(value: Any, label: str) -> Optional[datetime]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    parsed = _safe_parse(value)
    if parsed is None:
        raise AllocationRangeError(f"Reporting range {label} {value!r} is not a valid date")
    return parsed


def _resolve_range(
    stays: Sequence[PlacedStay],
    range_start: Any,
    range_end: Any,
) -> tuple[datetime, datetime]:
    start = _explicit_bound(range_start, "start")
    end = _explicit_bound(range_end, "end")
    if start is None:
        if not stays:
            raise AllocationRangeError(
                "Reporting range start is missing and there are no valid bookings to infer it from"
            )
        start = min(stay.arrival for stay in stays)
    if end is None:
        if not stays:
            raise AllocationRangeError(
                "Reporting range end is missing and there are no valid bookings to infer it from"
            )
        end = max(stay.departure for stay in stays)
    if start > end:
        start, end = end, start
    return start, end


def stay_day_weights(
    stay: PlacedStay,
    window_start: datetime,
    window_end: datetime,
    rules: StayRules = DEFAULT_STAY_RULES,
) -> dict[date, float]:
    """Billable weight of each day of the stay, zero-weight days dropped."""
    weights = effective_day_weights(stay.arrival, stay.departure, window_start, window_end, rules)
    return {day: weight for day, weight in weights.items() if weight > 0}


def build_occupancy_map(
    stays: Iterable[PlacedStay],
    window_start: datetime,
    window_end: datetime,
    rules: StayRules = DEFAULT_STAY_RULES,
) -> OccupancyMap:
    """room -> day -> guest -> billable weight, for days inside the window."""
    occupancy: dict[str, dict[date, dict[str, float]]] = defaultdict(
        lambda: defaultdict(lambda: defaultdict(float))
    )
    for stay in stays:
        for day, weight in stay_day_weights(stay, window_start, window_end, rules).items():
            occupancy[stay.room_key][day][stay.record.person_name] += weight
    return {
        room: {day: dict(guests) for day, guests in days.items()}
        for room, days in occupancy.items()
    }


def build_room_day_rates(
    stays: Iterable[PlacedStay],
    window_start: datetime,
    window_end: datetime,
    rules: StayRules = DEFAULT_STAY_RULES,
) -> RoomDayRates:
    """room -> day -> mean rate of all bookings billed in that room on that day."""
    collected: dict[str, dict[date, list[float]]] = defaultdict(lambda: defaultdict(list))
    for stay in stays:
        if stay.rate is None:
            continue
        for day in stay_day_weights(stay, window_start, window_end, rules):
            collected[stay.room_key][day].append(stay.rate)
    return {
        room: {day: sum(rates) / len(rates) for day, rates in days.items()}
        for room, days in collected.items()
    }


def build_share_segments(
    guest: str,
    days: Sequence[date],
    room_occupancy: Mapping[date, Mapping[str, float]],
) -> list[ShareSegment]:
    """Collapse consecutive days with the same co-occupants into segments."""
    segments: list[ShareSegment] = []
    for day in days:
        others = frozenset(set(room_occupancy.get(day, {})) - {guest})
        if segments:
            last = segments[-1]
            if last.others == others and last.end + timedelta(days=1) == day:
                segments[-1] = ShareSegment(start=last.start, end=day, others=others)
                continue
        segments.append(ShareSegment(start=day, end=day, others=others))
    return segments


def build_allocation(
    records: Sequence[BookingRecord],
    range_start: Any = None,
    range_end: Any = None,
    rules: StayRules = DEFAULT_STAY_RULES,
) -> AllocationResult:
    """Allocate room costs day by day and emit one row per (guest, room).

    Each day of a stay carries the share of its effective days that falls on
    it. A guest pays `rate * weight / occupants` for every day, where
    `occupants` counts the guests billed in the room that day.
    """
    if not records:
        return AllocationResult(rows=[], skipped=[], range_start=None, range_end=None)

    stays, skipped = place_stays(records)
    window_start, window_end = _resolve_range(stays, range_start, range_end)
    start_day, end_day = window_start.date(), window_end.date()

    occupancy = build_occupancy_map(stays, window_start, window_end, rules)
    rates = build_room_day_rates(stays, window_start, window_end, rules)

    living_cost: dict[tuple[str, str], float] = defaultdict(float)
    for room_key, room_days in occupancy.items():
        room_rates = rates.get(room_key, {})
        for day, occupants in room_days.items():
            rate = room_rates.get(day, 0.0)
            if rate <= 0 or not occupants:
                continue
            for guest, weight in occupants.items():
                living_cost[(guest, room_key)] += rate * weight / len(occupants)

    stays_by_pair: dict[tuple[str, str], list[PlacedStay]] = defaultdict(list)
    for stay in stays:
        stays_by_pair[(stay.record.person_name, stay.room_key)].append(stay)

    unsorted: list[tuple[tuple, dict[str, Any]]] = []
    for (guest, room_key), guest_stays in stays_by_pair.items():
        room_occupancy = occupancy.get(room_key, {})
        days = sorted(day for day, occupants in room_occupancy.items() if guest in occupants)
        if not days:
            continue
        total_days = sum(room_occupancy[day][guest] for day in days)
        clipped = [
            bounds
            for bounds in (
                clip_stay(stay.arrival, stay.departure, window_start, window_end)
                for stay in guest_stays
            )
            if bounds is not None
        ]

        reference = min(guest_stays, key=lambda stay: stay.position).record
        overlapping = [stay for stay in guest_stays if stay.overlaps(start_day, end_day)]
        if is_meal_free_category(reference.category):
            breakfast = lunch = dinner = 0
            meal_cost = 0.0
        else:
            breakfast = sum(stay.record.breakfast_count for stay in overlapping)
            lunch = sum(stay.record.lunch_count for stay in overlapping)
            dinner = sum(stay.record.dinner_count for stay in overlapping)
            meal_cost = float(sum(stay.record.total_meal_cost for stay in overlapping))

        day_rates = [rates[room_key][day] for day in days if day in rates.get(room_key, {})]
        price = sum(day_rates) / len(day_rates) if day_rates else None
        living = living_cost.get((guest, room_key), 0.0)
        note = "; ".join(
            segment.describe()
            for segment in build_share_segments(guest, days, room_occupancy)
        )

        unsorted.append(
            (
                (collation_key(room_key), collation_key(guest)),
                {
                    "arrival": format_local_datetime(window_start),
                    "departure": format_local_datetime(window_end),
                    "stay_start": min(bounds[0] for bounds in clipped).date(),
                    "stay_end": max(bounds[1] for bounds in clipped).date(),
                    "total_days": total_days,
                    "category": reference.category,
                    "person_name": guest,
                    "room_name": reference.room_name,
                    "room_id": reference.room_id,
                    "share_note": note,
                    "person_position": reference.person_position,
                    "price": price,
                    "breakfast_count": breakfast,
                    "lunch_count": lunch,
                    "dinner_count": dinner,
                    "total_meal_cost": meal_cost,
                    "total_living_cost": living,
                    "total_debt": living + meal_cost,
                    "hotel_name": reference.hotel_name,
                },
            )
        )

    unsorted.sort(key=lambda item: item[0])
    rows = [
        AllocationRow(index=index, **fields)
        for index, (_, fields) in enumerate(unsorted, start=1)
    ]
    logger.info(
        "Allocation completed | rows=%s | skipped=%s | range=%s..%s",
        len(rows),
        len(skipped),
        start_day.isoformat(),
        end_day.isoformat(),
    )
    return AllocationResult(rows=rows, skipped=skipped, range_start=start_day, range_end=end_day)


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _count(value: Any) -> int:
    amount = parse_amount(value)
    return int(amount) if amount is not None else 0


def booking_records_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[BookingRecord]:
    """Build records from plain camelCase rows such as earlier report output."""
    records: list[BookingRecord] = []
    for row in rows:
        records.append(
            BookingRecord(
                person_name=_optional_text(row.get("personName")) or "",
                room_id=_optional_text(row.get("roomId")),
                room_name=_optional_text(row.get("roomName")),
                arrival=row.get("arrival"),
                departure=row.get("departure"),
                category=_optional_text(row.get("category")),
                person_position=_optional_text(row.get("personPosition")),
                hotel_name=_optional_text(row.get("hotelName")),
                total_days=parse_amount(row.get("totalDays")),
                total_living_cost=parse_amount(row.get("totalLivingCost")),
                price=parse_amount(row.get("price")),
                breakfast_count=_count(row.get("breakfastCount")),
                lunch_count=_count(row.get("lunchCount")),
                dinner_count=_count(row.get("dinnerCount")),
                total_meal_cost=parse_amount(row.get("totalMealCost")) or 0.0,
            )
        )
    return records
