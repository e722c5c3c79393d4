"""Meal plan construction and meal cost calculation for billing reports."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional

from crewstay.domain.constraints import parse_clock_window
from crewstay.domain.models import (
    AirlineContract,
    HotelPricing,
    MealCostSummary,
    MealDay,
    MealPrices,
    is_meal_free_category,
)
from crewstay.services.dates import each_day_inclusive, parse_local_datetime, to_calendar_day
from crewstay.services.pricing import (
    PriceResolution,
    resolve_airline_meal_prices,
    resolve_hotel_meal_prices,
)
from crewstay.utils.config import Settings, get_settings


REPORT_TYPE_AIRLINE = "airline"
REPORT_TYPE_HOTEL = "hotel"


class MealPlanError(Exception):
    """Raised when a meal plan update cannot be applied."""


@dataclass(frozen=True)
class MealWindows:
    """Serving windows, in minutes after midnight."""

    breakfast: tuple[int, int] = (7 * 60, 10 * 60)
    lunch: tuple[int, int] = (12 * 60, 15 * 60)
    dinner: tuple[int, int] = (18 * 60, 21 * 60)


@dataclass(frozen=True)
class MealDayUpdate:
    day: date
    breakfast: Optional[int] = None
    lunch: Optional[int] = None
    dinner: Optional[int] = None


def meal_windows_from_settings(settings: Optional[Settings] = None) -> MealWindows:
    resolved = settings or get_settings()
    return MealWindows(
        breakfast=parse_clock_window(resolved.meal_breakfast_window),
        lunch=parse_clock_window(resolved.meal_lunch_window),
        dinner=parse_clock_window(resolved.meal_dinner_window),
    )


def _served(
    arrival: datetime,
    departure: datetime,
    day: date,
    window: tuple[int, int],
) -> int:
    midnight = datetime(day.year, day.month, day.day)
    window_start = midnight + timedelta(minutes=window[0])
    window_end = midnight + timedelta(minutes=window[1])
    return 1 if arrival <= window_end and departure >= window_start else 0


def build_daily_meal_plan(
    arrival: Any,
    departure: Any,
    windows: MealWindows = MealWindows(),
) -> tuple[MealDay, ...]:
    """Flag each meal the guest is present for on every calendar day of the stay."""
    arrival_dt = parse_local_datetime(arrival)
    departure_dt = parse_local_datetime(departure)
    if arrival_dt is None or departure_dt is None or departure_dt < arrival_dt:
        return ()
    return tuple(
        MealDay(
            day=day,
            breakfast=_served(arrival_dt, departure_dt, day, windows.breakfast),
            lunch=_served(arrival_dt, departure_dt, day, windows.lunch),
            dinner=_served(arrival_dt, departure_dt, day, windows.dinner),
        )
        for day in each_day_inclusive(arrival_dt.date(), departure_dt.date())
    )


def merge_daily_meal_updates(
    plan: Iterable[MealDay],
    updates: Iterable[MealDayUpdate],
    new_end: Optional[date] = None,
) -> tuple[MealDay, ...]:
    """Apply per-day overrides, truncating the plan after `new_end` when given."""
    by_day: dict[date, MealDay] = {}
    for meal_day in plan:
        if new_end is not None and meal_day.day > new_end:
            continue
        by_day[meal_day.day] = meal_day

    for update in updates:
        if update.day in by_day:
            current = by_day[update.day]
        else:
            current = MealDay(day=update.day)
        merged = MealDay(
            day=update.day,
            breakfast=current.breakfast if update.breakfast is None else update.breakfast,
            lunch=current.lunch if update.lunch is None else update.lunch,
            dinner=current.dinner if update.dinner is None else update.dinner,
        )
        if min(merged.breakfast, merged.lunch, merged.dinner) < 0:
            raise MealPlanError(f"Meal counts for {update.day.isoformat()} must not be negative")
        by_day[update.day] = merged

    return tuple(by_day[day] for day in sorted(by_day))


def meal_plan_totals(plan: Iterable[MealDay]) -> tuple[int, int, int]:
    breakfast = lunch = dinner = 0
    for meal_day in plan:
        breakfast += meal_day.breakfast
        lunch += meal_day.lunch
        dinner += meal_day.dinner
    return breakfast, lunch, dinner


def resolve_report_meal_prices(
    report_type: str,
    *,
    airport_id: Optional[int] = None,
    contracts: Iterable[AirlineContract] = (),
    hotel: Optional[HotelPricing] = None,
) -> PriceResolution[MealPrices]:
    if report_type == REPORT_TYPE_AIRLINE:
        return resolve_airline_meal_prices(contracts, airport_id)
    if report_type == REPORT_TYPE_HOTEL:
        return resolve_hotel_meal_prices(hotel)
    return PriceResolution.unresolved()


def calculate_meal_cost(
    meal_plan: Iterable[MealDay],
    window_start: Any,
    window_end: Any,
    category: Optional[str],
    meal_prices: PriceResolution[MealPrices],
) -> MealCostSummary:
    """Count meals served inside the window and price them."""
    start = to_calendar_day(window_start)
    end = to_calendar_day(window_end)

    breakfast_count = lunch_count = dinner_count = 0
    if start is not None and end is not None and not is_meal_free_category(category):
        if start > end:
            start, end = end, start
        for meal_day in meal_plan:
            if start <= meal_day.day <= end:
                breakfast_count += meal_day.breakfast
                lunch_count += meal_day.lunch
                dinner_count += meal_day.dinner

    prices = meal_prices.or_default(MealPrices())
    total_meal_cost = (
        breakfast_count * prices.breakfast
        + lunch_count * prices.lunch
        + dinner_count * prices.dinner
    )
    return MealCostSummary(
        total_meal_cost=float(total_meal_cost),
        breakfast_count=breakfast_count,
        lunch_count=lunch_count,
        dinner_count=dinner_count,
        price_resolved=meal_prices.is_resolved,
    )
