"""Domain models for stay billing, room cost allocation and saved reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping, Optional


ROOM_CATEGORY_ORDER = (
    "studio",
    "apartment",
    "luxe",
    "onePlace",
    "twoPlace",
    "threePlace",
    "fourPlace",
    "fivePlace",
    "sixPlace",
    "sevenPlace",
    "eightPlace",
    "ninePlace",
    "tenPlace",
)

CATEGORY_LABELS = {
    "studio": "Студия",
    "apartment": "Апартаменты",
    "luxe": "Люкс",
    "onePlace": "Одноместный",
    "twoPlace": "Двухместный",
    "threePlace": "Трёхместный",
    "fourPlace": "Четырёхместный",
    "fivePlace": "Пятиместный",
    "sixPlace": "Шестиместный",
    "sevenPlace": "Семиместный",
    "eightPlace": "Восьмиместный",
    "ninePlace": "Девятиместный",
    "tenPlace": "Десятиместный",
}

# Rooms with their own kitchen are billed without a meal plan.
NO_MEAL_CATEGORIES = frozenset({"apartment", "studio"})

NOT_SPECIFIED = "Не указано"


def category_code(value: Optional[str]) -> Optional[str]:
    """Map a category code or its display label back to the code."""
    if value is None:
        return None
    if value in CATEGORY_LABELS:
        return value
    for code, label in CATEGORY_LABELS.items():
        if label == value:
            return code
    return value


def is_meal_free_category(value: Optional[str]) -> bool:
    return category_code(value) in NO_MEAL_CATEGORIES


@dataclass(frozen=True)
class ReportWindow:
    start: datetime
    end: datetime

    def normalized(self) -> "ReportWindow":
        if self.start > self.end:
            return ReportWindow(start=self.end, end=self.start)
        return self

    @property
    def start_day(self) -> date:
        return self.start.date()

    @property
    def end_day(self) -> date:
        return self.end.date()


@dataclass(frozen=True)
class MealPrices:
    breakfast: float = 0.0
    lunch: float = 0.0
    dinner: float = 0.0


@dataclass(frozen=True)
class MealDay:
    day: date
    breakfast: int = 0
    lunch: int = 0
    dinner: int = 0


@dataclass(frozen=True)
class MealCostSummary:
    total_meal_cost: float
    breakfast_count: int
    lunch_count: int
    dinner_count: int
    price_resolved: bool = True


@dataclass(frozen=True)
class BookingRecord:
    """One guest's stay in one room as fed into the room cost allocator.

    `arrival` and `departure` are kept raw; the allocator normalizes them and
    reports records it cannot parse instead of failing the run.
    """

    person_name: str
    room_id: Optional[str]
    room_name: Optional[str]
    arrival: Any
    departure: Any
    category: Optional[str] = None
    person_position: Optional[str] = None
    hotel_name: Optional[str] = None
    total_days: Optional[float] = None
    total_living_cost: Optional[float] = None
    price: Optional[float] = None
    breakfast_count: int = 0
    lunch_count: int = 0
    dinner_count: int = 0
    total_meal_cost: float = 0.0

    @property
    def room_key(self) -> Optional[str]:
        if self.room_id:
            return str(self.room_id)
        if self.room_name:
            return str(self.room_name)
        return None

    def daily_rate(self) -> Optional[float]:
        """Explicit price, else living cost spread over the billed days."""
        if self.price is not None:
            return float(self.price)
        if self.total_living_cost is None or not self.total_days:
            return None
        return float(self.total_living_cost) / float(self.total_days)


@dataclass(frozen=True)
class AllocationRow:
    index: int
    arrival: str
    departure: str
    stay_start: date
    stay_end: date
    total_days: float
    category: Optional[str]
    person_name: str
    room_name: Optional[str]
    room_id: Optional[str]
    share_note: str
    person_position: Optional[str]
    price: Optional[float]
    breakfast_count: int
    lunch_count: int
    dinner_count: int
    total_meal_cost: float
    total_living_cost: float
    total_debt: float
    hotel_name: Optional[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "arrival": self.arrival,
            "departure": self.departure,
            "stayStart": self.stay_start.isoformat(),
            "stayEnd": self.stay_end.isoformat(),
            "totalDays": self.total_days,
            "category": self.category,
            "personName": self.person_name,
            "roomName": self.room_name,
            "roomId": self.room_id,
            "shareNote": self.share_note,
            "personPosition": self.person_position,
            "price": self.price,
            "breakfastCount": self.breakfast_count,
            "lunchCount": self.lunch_count,
            "dinnerCount": self.dinner_count,
            "totalMealCost": self.total_meal_cost,
            "totalLivingCost": self.total_living_cost,
            "totalDebt": self.total_debt,
            "hotelName": self.hotel_name,
        }


@dataclass(frozen=True)
class SkippedRecord:
    position: int
    person_name: Optional[str]
    reason: str


@dataclass(frozen=True)
class AllocationResult:
    rows: list[AllocationRow]
    skipped: list[SkippedRecord]
    range_start: Optional[date]
    range_end: Optional[date]


@dataclass(frozen=True)
class AirlineContract:
    contract_id: int
    airport_ids: frozenset[int]
    category_prices: Mapping[str, float]
    meal_prices: Optional[MealPrices]
    name: str = ""


@dataclass(frozen=True)
class HotelPricing:
    hotel_id: int
    name: str
    city: Optional[str]
    category_prices: Mapping[str, float]
    meal_prices: Optional[MealPrices]


@dataclass(frozen=True)
class StayRequest:
    """A crew member's hotel stay as loaded for billing."""

    request_id: int
    person_name: Optional[str]
    person_position: Optional[str]
    hotel_id: Optional[int]
    hotel_name: Optional[str]
    airline_id: Optional[int]
    airport_id: Optional[int]
    room_id: Optional[int]
    room_name: Optional[str]
    room_price: Optional[float]
    room_category: Optional[str]
    arrival: datetime
    departure: datetime
    status: str
    meal_plan: tuple[MealDay, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ReportRow:
    index: int
    request_id: int
    hotel_name: str
    arrival: str
    departure: str
    total_days: float
    category: Optional[str]
    person_name: str
    person_position: str
    room_name: str
    room_id: str
    price: Optional[float]
    breakfast_count: int
    lunch_count: int
    dinner_count: int
    total_meal_cost: float
    total_living_cost: float
    total_debt: float
    living_price_resolved: bool = True
    meal_price_resolved: bool = True
    share_note: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "id": self.request_id,
            "hotelName": self.hotel_name,
            "arrival": self.arrival,
            "departure": self.departure,
            "totalDays": self.total_days,
            "category": self.category,
            "personName": self.person_name,
            "personPosition": self.person_position,
            "roomName": self.room_name,
            "roomId": self.room_id,
            "price": self.price,
            "breakfastCount": self.breakfast_count,
            "lunchCount": self.lunch_count,
            "dinnerCount": self.dinner_count,
            "totalMealCost": self.total_meal_cost,
            "totalLivingCost": self.total_living_cost,
            "totalDebt": self.total_debt,
            "livingPriceResolved": self.living_price_resolved,
            "mealPriceResolved": self.meal_price_resolved,
            "shareNote": self.share_note,
        }


@dataclass(frozen=True)
class SavedReport:
    report_id: int
    name: str
    url: str
    start_date: str
    end_date: str
    created_at: str
    separator: str
    hotel_id: Optional[int] = None
    airline_id: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.report_id,
            "name": self.name,
            "url": self.url,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "createdAt": self.created_at,
            "separator": self.separator,
            "hotelId": self.hotel_id,
            "airlineId": self.airline_id,
        }
