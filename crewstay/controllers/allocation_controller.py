"""HTTP controller layer for the stateless billing calculators."""

from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from crewstay.controllers.dependencies import get_report_service
from crewstay.services.allocation_service import (
    AllocationError,
    booking_records_from_rows,
    build_allocation,
)
from crewstay.services.dates import parse_amount, parse_local_datetime
from crewstay.services.meal_service import (
    MealDayUpdate,
    MealPlanError,
    build_daily_meal_plan,
    meal_plan_totals,
    meal_windows_from_settings,
    merge_daily_meal_updates,
)
from crewstay.services.report_service import ReportService
from crewstay.services.stay_days import calculate_effective_days, calculate_total_days
from crewstay.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["allocation"])

Amount = Optional[Union[float, str]]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BookingRecordPayload(CamelModel):
    """One booking row as exported by the register; amounts may be formatted strings."""

    person_name: Optional[str] = None
    room_name: Optional[str] = None
    room_id: Optional[Union[int, str]] = None
    category: Optional[str] = None
    person_position: Optional[str] = None
    hotel_name: Optional[str] = None
    arrival: Optional[str] = None
    departure: Optional[str] = None
    total_days: Amount = None
    total_living_cost: Amount = None
    price: Amount = None
    breakfast_count: Amount = None
    lunch_count: Amount = None
    dinner_count: Amount = None
    total_meal_cost: Amount = None

    @field_validator("breakfast_count", "lunch_count", "dinner_count")
    @classmethod
    def validate_meal_count(cls, value: Amount) -> Amount:
        amount = parse_amount(value)
        if amount is not None and amount < 0:
            raise ValueError("meal counts must not be negative")
        return value


class AllocationRequest(CamelModel):
    records: list[BookingRecordPayload] = Field(default_factory=list)
    range_start: Optional[str] = None
    range_end: Optional[str] = None


class AllocationRowResponse(CamelModel):
    index: int = Field(gt=0)
    arrival: str
    departure: str
    stay_start: date
    stay_end: date
    total_days: float = Field(ge=0.0)
    category: Optional[str]
    person_name: str
    room_name: Optional[str]
    room_id: Optional[str]
    share_note: str
    person_position: Optional[str]
    price: Optional[float]
    breakfast_count: int = Field(ge=0)
    lunch_count: int = Field(ge=0)
    dinner_count: int = Field(ge=0)
    total_meal_cost: float
    total_living_cost: float
    total_debt: float
    hotel_name: Optional[str]


class SkippedRecordResponse(CamelModel):
    position: int = Field(gt=0)
    person_name: Optional[str]
    reason: str


class AllocationResponse(CamelModel):
    rows: list[AllocationRowResponse]
    skipped: list[SkippedRecordResponse]
    range_start: Optional[date]
    range_end: Optional[date]


class EffectiveDaysRequest(CamelModel):
    arrival: str = Field(min_length=1)
    departure: str = Field(min_length=1)
    window_start: str = Field(min_length=1)
    window_end: str = Field(min_length=1)


class EffectiveDaysResponse(CamelModel):
    effective_days: float = Field(ge=0.0)
    calendar_days: int


class MealDayPayload(CamelModel):
    day: date
    breakfast: Optional[int] = Field(default=None, ge=0)
    lunch: Optional[int] = Field(default=None, ge=0)
    dinner: Optional[int] = Field(default=None, ge=0)


class MealPlanRequest(CamelModel):
    arrival: str = Field(min_length=1)
    departure: str = Field(min_length=1)
    updates: list[MealDayPayload] = Field(default_factory=list)
    new_end: Optional[date] = None

    @field_validator("arrival", "departure")
    @classmethod
    def validate_parseable(cls, value: str) -> str:
        if parse_local_datetime(value) is None:
            raise ValueError(f"unparseable date-time {value!r}")
        return value


class MealDayResponse(CamelModel):
    day: date
    breakfast: int = Field(ge=0)
    lunch: int = Field(ge=0)
    dinner: int = Field(ge=0)


class MealPlanResponse(CamelModel):
    days: list[MealDayResponse]
    breakfast: int = Field(ge=0)
    lunch: int = Field(ge=0)
    dinner: int = Field(ge=0)


@router.post("/allocation", response_model=AllocationResponse, status_code=status.HTTP_200_OK)
async def allocate_room_costs(
    payload: AllocationRequest,
    service: ReportService = Depends(get_report_service),
) -> AllocationResponse:
    """Split room costs between guests sharing a room, day by day."""
    try:
        records = booking_records_from_rows(
            record.model_dump(by_alias=True) for record in payload.records
        )
        result = build_allocation(
            records,
            payload.range_start,
            payload.range_end,
            service.rules,
        )
        return AllocationResponse(
            rows=[AllocationRowResponse(**asdict(row)) for row in result.rows],
            skipped=[SkippedRecordResponse(**asdict(item)) for item in result.skipped],
            range_start=result.range_start,
            range_end=result.range_end,
        )
    except AllocationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected allocation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to allocate room costs",
        ) from exc


@router.post(
    "/effective_days",
    response_model=EffectiveDaysResponse,
    status_code=status.HTTP_200_OK,
)
async def effective_days(
    payload: EffectiveDaysRequest,
    service: ReportService = Depends(get_report_service),
) -> EffectiveDaysResponse:
    return EffectiveDaysResponse(
        effective_days=calculate_effective_days(
            payload.arrival,
            payload.departure,
            payload.window_start,
            payload.window_end,
            service.rules,
        ),
        calendar_days=calculate_total_days(payload.arrival, payload.departure),
    )


@router.post("/meal_plan", response_model=MealPlanResponse, status_code=status.HTTP_200_OK)
async def meal_plan(payload: MealPlanRequest) -> MealPlanResponse:
    """Derive per-day meal flags for a stay and apply manual overrides."""
    try:
        plan = build_daily_meal_plan(
            payload.arrival,
            payload.departure,
            meal_windows_from_settings(),
        )
        plan = merge_daily_meal_updates(
            plan,
            [MealDayUpdate(**item.model_dump()) for item in payload.updates],
            new_end=payload.new_end,
        )
        breakfast, lunch, dinner = meal_plan_totals(plan)
        return MealPlanResponse(
            days=[MealDayResponse(**asdict(item)) for item in plan],
            breakfast=breakfast,
            lunch=lunch,
            dinner=dinner,
        )
    except MealPlanError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
