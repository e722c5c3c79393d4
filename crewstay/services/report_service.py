"""Billing register workflow: load stays, price them, export and record the report."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

from crewstay.domain.constraints import DEFAULT_STAY_RULES, StayRules, stay_rules_from_clock
from crewstay.domain.models import (
    NOT_SPECIFIED,
    AirlineContract,
    AllocationResult,
    HotelPricing,
    ReportRow,
    ReportWindow,
    SavedReport,
    StayRequest,
)
from crewstay.repository.data_repository import DataRepository
from crewstay.services.allocation_service import booking_records_from_rows, build_allocation
from crewstay.services.dates import format_local_datetime, parse_local_datetime
from crewstay.services.exporter import (
    SUPPORTED_FORMATS,
    ExportContext,
    ReportExporter,
    register_title,
)
from crewstay.services.formatting import category_label, sort_report_rows
from crewstay.services.meal_service import (
    REPORT_TYPE_AIRLINE,
    REPORT_TYPE_HOTEL,
    calculate_meal_cost,
    resolve_report_meal_prices,
)
from crewstay.services.pricing import (
    PriceResolution,
    resolve_airline_room_price,
    resolve_hotel_room_price,
)
from crewstay.services.stay_days import calculate_effective_days
from crewstay.utils.config import Settings, get_settings
from crewstay.utils.logger import get_logger


logger = get_logger(__name__)

POSITION_GROUP_ALL = "all"
POSITION_GROUP_SQUADRON = "squadron"
POSITION_GROUP_TECHNICIAN = "technician"
POSITION_GROUPS = (POSITION_GROUP_ALL, POSITION_GROUP_SQUADRON, POSITION_GROUP_TECHNICIAN)

TECHNICIAN_POSITIONS = frozenset({"Техник", "Инженер"})
SQUADRON_POSITIONS = frozenset(
    {
        "КАЭ",
        "КВС",
        "ВП",
        "СБ",
        "ИПБ",
        "БП",
        "СА",
        "Директор",
        "Заместитель директора",
        "Нач. СБП",
        "Нач. ЛМО",
        "ЛД",
    }
)

SEPARATOR_DISPATCHER = "dispatcher"
SEPARATORS = (SEPARATOR_DISPATCHER, REPORT_TYPE_AIRLINE, REPORT_TYPE_HOTEL)

_FILE_NAME_UNSAFE = re.compile(r"[^\w\-]+")


class ReportError(Exception):
    """Base failure of the report workflow."""


class ReportValidationError(ReportError):
    """Raised when report parameters are invalid."""


class ReportNotFoundError(ReportError):
    """Raised when a saved report id does not exist."""


class UnsupportedReportFormatError(ReportError):
    """Raised for export formats the register writer does not produce."""


class EntityNotFoundError(ReportError):
    """Raised when the airline or hotel a report is built for does not exist."""


@dataclass(frozen=True)
class ReportFilter:
    start: Any
    end: Any
    airline_id: Optional[int] = None
    hotel_id: Optional[int] = None
    airport_id: Optional[int] = None
    person_name: Optional[str] = None
    position_group: str = POSITION_GROUP_ALL
    archived: Optional[bool] = None


@dataclass(frozen=True)
class ReportOptions:
    fmt: Optional[str] = None
    include_meal: bool = True
    include_living: bool = True
    share_rooms: bool = False
    separator: str = SEPARATOR_DISPATCHER


def filter_by_position_group(stays: Iterable[StayRequest], group: str) -> list[StayRequest]:
    if group == POSITION_GROUP_SQUADRON:
        return [stay for stay in stays if stay.person_position in SQUADRON_POSITIONS]
    if group == POSITION_GROUP_TECHNICIAN:
        return [stay for stay in stays if stay.person_position in TECHNICIAN_POSITIONS]
    return list(stays)


def resolve_living_price(
    stay: StayRequest,
    report_type: str,
    contracts: Sequence[AirlineContract] = (),
    hotel: Optional[HotelPricing] = None,
) -> PriceResolution[float]:
    if report_type == REPORT_TYPE_AIRLINE:
        return resolve_airline_room_price(contracts, stay.airport_id, stay.room_category)
    return resolve_hotel_room_price(hotel, stay.room_category, stay.room_price)


def aggregate_request_reports(
    stays: Iterable[StayRequest],
    report_type: str,
    window: ReportWindow,
    *,
    contracts: Sequence[AirlineContract] = (),
    hotel: Optional[HotelPricing] = None,
    rules: StayRules = DEFAULT_STAY_RULES,
) -> list[ReportRow]:
    """Price every stay that touches the window, one row per stay.

    Stays without a position are left out. Arrival and departure are clipped
    to the window before days, living cost and meals are computed.
    """
    if report_type not in (REPORT_TYPE_AIRLINE, REPORT_TYPE_HOTEL):
        raise ReportValidationError(f"Unknown report type: {report_type}")
    window = window.normalized()

    rows: list[ReportRow] = []
    for stay in stays:
        if not stay.person_position:
            continue
        arrival = max(stay.arrival, window.start)
        departure = min(stay.departure, window.end)
        days = calculate_effective_days(
            stay.arrival,
            stay.departure,
            window.start,
            window.end,
            rules,
        )
        living_price = resolve_living_price(stay, report_type, contracts, hotel)
        price = living_price.or_default(0.0)
        living_cost = days * price

        meal_prices = resolve_report_meal_prices(
            report_type,
            airport_id=stay.airport_id,
            contracts=contracts,
            hotel=hotel,
        )
        meals = calculate_meal_cost(
            stay.meal_plan,
            arrival,
            departure,
            stay.room_category,
            meal_prices,
        )

        rows.append(
            ReportRow(
                index=0,
                request_id=stay.request_id,
                hotel_name=stay.hotel_name or NOT_SPECIFIED,
                arrival=format_local_datetime(arrival),
                departure=format_local_datetime(departure),
                total_days=days,
                category=category_label(stay.room_category),
                person_name=stay.person_name or NOT_SPECIFIED,
                person_position=stay.person_position,
                room_name=stay.room_name or "",
                room_id="" if stay.room_id is None else str(stay.room_id),
                price=living_price.value,
                breakfast_count=meals.breakfast_count,
                lunch_count=meals.lunch_count,
                dinner_count=meals.dinner_count,
                total_meal_cost=meals.total_meal_cost,
                total_living_cost=living_cost,
                total_debt=living_cost + meals.total_meal_cost,
                living_price_resolved=living_price.is_resolved,
                meal_price_resolved=meals.price_resolved,
            )
        )
    return [
        replace(row, index=index)
        for index, row in enumerate(sort_report_rows(rows), start=1)
    ]


def share_room_rows(
    rows: Sequence[ReportRow],
    window: ReportWindow,
    rules: StayRules = DEFAULT_STAY_RULES,
) -> AllocationResult:
    """Re-split per-stay rows by shared room occupancy over the window."""
    window = window.normalized()
    records = booking_records_from_rows(row.to_dict() for row in rows)
    return build_allocation(records, window.start, window.end, rules)


def report_totals(rows: Iterable[dict[str, Any]]) -> dict[str, float]:
    living = meal = debt = 0.0
    for row in rows:
        living += float(row.get("totalLivingCost") or 0.0)
        meal += float(row.get("totalMealCost") or 0.0)
        debt += float(row.get("totalDebt") or 0.0)
    return {"totalLivingCost": living, "totalMealCost": meal, "totalDebt": debt}


class ReportService:
    """Builds billing registers for airlines and hotels and keeps their records."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        exporter: Optional[ReportExporter] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._exporter = exporter or ReportExporter()
        self._rules = stay_rules_from_clock(
            self._settings.stay_early_arrival_time,
            self._settings.stay_check_in_time,
            self._settings.stay_check_out_time,
            self._settings.stay_late_departure_time,
        )

    @property
    def rules(self) -> StayRules:
        return self._rules

    def _window(self, report_filter: ReportFilter) -> ReportWindow:
        try:
            start = parse_local_datetime(report_filter.start)
            end = parse_local_datetime(report_filter.end)
        except TypeError as exc:
            raise ReportValidationError(str(exc)) from exc
        if start is None or end is None:
            raise ReportValidationError("Report start and end dates are required")
        return ReportWindow(start=start, end=end).normalized()

    def build_rows(
        self,
        report_type: str,
        report_filter: ReportFilter,
        share_rooms: bool = False,
    ) -> tuple[ReportWindow, list[dict[str, Any]]]:
        """Return the window and the register rows as camelCase dicts."""
        if report_filter.position_group not in POSITION_GROUPS:
            raise ReportValidationError(
                f"position_group must be one of {', '.join(POSITION_GROUPS)}"
            )
        window = self._window(report_filter)

        contracts: list[AirlineContract] = []
        hotel: Optional[HotelPricing] = None
        if report_type == REPORT_TYPE_AIRLINE:
            if report_filter.airline_id is None:
                raise ReportValidationError("Airline ID is required for this report")
            if self._repository.get_airline(report_filter.airline_id) is None:
                raise EntityNotFoundError(f"Airline {report_filter.airline_id} not found")
            contracts = self._repository.list_airline_contracts(report_filter.airline_id)
        elif report_type == REPORT_TYPE_HOTEL:
            if report_filter.hotel_id is None:
                raise ReportValidationError("Hotel ID is required for this report")
            hotel = self._repository.get_hotel_pricing(report_filter.hotel_id)
            if hotel is None:
                raise EntityNotFoundError(f"Hotel {report_filter.hotel_id} not found")
        else:
            raise ReportValidationError(f"Unknown report type: {report_type}")

        stays = self._repository.list_stays_for_report(
            window_start=window.start,
            window_end=window.end,
            statuses=self._settings.report_statuses,
            hotel_id=report_filter.hotel_id,
            airline_id=report_filter.airline_id,
            airport_id=report_filter.airport_id,
            person_name=report_filter.person_name,
            archived=report_filter.archived,
        )
        stays = filter_by_position_group(stays, report_filter.position_group)
        rows = aggregate_request_reports(
            stays,
            report_type,
            window,
            contracts=contracts,
            hotel=hotel,
            rules=self._rules,
        )
        if share_rooms:
            result = share_room_rows(rows, window, self._rules)
            return window, [row.to_dict() for row in result.rows]
        return window, [row.to_dict() for row in rows]

    def preview_report(
        self,
        report_type: str,
        report_filter: ReportFilter,
        share_rooms: bool = False,
    ) -> dict[str, Any]:
        window, rows = self.build_rows(report_type, report_filter, share_rooms)
        return {
            "report_type": report_type,
            "start_date": window.start.isoformat(),
            "end_date": window.end.isoformat(),
            "rows": rows,
            "totals": report_totals(rows),
        }

    def create_airline_report(
        self,
        report_filter: ReportFilter,
        options: ReportOptions = ReportOptions(),
    ) -> SavedReport:
        fmt = self._format(options)
        window, rows = self.build_rows(REPORT_TYPE_AIRLINE, report_filter, options.share_rooms)
        airline = self._repository.get_airline(report_filter.airline_id)
        contracts = self._repository.list_airline_contracts(report_filter.airline_id)
        airport = (
            self._repository.get_airport(report_filter.airport_id)
            if report_filter.airport_id is not None
            else None
        )
        context = ExportContext(
            sheet_name=airline.name,
            title=register_title(REPORT_TYPE_AIRLINE, airline.name, airport.city if airport else None),
            company_full_name=airline.full_name or airline.name,
            contract_name=contracts[0].name if contracts else "",
            include_position=True,
            include_meal=options.include_meal,
            include_living=options.include_living,
        )
        return self._write_and_record(
            prefix="airline_report",
            window=window,
            rows=rows,
            context=context,
            fmt=fmt,
            separator=options.separator,
            airline_id=report_filter.airline_id,
        )

    def create_hotel_report(
        self,
        report_filter: ReportFilter,
        options: ReportOptions = ReportOptions(),
    ) -> SavedReport:
        fmt = self._format(options)
        window, rows = self.build_rows(REPORT_TYPE_HOTEL, report_filter, options.share_rooms)
        hotel = self._repository.get_hotel_pricing(report_filter.hotel_id)
        context = ExportContext(
            sheet_name=hotel.name,
            title=register_title(REPORT_TYPE_HOTEL, hotel.name),
            company_full_name=hotel.name,
            include_position=False,
            include_meal=options.include_meal,
            include_living=options.include_living,
        )
        safe_name = _FILE_NAME_UNSAFE.sub("_", hotel.name).strip("_") or str(hotel.hotel_id)
        return self._write_and_record(
            prefix=f"hotel_report-{safe_name}",
            window=window,
            rows=rows,
            context=context,
            fmt=fmt,
            separator=options.separator,
            hotel_id=report_filter.hotel_id,
        )

    def list_reports(
        self,
        separator: Optional[str] = None,
        hotel_id: Optional[int] = None,
        airline_id: Optional[int] = None,
    ) -> list[SavedReport]:
        return self._repository.list_saved_reports(
            separator=separator,
            hotel_id=hotel_id,
            airline_id=airline_id,
        )

    def report_path(self, report: SavedReport) -> Path:
        return Path(self._settings.reports_dir) / report.name

    def get_report_file(self, report_id: int) -> tuple[SavedReport, Path]:
        report = self._repository.get_saved_report(report_id)
        if report is None:
            raise ReportNotFoundError(f"Report {report_id} not found")
        path = self.report_path(report)
        if not path.exists():
            raise ReportNotFoundError(f"Report file {report.name} is missing")
        return report, path

    def delete_report(self, report_id: int) -> SavedReport:
        """Remove the saved record and its file."""
        report = self._repository.get_saved_report(report_id)
        if report is None:
            raise ReportNotFoundError(f"Report {report_id} not found")
        self.report_path(report).unlink(missing_ok=True)
        self._repository.delete_saved_report(report_id)
        logger.info("Report deleted | report_id=%s | name=%s", report_id, report.name)
        return report

    def _format(self, options: ReportOptions) -> str:
        fmt = (options.fmt or self._settings.report_default_format).lower()
        if fmt not in SUPPORTED_FORMATS:
            raise UnsupportedReportFormatError(f"Unsupported report format: {fmt}")
        if options.separator not in SEPARATORS:
            raise ReportValidationError(f"separator must be one of {', '.join(SEPARATORS)}")
        return fmt

    def _write_and_record(
        self,
        *,
        prefix: str,
        window: ReportWindow,
        rows: Sequence[dict[str, Any]],
        context: ExportContext,
        fmt: str,
        separator: str,
        hotel_id: Optional[int] = None,
        airline_id: Optional[int] = None,
    ) -> SavedReport:
        reports_dir = Path(self._settings.reports_dir)
        stamp = time.time_ns() // 1_000_000
        name = self._report_name(prefix, window, stamp, fmt)
        while (reports_dir / name).exists():
            stamp += 1
            name = self._report_name(prefix, window, stamp, fmt)

        self._exporter.export(rows, reports_dir / name, context, fmt)
        report = self._repository.save_report(
            name=name,
            url=f"{self._settings.reports_url_prefix.rstrip('/')}/{name}",
            start_date=window.start.isoformat(),
            end_date=window.end.isoformat(),
            separator=separator,
            hotel_id=hotel_id,
            airline_id=airline_id,
        )
        logger.info(
            "Report created | report_id=%s | name=%s | rows=%s",
            report.report_id,
            name,
            len(rows),
        )
        return report

    @staticmethod
    def _report_name(prefix: str, window: ReportWindow, stamp: int, fmt: str) -> str:
        start = window.start.strftime("%Y-%m-%d")
        end = window.end.strftime("%Y-%m-%d")
        return f"{prefix}_{start}-{end}_{stamp}.{fmt}"
