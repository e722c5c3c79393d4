"""HTTP controller layer for billing register generation and saved reports."""

from __future__ import annotations

from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from crewstay.controllers.dependencies import get_report_service
from crewstay.domain.models import SavedReport
from crewstay.services.report_service import (
    POSITION_GROUP_ALL,
    POSITION_GROUPS,
    SEPARATOR_DISPATCHER,
    SEPARATORS,
    EntityNotFoundError,
    ReportError,
    ReportFilter,
    ReportNotFoundError,
    ReportOptions,
    ReportService,
    ReportValidationError,
    UnsupportedReportFormatError,
)
from crewstay.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReportFilterRequest(CamelModel):
    start_date: str = Field(min_length=1)
    end_date: str = Field(min_length=1)
    airline_id: Optional[int] = Field(default=None, gt=0)
    hotel_id: Optional[int] = Field(default=None, gt=0)
    airport_id: Optional[int] = Field(default=None, gt=0)
    person_name: Optional[str] = None
    position_group: str = POSITION_GROUP_ALL
    archived: Optional[bool] = None

    @field_validator("position_group")
    @classmethod
    def validate_position_group(cls, value: str) -> str:
        if value not in POSITION_GROUPS:
            raise ValueError(f"position_group must be one of {', '.join(POSITION_GROUPS)}")
        return value

    def to_filter(self) -> ReportFilter:
        return ReportFilter(
            start=self.start_date,
            end=self.end_date,
            airline_id=self.airline_id,
            hotel_id=self.hotel_id,
            airport_id=self.airport_id,
            person_name=self.person_name,
            position_group=self.position_group,
            archived=self.archived,
        )


class ReportPreviewRequest(ReportFilterRequest):
    report_type: Literal["airline", "hotel"]
    share_rooms: bool = False


class CreateReportRequest(ReportFilterRequest):
    report_format: Optional[str] = Field(default=None, alias="format")
    include_meal: bool = True
    include_living: bool = True
    share_rooms: bool = False
    separator: str = SEPARATOR_DISPATCHER

    @field_validator("separator")
    @classmethod
    def validate_separator(cls, value: str) -> str:
        if value not in SEPARATORS:
            raise ValueError(f"separator must be one of {', '.join(SEPARATORS)}")
        return value

    def to_options(self) -> ReportOptions:
        return ReportOptions(
            fmt=self.report_format,
            include_meal=self.include_meal,
            include_living=self.include_living,
            share_rooms=self.share_rooms,
            separator=self.separator,
        )


class ReportTotalsResponse(CamelModel):
    total_living_cost: float
    total_meal_cost: float
    total_debt: float


class ReportPreviewResponse(CamelModel):
    report_type: str
    start_date: str
    end_date: str
    rows: list[dict[str, Any]]
    totals: ReportTotalsResponse


class SavedReportResponse(CamelModel):
    id: int = Field(gt=0)
    name: str
    url: str
    start_date: str
    end_date: str
    created_at: str
    separator: str
    hotel_id: Optional[int] = None
    airline_id: Optional[int] = None


def _saved_report_response(report: SavedReport) -> SavedReportResponse:
    return SavedReportResponse.model_validate(report.to_dict())


def _raise_http(exc: ReportError) -> None:
    if isinstance(exc, ReportValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, (EntityNotFoundError, ReportNotFoundError)):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, UnsupportedReportFormatError):
        code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    raise HTTPException(status_code=code, detail=str(exc)) from exc


@router.post("/preview", response_model=ReportPreviewResponse, status_code=status.HTTP_200_OK)
async def preview_report(
    payload: ReportPreviewRequest,
    service: ReportService = Depends(get_report_service),
) -> ReportPreviewResponse:
    """Build register rows without writing a file."""
    try:
        result = service.preview_report(
            payload.report_type,
            payload.to_filter(),
            share_rooms=payload.share_rooms,
        )
        return ReportPreviewResponse(
            report_type=result["report_type"],
            start_date=result["start_date"],
            end_date=result["end_date"],
            rows=result["rows"],
            totals=ReportTotalsResponse.model_validate(result["totals"]),
        )
    except ReportError as exc:
        _raise_http(exc)
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected report preview failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to build report preview",
        ) from exc


@router.post("/airline", response_model=SavedReportResponse, status_code=status.HTTP_201_CREATED)
async def create_airline_report(
    payload: CreateReportRequest,
    service: ReportService = Depends(get_report_service),
) -> SavedReportResponse:
    try:
        report = service.create_airline_report(payload.to_filter(), payload.to_options())
        return _saved_report_response(report)
    except ReportError as exc:
        _raise_http(exc)
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected airline report failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create airline report",
        ) from exc


@router.post("/hotel", response_model=SavedReportResponse, status_code=status.HTTP_201_CREATED)
async def create_hotel_report(
    payload: CreateReportRequest,
    service: ReportService = Depends(get_report_service),
) -> SavedReportResponse:
    try:
        report = service.create_hotel_report(payload.to_filter(), payload.to_options())
        return _saved_report_response(report)
    except ReportError as exc:
        _raise_http(exc)
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected hotel report failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create hotel report",
        ) from exc


@router.get("", response_model=list[SavedReportResponse], status_code=status.HTTP_200_OK)
async def list_reports(
    separator: Optional[str] = None,
    hotel_id: Optional[int] = None,
    airline_id: Optional[int] = None,
    service: ReportService = Depends(get_report_service),
) -> list[SavedReportResponse]:
    reports = service.list_reports(
        separator=separator,
        hotel_id=hotel_id,
        airline_id=airline_id,
    )
    return [_saved_report_response(report) for report in reports]


@router.get("/{report_id}/file", include_in_schema=False)
async def download_report(
    report_id: int,
    service: ReportService = Depends(get_report_service),
) -> FileResponse:
    try:
        report, path = service.get_report_file(report_id)
    except ReportError as exc:
        _raise_http(exc)
    return FileResponse(path=path, filename=report.name)


@router.delete("/{report_id}", response_model=SavedReportResponse, status_code=status.HTTP_200_OK)
async def delete_report(
    report_id: int,
    service: ReportService = Depends(get_report_service),
) -> SavedReportResponse:
    try:
        return _saved_report_response(service.delete_report(report_id))
    except ReportError as exc:
        _raise_http(exc)
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected report deletion failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete report",
        ) from exc
