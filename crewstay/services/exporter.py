"""Spreadsheet export of billing registers (xlsx via openpyxl, csv via pandas)."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from crewstay.services.formatting import format_currency
from crewstay.utils.logger import get_logger


logger = get_logger(__name__)

SUPPORTED_FORMATS = ("xlsx", "csv")
TOTAL_LABEL = "ИТОГО:"
HEADER_ROW = 5

_THIN = Side(style="thin")
_BORDER = Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN)
_FONT = Font(name="Times New Roman", size=12)
_HEADER_FONT = Font(name="Times New Roman", size=12, bold=True)
_TITLE_FONT = Font(name="Times New Roman", size=14, bold=True)
_HEADER_FILL = PatternFill(start_color="999999", end_color="999999", fill_type="solid")
_SHEET_NAME_FORBIDDEN = re.compile(r"[\[\]:*?/\\]")


class ExportError(Exception):
    """Raised when a register cannot be written."""


class UnsupportedExportFormatError(ExportError):
    """Raised for formats other than xlsx and csv."""


@dataclass(frozen=True)
class ExportColumn:
    key: str
    header: str
    width: int
    money: bool = False


@dataclass(frozen=True)
class ExportContext:
    """Header block and column switches of one register."""

    sheet_name: str
    title: str
    company_full_name: str = ""
    contract_name: str = ""
    include_position: bool = True
    include_meal: bool = True
    include_living: bool = True


BASE_COLUMNS = (
    ExportColumn("index", "п/п", 6),
    ExportColumn("arrival", "Дата/время заезда", 25),
    ExportColumn("departure", "Дата/время выезда", 25),
    ExportColumn("totalDays", "Количество суток", 18),
    ExportColumn("category", "Категория номера", 30),
    ExportColumn("personName", "ФИО", 30),
    ExportColumn("roomName", "Комната", 18),
    ExportColumn("shareNote", "Вид проживания", 24),
)
POSITION_COLUMN = ExportColumn("personPosition", "Должность", 20)
MEAL_COLUMNS = (
    ExportColumn("breakfastCount", "Завтрак", 10),
    ExportColumn("lunchCount", "Обед", 10),
    ExportColumn("dinnerCount", "Ужин", 10),
    ExportColumn("totalMealCost", "Стоимость питания", 18, money=True),
)
LIVING_COLUMNS = (ExportColumn("totalLivingCost", "Стоимость проживания", 18, money=True),)
TAIL_COLUMNS = (
    ExportColumn("totalDebt", "Итоговая стоимость", 18, money=True),
    ExportColumn("hotelName", "Гостиница", 30),
)


def _amount(value: Any) -> float:
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    return number if number == number else 0.0


def sheet_title(name: str) -> str:
    cleaned = _SHEET_NAME_FORBIDDEN.sub(" ", name or "").strip()
    return (cleaned or "Отчет")[:31]


class ReportExporter:
    """Turns report rows (camelCase mappings) into a styled register file."""

    def columns(self, context: ExportContext) -> list[ExportColumn]:
        columns = list(BASE_COLUMNS)
        if context.include_position:
            columns.append(POSITION_COLUMN)
        if context.include_meal:
            columns.extend(MEAL_COLUMNS)
        if context.include_living:
            columns.extend(LIVING_COLUMNS)
        columns.extend(TAIL_COLUMNS)
        return columns

    def _debt(self, row: Mapping[str, Any], context: ExportContext) -> float:
        meal = _amount(row.get("totalMealCost")) if context.include_meal else 0.0
        living = _amount(row.get("totalLivingCost")) if context.include_living else 0.0
        return meal + living

    def build_frame(
        self,
        rows: Sequence[Mapping[str, Any]],
        context: ExportContext,
    ) -> pd.DataFrame:
        """One column per register field plus a trailing totals row."""
        columns = self.columns(context)
        records: list[dict[str, Any]] = []
        for row in rows:
            record: dict[str, Any] = {}
            for column in columns:
                if column.key == "totalDebt":
                    record[column.key] = self._debt(row, context)
                elif column.money:
                    record[column.key] = _amount(row.get(column.key))
                else:
                    record[column.key] = row.get(column.key)
            records.append(record)

        frame = pd.DataFrame(records, columns=[column.key for column in columns])
        label_key = POSITION_COLUMN.key if context.include_position else "shareNote"
        totals: dict[str, Any] = {label_key: TOTAL_LABEL}
        for column in columns:
            if column.money:
                totals[column.key] = float(frame[column.key].sum()) if len(frame) else 0.0
        frame.loc[len(frame)] = [totals.get(key) for key in frame.columns]
        return frame

    def export(
        self,
        rows: Sequence[Mapping[str, Any]],
        path: Path,
        context: ExportContext,
        fmt: str = "xlsx",
    ) -> Path:
        if fmt not in SUPPORTED_FORMATS:
            raise UnsupportedExportFormatError(f"Unsupported report format: {fmt}")
        path.parent.mkdir(parents=True, exist_ok=True)
        frame = self.build_frame(rows, context)
        columns = self.columns(context)
        if fmt == "csv":
            self._write_csv(frame, columns, path)
        else:
            self._write_xlsx(frame, columns, path, context)
        logger.info("Register exported | path=%s | rows=%s", path, len(rows))
        return path

    def _write_csv(
        self,
        frame: pd.DataFrame,
        columns: Sequence[ExportColumn],
        path: Path,
    ) -> None:
        output = frame.copy()
        for column in columns:
            if column.money:
                output[column.key] = output[column.key].map(format_currency)
        output.columns = [column.header for column in columns]
        output.to_csv(path, index=False, sep=";", encoding="utf-8-sig")

    def _write_xlsx(
        self,
        frame: pd.DataFrame,
        columns: Sequence[ExportColumn],
        path: Path,
        context: ExportContext,
    ) -> None:
        output = frame.copy()
        output.columns = [column.header for column in columns]
        sheet_name = sheet_title(context.sheet_name)
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            output.to_excel(writer, sheet_name=sheet_name, startrow=HEADER_ROW - 1, index=False)
            sheet = writer.sheets[sheet_name]
            last_column = get_column_letter(len(columns))

            sheet.merge_cells("A1:D1")
            sheet["A1"] = context.company_full_name
            sheet["A1"].font = _TITLE_FONT
            sheet["A1"].alignment = Alignment(horizontal="left")
            if len(columns) > 5:
                sheet.merge_cells(f"E1:{last_column}1")
            sheet["E1"] = context.contract_name
            sheet["E1"].font = _HEADER_FONT
            sheet["E1"].alignment = Alignment(horizontal="right")

            sheet.merge_cells(f"A4:{last_column}4")
            sheet["A4"] = context.title
            sheet["A4"].font = _HEADER_FONT
            sheet["A4"].alignment = Alignment(horizontal="left")

            for position, column in enumerate(columns, start=1):
                letter = get_column_letter(position)
                sheet.column_dimensions[letter].width = column.width
                header = sheet.cell(row=HEADER_ROW, column=position)
                header.font = _HEADER_FONT
                header.fill = _HEADER_FILL
                header.border = _BORDER
                header.alignment = Alignment(wrap_text=True, vertical="center")
            sheet.row_dimensions[HEADER_ROW].height = 40

            last_row = HEADER_ROW + len(output)
            for row_number in range(HEADER_ROW + 1, last_row + 1):
                for position, column in enumerate(columns, start=1):
                    cell = sheet.cell(row=row_number, column=position)
                    cell.font = _HEADER_FONT if row_number == last_row else _FONT
                    cell.border = _BORDER
                    cell.alignment = Alignment(wrap_text=True, vertical="top", horizontal="left")
                    if column.money:
                        cell.number_format = "#,##0.00"


def register_title(kind: str, name: str, city: Optional[str] = None) -> str:
    if kind == "hotel":
        return f'РЕЕСТР № # оказанных услуг по размещению экипажа в отеле "{name}"'
    suffix = f" в г. {city}" if city else ""
    return f'РЕЕСТР № # оказанных услуг по размещению экипажа авиакомпании "{name}"{suffix}'
