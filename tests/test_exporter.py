from __future__ import annotations

import pandas as pd
import pytest
from openpyxl import load_workbook

from crewstay.services.exporter import (
    HEADER_ROW,
    TOTAL_LABEL,
    ExportContext,
    ReportExporter,
    UnsupportedExportFormatError,
    register_title,
    sheet_title,
)
from crewstay.services.formatting import NBSP


ROWS = [
    {
        "index": 1,
        "arrival": "01.01.2025 14:00:00",
        "departure": "03.01.2025 12:00:00",
        "totalDays": 2,
        "category": "Двухместный",
        "personName": "Иванов",
        "roomName": "101",
        "shareNote": "",
        "personPosition": "КВС",
        "breakfastCount": 2,
        "lunchCount": 2,
        "dinnerCount": 2,
        "totalMealCost": 2400.0,
        "totalLivingCost": 4000.0,
        "totalDebt": 6400.0,
        "hotelName": "Аэропорт",
    },
    {
        "index": 2,
        "arrival": "02.01.2025 14:00:00",
        "departure": "03.01.2025 12:00:00",
        "totalDays": 1,
        "category": "Двухместный",
        "personName": "Петров",
        "roomName": "102",
        "shareNote": "",
        "personPosition": "ВП",
        "breakfastCount": 1,
        "lunchCount": 1,
        "dinnerCount": 1,
        "totalMealCost": 1200.0,
        "totalLivingCost": 2000.0,
        "totalDebt": 3200.0,
        "hotelName": "Аэропорт",
    },
]


def _context(**overrides) -> ExportContext:
    values = {
        "sheet_name": "Северный Ветер",
        "title": register_title("airline", "Северный Ветер", "Москва"),
        "company_full_name": "АО «Северный Ветер»",
        "contract_name": "Договор 1/2025",
    }
    values.update(overrides)
    return ExportContext(**values)


def test_columns_follow_register_layout() -> None:
    exporter = ReportExporter()

    headers = [column.header for column in exporter.columns(_context())]

    assert headers[:9] == [
        "п/п",
        "Дата/время заезда",
        "Дата/время выезда",
        "Количество суток",
        "Категория номера",
        "ФИО",
        "Комната",
        "Вид проживания",
        "Должность",
    ]
    assert headers[-2:] == ["Итоговая стоимость", "Гостиница"]


def test_meal_and_living_columns_can_be_switched_off() -> None:
    exporter = ReportExporter()

    keys = [
        column.key
        for column in exporter.columns(
            _context(include_meal=False, include_living=False, include_position=False)
        )
    ]

    assert "totalMealCost" not in keys
    assert "breakfastCount" not in keys
    assert "totalLivingCost" not in keys
    assert "personPosition" not in keys


def test_frame_has_totals_row() -> None:
    frame = ReportExporter().build_frame(ROWS, _context())

    totals = frame.iloc[-1]
    assert len(frame) == 3
    assert totals["personPosition"] == TOTAL_LABEL
    assert totals["totalMealCost"] == pytest.approx(3600.0)
    assert totals["totalLivingCost"] == pytest.approx(6000.0)
    assert totals["totalDebt"] == pytest.approx(9600.0)


def test_debt_only_counts_included_parts() -> None:
    frame = ReportExporter().build_frame(ROWS, _context(include_meal=False))

    assert frame.iloc[0]["totalDebt"] == pytest.approx(4000.0)
    assert frame.iloc[-1]["totalDebt"] == pytest.approx(6000.0)


def test_empty_register_still_has_totals_row() -> None:
    frame = ReportExporter().build_frame([], _context(include_position=False))

    assert len(frame) == 1
    assert frame.iloc[0]["shareNote"] == TOTAL_LABEL
    assert frame.iloc[0]["totalDebt"] == 0.0


def test_xlsx_export_writes_header_block_and_totals(tmp_path) -> None:
    path = tmp_path / "reports" / "airline.xlsx"

    ReportExporter().export(ROWS, path, _context(), "xlsx")

    workbook = load_workbook(path)
    sheet = workbook["Северный Ветер"]
    assert sheet["A1"].value == "АО «Северный Ветер»"
    assert sheet["E1"].value == "Договор 1/2025"
    assert sheet["A4"].value == (
        'РЕЕСТР № # оказанных услуг по размещению экипажа авиакомпании "Северный Ветер" в г. Москва'
    )
    assert sheet.cell(row=HEADER_ROW, column=1).value == "п/п"
    assert sheet.cell(row=HEADER_ROW, column=1).font.bold
    total_row = HEADER_ROW + len(ROWS) + 1
    assert sheet.cell(row=total_row, column=9).value == TOTAL_LABEL
    assert sheet.cell(row=HEADER_ROW + 1, column=6).value == "Иванов"


def test_csv_export_uses_headers_and_currency_format(tmp_path) -> None:
    path = tmp_path / "airline.csv"

    ReportExporter().export(ROWS, path, _context(), "csv")

    frame = pd.read_csv(path, sep=";", encoding="utf-8-sig", dtype=str)
    assert list(frame.columns)[0] == "п/п"
    assert frame["Стоимость проживания"].iloc[0] == f"4{NBSP}000,00"
    assert frame["Должность"].iloc[-1] == TOTAL_LABEL


def test_pdf_is_not_supported(tmp_path) -> None:
    with pytest.raises(UnsupportedExportFormatError):
        ReportExporter().export(ROWS, tmp_path / "report.pdf", _context(), "pdf")


def test_sheet_title_strips_forbidden_characters() -> None:
    assert sheet_title("A/B: [test]?") == "A B   test"
    assert len(sheet_title("x" * 40)) == 31
    assert sheet_title("") == "Отчет"


def test_register_titles() -> None:
    assert register_title("hotel", "Аэропорт") == (
        'РЕЕСТР № # оказанных услуг по размещению экипажа в отеле "Аэропорт"'
    )
    assert register_title("airline", "Ветер").endswith('"Ветер"')
