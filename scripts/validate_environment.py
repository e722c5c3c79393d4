#!/usr/bin/env python3
"""Validate local report-server environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sqlite3
import sys
import tempfile
from dataclasses import replace
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from crewstay.repository.data_repository import DataRepository
from crewstay.services.report_service import ReportFilter, ReportOptions, ReportService
from crewstay.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="crewstay-env-")

    # CHECK 1: Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable with versions
    package_specs = [
        ("fastapi", "fastapi"),
        ("uvicorn", "uvicorn"),
        ("pydantic", "pydantic"),
        ("pandas", "pandas"),
        ("openpyxl", "openpyxl"),
        ("httpx", "httpx"),
        ("pytest", "pytest"),
    ]
    import_errors: list[str] = []
    from importlib.metadata import version

    for module_name, dist_name in package_specs:
        try:
            importlib.import_module(module_name)
            _ = version(dist_name)
        except Exception as exc:  # pragma: no cover - runtime guard
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        base_settings = get_settings()
        temp_db_path = Path(temp_dir) / "crewstay_validation.db"
        validation_settings = replace(
            base_settings,
            database_path=temp_db_path,
            reports_dir=Path(temp_dir) / "reports",
        )
        repository = DataRepository(validation_settings)

        # CHECK 3: Database initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except Exception as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4: Demo data seeding
        try:
            repository.seed_synthetic_data()
            with sqlite3.connect(temp_db_path) as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT COUNT(*) FROM Requests;")
                seeded_stays = int(cursor.fetchone()[0])
            expected = validation_settings.synthetic_guest_count
            if seeded_stays != expected:
                raise RuntimeError(f"expected {expected} stays, got {seeded_stays}")
            ok, line = _print_result("Demo stays", True, f": {seeded_stays} rows")
        except Exception as exc:
            ok, line = _print_result("Demo stays", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5: Hotel register export
        try:
            service = ReportService(repository=repository, settings=validation_settings)
            report = service.create_hotel_report(
                ReportFilter(start="2000-01-01", end="2100-01-01", hotel_id=1),
                ReportOptions(fmt="xlsx"),
            )
            if not service.report_path(report).exists():
                raise RuntimeError(f"{report.name} was not written")
            ok, line = _print_result("Hotel register export", True, f": {report.name}")
        except Exception as exc:
            ok, line = _print_result("Hotel register export", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Crew Accommodation Reports Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
