"""Environment-driven runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[2]

DEFAULT_REPORT_STATUSES = (
    "done",
    "transferred",
    "extended",
    "archiving",
    "archived",
    "reduced",
)


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def _env_tuple(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    database_path: Path
    reports_dir: Path
    reports_url_prefix: str
    report_default_format: str
    report_statuses: tuple[str, ...]
    stay_early_arrival_time: str
    stay_check_in_time: str
    stay_check_out_time: str
    stay_late_departure_time: str
    meal_breakfast_window: str
    meal_lunch_window: str
    meal_dinner_window: str
    synthetic_random_seed: int
    synthetic_seed_days: int
    synthetic_guest_count: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings once per process; call `cache_clear()` to re-read."""
    return Settings(
        app_name=_env_str("APP_NAME", "Crew Accommodation Reports"),
        app_version=_env_str("APP_VERSION", "1.0.0"),
        log_level=_env_str("LOG_LEVEL", "INFO"),
        database_path=Path(
            _env_str("DATABASE_PATH", str(PROJECT_ROOT / "data" / "crewstay.db"))
        ),
        reports_dir=Path(_env_str("REPORTS_DIR", str(PROJECT_ROOT / "reports"))),
        reports_url_prefix=_env_str("REPORTS_URL_PREFIX", "/reports"),
        report_default_format=_env_str("REPORT_DEFAULT_FORMAT", "xlsx"),
        report_statuses=_env_tuple("REPORT_STATUSES", DEFAULT_REPORT_STATUSES),
        stay_early_arrival_time=_env_str("STAY_EARLY_ARRIVAL_TIME", "06:00"),
        stay_check_in_time=_env_str("STAY_CHECK_IN_TIME", "14:00"),
        stay_check_out_time=_env_str("STAY_CHECK_OUT_TIME", "12:00"),
        stay_late_departure_time=_env_str("STAY_LATE_DEPARTURE_TIME", "18:00"),
        meal_breakfast_window=_env_str("MEAL_BREAKFAST_WINDOW", "07:00-10:00"),
        meal_lunch_window=_env_str("MEAL_LUNCH_WINDOW", "12:00-15:00"),
        meal_dinner_window=_env_str("MEAL_DINNER_WINDOW", "18:00-21:00"),
        synthetic_random_seed=_env_int("SYNTHETIC_RANDOM_SEED", 42),
        synthetic_seed_days=_env_int("SYNTHETIC_SEED_DAYS", 30),
        synthetic_guest_count=_env_int("SYNTHETIC_GUEST_COUNT", 12),
    )
