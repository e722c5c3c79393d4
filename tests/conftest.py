from __future__ import annotations

from dataclasses import replace
from datetime import datetime

import pytest

from crewstay.domain.models import MealPrices
from crewstay.repository.data_repository import DataRepository
from crewstay.services.meal_service import MealWindows, build_daily_meal_plan
from crewstay.utils.config import Settings, get_settings


def _build_test_settings(tmp_path, filename: str) -> Settings:
    get_settings.cache_clear()
    base = get_settings()
    return replace(
        base,
        database_path=tmp_path / filename,
        reports_dir=tmp_path / "reports",
        synthetic_guest_count=6,
        synthetic_seed_days=10,
    )


def _add_stay(
    repository: DataRepository,
    ids: dict[str, int],
    person_name: str,
    person_position: str | None,
    room: str,
    category: str,
    arrival: datetime,
    departure: datetime,
    status: str = "done",
) -> int:
    return repository.create_request(
        person_name=person_name,
        person_position=person_position,
        hotel_id=ids["hotel_id"],
        airline_id=ids["airline_id"],
        airport_id=ids["airport_id"],
        room_id=ids[room],
        room_category=category,
        arrival=arrival,
        departure=departure,
        status=status,
        meal_plan=build_daily_meal_plan(arrival, departure, MealWindows()),
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return _build_test_settings(tmp_path, "crewstay_test.db")


@pytest.fixture
def repository(settings: Settings) -> DataRepository:
    repo = DataRepository(settings)
    repo.initialize_database()
    return repo


@pytest.fixture
def billing_ids(repository: DataRepository) -> dict[str, int]:
    """One hotel, one airline contract and a handful of January stays."""
    hotel_id = repository.create_hotel(
        name="Аэропорт",
        city="Москва",
        meal_prices=MealPrices(breakfast=300.0, lunch=500.0, dinner=400.0),
        category_prices={"onePlace": 2500.0, "twoPlace": 2000.0},
    )
    ids = {
        "hotel_id": hotel_id,
        "room_101": repository.create_room(hotel_id, "101", "twoPlace"),
        "room_201": repository.create_room(hotel_id, "201", "studio", price=4200.0),
        "airline_id": repository.create_airline("Ветер", "АО «Ветер»"),
        "airport_id": repository.create_airport("SVO", "Шереметьево", "Москва"),
    }
    repository.create_airline_contract(
        airline_id=ids["airline_id"],
        name="Договор 7/2025",
        airport_ids=[ids["airport_id"]],
        category_prices={"twoPlace": 2200.0, "studio": 4500.0},
        meal_prices=MealPrices(breakfast=400.0, lunch=600.0, dinner=500.0),
    )

    ids["ivanov"] = _add_stay(
        repository, ids, "Иванов", "КВС", "room_101", "twoPlace",
        datetime(2025, 1, 5, 14, 0), datetime(2025, 1, 8, 12, 0),
    )
    ids["petrov"] = _add_stay(
        repository, ids, "Петров", "Техник", "room_101", "twoPlace",
        datetime(2025, 1, 6, 14, 0), datetime(2025, 1, 8, 12, 0),
    )
    ids["sidorov"] = _add_stay(
        repository, ids, "Сидоров", "ВП", "room_201", "studio",
        datetime(2025, 1, 5, 14, 0), datetime(2025, 1, 7, 12, 0),
    )
    ids["no_position"] = _add_stay(
        repository, ids, "Без должности", None, "room_201", "studio",
        datetime(2025, 1, 10, 14, 0), datetime(2025, 1, 11, 12, 0),
    )
    ids["cancelled"] = _add_stay(
        repository, ids, "Отменён", "КВС", "room_101", "twoPlace",
        datetime(2025, 1, 12, 14, 0), datetime(2025, 1, 13, 12, 0),
        status="cancelled",
    )
    ids["february"] = _add_stay(
        repository, ids, "Февралёв", "КВС", "room_101", "twoPlace",
        datetime(2025, 2, 5, 14, 0), datetime(2025, 2, 6, 12, 0),
    )
    return ids
