"""Repository layer responsible for all database access."""

from __future__ import annotations

import random
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence

from crewstay.domain.models import (
    ROOM_CATEGORY_ORDER,
    AirlineContract,
    HotelPricing,
    MealDay,
    MealPrices,
    SavedReport,
    StayRequest,
)
from crewstay.services.dates import format_iso_local, parse_local_datetime
from crewstay.services.meal_service import build_daily_meal_plan, meal_windows_from_settings
from crewstay.utils.config import Settings, get_settings
from crewstay.utils.logger import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class AirlineRecord:
    airline_id: int
    name: str
    full_name: Optional[str]


@dataclass(frozen=True)
class AirportRecord:
    airport_id: int
    code: str
    name: str
    city: Optional[str]


def _meal_prices_from_row(row: sqlite3.Row) -> Optional[MealPrices]:
    values = (row["breakfast_price"], row["lunch_price"], row["dinner_price"])
    if all(value is None for value in values):
        return None
    return MealPrices(
        breakfast=float(values[0] or 0.0),
        lunch=float(values[1] or 0.0),
        dinner=float(values[2] or 0.0),
    )


class DataRepository:
    """Encapsulates SQLite access so billing logic stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.executescript(
                    """
                    CREATE TABLE IF NOT EXISTS Hotels (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL,
                        city TEXT,
                        breakfast_price REAL,
                        lunch_price REAL,
                        dinner_price REAL
                    );

                    CREATE TABLE IF NOT EXISTS HotelCategoryPrices (
                        hotel_id INTEGER NOT NULL,
                        category TEXT NOT NULL,
                        price REAL NOT NULL CHECK (price >= 0),
                        PRIMARY KEY (hotel_id, category),
                        FOREIGN KEY (hotel_id) REFERENCES Hotels(id) ON DELETE CASCADE
                    );

                    CREATE TABLE IF NOT EXISTS Rooms (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        hotel_id INTEGER NOT NULL,
                        name TEXT NOT NULL,
                        category TEXT NOT NULL,
                        price REAL,
                        FOREIGN KEY (hotel_id) REFERENCES Hotels(id) ON DELETE CASCADE
                    );

                    CREATE TABLE IF NOT EXISTS Airlines (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL,
                        full_name TEXT
                    );

                    CREATE TABLE IF NOT EXISTS Airports (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        code TEXT NOT NULL,
                        name TEXT NOT NULL,
                        city TEXT
                    );

                    CREATE TABLE IF NOT EXISTS AirlineContracts (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        airline_id INTEGER NOT NULL,
                        name TEXT NOT NULL,
                        breakfast_price REAL,
                        lunch_price REAL,
                        dinner_price REAL,
                        FOREIGN KEY (airline_id) REFERENCES Airlines(id) ON DELETE CASCADE
                    );

                    CREATE TABLE IF NOT EXISTS AirlineContractPrices (
                        contract_id INTEGER NOT NULL,
                        category TEXT NOT NULL,
                        price REAL NOT NULL CHECK (price >= 0),
                        PRIMARY KEY (contract_id, category),
                        FOREIGN KEY (contract_id) REFERENCES AirlineContracts(id) ON DELETE CASCADE
                    );

                    CREATE TABLE IF NOT EXISTS AirlineContractAirports (
                        contract_id INTEGER NOT NULL,
                        airport_id INTEGER NOT NULL,
                        PRIMARY KEY (contract_id, airport_id),
                        FOREIGN KEY (contract_id) REFERENCES AirlineContracts(id) ON DELETE CASCADE,
                        FOREIGN KEY (airport_id) REFERENCES Airports(id)
                    );

                    CREATE TABLE IF NOT EXISTS Requests (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        person_name TEXT,
                        person_position TEXT,
                        hotel_id INTEGER,
                        airline_id INTEGER,
                        airport_id INTEGER,
                        room_id INTEGER,
                        room_category TEXT,
                        arrival TEXT NOT NULL,
                        departure TEXT NOT NULL,
                        status TEXT NOT NULL DEFAULT 'done',
                        archived INTEGER NOT NULL DEFAULT 0 CHECK (archived IN (0,1)),
                        FOREIGN KEY (hotel_id) REFERENCES Hotels(id),
                        FOREIGN KEY (airline_id) REFERENCES Airlines(id),
                        FOREIGN KEY (airport_id) REFERENCES Airports(id),
                        FOREIGN KEY (room_id) REFERENCES Rooms(id)
                    );

                    CREATE TABLE IF NOT EXISTS DailyMeals (
                        request_id INTEGER NOT NULL,
                        meal_date TEXT NOT NULL,
                        breakfast INTEGER NOT NULL DEFAULT 0,
                        lunch INTEGER NOT NULL DEFAULT 0,
                        dinner INTEGER NOT NULL DEFAULT 0,
                        PRIMARY KEY (request_id, meal_date),
                        FOREIGN KEY (request_id) REFERENCES Requests(id) ON DELETE CASCADE
                    );

                    CREATE TABLE IF NOT EXISTS SavedReports (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL,
                        url TEXT NOT NULL,
                        start_date TEXT NOT NULL,
                        end_date TEXT NOT NULL,
                        created_at TEXT NOT NULL,
                        separator TEXT NOT NULL,
                        hotel_id INTEGER,
                        airline_id INTEGER
                    );

                    CREATE INDEX IF NOT EXISTS idx_requests_arrival_departure
                    ON Requests(arrival, departure);

                    CREATE INDEX IF NOT EXISTS idx_requests_hotel_airline
                    ON Requests(hotel_id, airline_id, status);
                    """
                )
                conn.commit()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    def seed_synthetic_data(self) -> None:
        """Seed a demo hotel, airline and crew stays only when tables are empty."""
        random.seed(self._settings.synthetic_random_seed)
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT COUNT(*) AS count FROM Hotels;")
                if int(cursor.fetchone()["count"]) > 0:
                    logger.info("Synthetic data already present; skipping seed")
                    return
        except sqlite3.Error as exc:
            raise RuntimeError(f"Synthetic data seeding failed: {exc}") from exc

        try:
            category_prices = {
                category: 1500.0 + 500.0 * position
                for position, category in enumerate(ROOM_CATEGORY_ORDER)
            }
            hotel_id = self.create_hotel(
                name="Гостиница Аэропорт",
                city="Москва",
                meal_prices=MealPrices(breakfast=350.0, lunch=550.0, dinner=450.0),
                category_prices=category_prices,
            )
            room_ids = [
                self.create_room(hotel_id, f"{100 + number}", "twoPlace")
                for number in range(1, 6)
            ] + [self.create_room(hotel_id, "201", "studio", price=4200.0)]

            airline_id = self.create_airline("Северный Ветер", "АО «Северный Ветер»")
            airport_id = self.create_airport("SVO", "Шереметьево", "Москва")
            self.create_airline_contract(
                airline_id=airline_id,
                name="Договор 1/2025",
                airport_ids=[airport_id],
                category_prices={
                    category: price * 1.1 for category, price in category_prices.items()
                },
                meal_prices=MealPrices(breakfast=400.0, lunch=600.0, dinner=500.0),
            )

            meal_windows = meal_windows_from_settings(self._settings)
            start_date = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(
                days=self._settings.synthetic_seed_days
            )
            positions = ("КВС", "ВП", "Техник", "Инженер", "БП")
            for guest in range(self._settings.synthetic_guest_count):
                arrival = datetime(start_date.year, start_date.month, start_date.day) + timedelta(
                    days=random.randint(0, self._settings.synthetic_seed_days - 3),
                    hours=random.choice((4, 9, 15, 20)),
                )
                departure = arrival + timedelta(
                    days=random.randint(1, 4),
                    hours=random.choice((-2, 0, 3, 6)),
                )
                room_id = random.choice(room_ids)
                self.create_request(
                    person_name=f"Член экипажа {guest + 1:02d}",
                    person_position=random.choice(positions),
                    hotel_id=hotel_id,
                    airline_id=airline_id,
                    airport_id=airport_id,
                    room_id=room_id,
                    room_category="studio" if room_id == room_ids[-1] else "twoPlace",
                    arrival=arrival,
                    departure=departure,
                    meal_plan=build_daily_meal_plan(arrival, departure, meal_windows),
                )
        except sqlite3.Error as exc:
            raise RuntimeError(f"Synthetic data seeding failed: {exc}") from exc
        logger.info(
            "Synthetic seed completed with %s stays",
            self._settings.synthetic_guest_count,
        )

    def create_hotel(
        self,
        name: str,
        city: Optional[str] = None,
        meal_prices: Optional[MealPrices] = None,
        category_prices: Optional[Mapping[str, float]] = None,
    ) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO Hotels (name, city, breakfast_price, lunch_price, dinner_price)
                VALUES (?, ?, ?, ?, ?);
                """,
                (
                    name,
                    city,
                    meal_prices.breakfast if meal_prices else None,
                    meal_prices.lunch if meal_prices else None,
                    meal_prices.dinner if meal_prices else None,
                ),
            )
            hotel_id = int(cursor.lastrowid)
            cursor.executemany(
                """
                INSERT INTO HotelCategoryPrices (hotel_id, category, price)
                VALUES (?, ?, ?);
                """,
                [
                    (hotel_id, category, float(price))
                    for category, price in (category_prices or {}).items()
                ],
            )
            conn.commit()
            return hotel_id

    def create_room(
        self,
        hotel_id: int,
        name: str,
        category: str,
        price: Optional[float] = None,
    ) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO Rooms (hotel_id, name, category, price) VALUES (?, ?, ?, ?);",
                (hotel_id, name, category, price),
            )
            conn.commit()
            return int(cursor.lastrowid)

    def create_airline(self, name: str, full_name: Optional[str] = None) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO Airlines (name, full_name) VALUES (?, ?);",
                (name, full_name),
            )
            conn.commit()
            return int(cursor.lastrowid)

    def create_airport(self, code: str, name: str, city: Optional[str] = None) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO Airports (code, name, city) VALUES (?, ?, ?);",
                (code, name, city),
            )
            conn.commit()
            return int(cursor.lastrowid)

    def create_airline_contract(
        self,
        airline_id: int,
        name: str,
        airport_ids: Iterable[int],
        category_prices: Mapping[str, float],
        meal_prices: Optional[MealPrices] = None,
    ) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO AirlineContracts (
                    airline_id, name, breakfast_price, lunch_price, dinner_price
                )
                VALUES (?, ?, ?, ?, ?);
                """,
                (
                    airline_id,
                    name,
                    meal_prices.breakfast if meal_prices else None,
                    meal_prices.lunch if meal_prices else None,
                    meal_prices.dinner if meal_prices else None,
                ),
            )
            contract_id = int(cursor.lastrowid)
            cursor.executemany(
                """
                INSERT INTO AirlineContractPrices (contract_id, category, price)
                VALUES (?, ?, ?);
                """,
                [
                    (contract_id, category, float(price))
                    for category, price in category_prices.items()
                ],
            )
            cursor.executemany(
                """
                INSERT INTO AirlineContractAirports (contract_id, airport_id)
                VALUES (?, ?);
                """,
                [(contract_id, airport_id) for airport_id in airport_ids],
            )
            conn.commit()
            return contract_id

    def create_request(
        self,
        *,
        person_name: Optional[str],
        person_position: Optional[str],
        hotel_id: Optional[int],
        airline_id: Optional[int],
        airport_id: Optional[int],
        room_id: Optional[int],
        room_category: Optional[str],
        arrival: datetime,
        departure: datetime,
        status: str = "done",
        archived: bool = False,
        meal_plan: Sequence[MealDay] = (),
    ) -> int:
        """Insert a stay with its daily meal plan and return the created id."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO Requests (
                    person_name,
                    person_position,
                    hotel_id,
                    airline_id,
                    airport_id,
                    room_id,
                    room_category,
                    arrival,
                    departure,
                    status,
                    archived
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    person_name,
                    person_position,
                    hotel_id,
                    airline_id,
                    airport_id,
                    room_id,
                    room_category,
                    format_iso_local(arrival),
                    format_iso_local(departure),
                    status,
                    1 if archived else 0,
                ),
            )
            request_id = int(cursor.lastrowid)
            cursor.executemany(
                """
                INSERT INTO DailyMeals (request_id, meal_date, breakfast, lunch, dinner)
                VALUES (?, ?, ?, ?, ?);
                """,
                [
                    (
                        request_id,
                        meal_day.day.isoformat(),
                        meal_day.breakfast,
                        meal_day.lunch,
                        meal_day.dinner,
                    )
                    for meal_day in meal_plan
                ],
            )
            conn.commit()
            return request_id

    def get_hotel_pricing(self, hotel_id: int) -> Optional[HotelPricing]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, name, city, breakfast_price, lunch_price, dinner_price
                FROM Hotels
                WHERE id = ?;
                """,
                (hotel_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            cursor.execute(
                "SELECT category, price FROM HotelCategoryPrices WHERE hotel_id = ?;",
                (hotel_id,),
            )
            prices = {str(item["category"]): float(item["price"]) for item in cursor.fetchall()}
            return HotelPricing(
                hotel_id=int(row["id"]),
                name=str(row["name"]),
                city=row["city"],
                category_prices=prices,
                meal_prices=_meal_prices_from_row(row),
            )

    def get_airline(self, airline_id: int) -> Optional[AirlineRecord]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, name, full_name FROM Airlines WHERE id = ?;",
                (airline_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return AirlineRecord(
                airline_id=int(row["id"]),
                name=str(row["name"]),
                full_name=row["full_name"],
            )

    def get_airport(self, airport_id: int) -> Optional[AirportRecord]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, code, name, city FROM Airports WHERE id = ?;",
                (airport_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return AirportRecord(
                airport_id=int(row["id"]),
                code=str(row["code"]),
                name=str(row["name"]),
                city=row["city"],
            )

    def list_airline_contracts(self, airline_id: int) -> list[AirlineContract]:
        """Return contracts with their airport coverage in creation order."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, name, breakfast_price, lunch_price, dinner_price
                FROM AirlineContracts
                WHERE airline_id = ?
                ORDER BY id ASC;
                """,
                (airline_id,),
            )
            contract_rows = cursor.fetchall()
            contracts: list[AirlineContract] = []
            for row in contract_rows:
                contract_id = int(row["id"])
                cursor.execute(
                    "SELECT category, price FROM AirlineContractPrices WHERE contract_id = ?;",
                    (contract_id,),
                )
                prices = {str(item["category"]): float(item["price"]) for item in cursor.fetchall()}
                cursor.execute(
                    "SELECT airport_id FROM AirlineContractAirports WHERE contract_id = ?;",
                    (contract_id,),
                )
                airport_ids = frozenset(int(item["airport_id"]) for item in cursor.fetchall())
                contracts.append(
                    AirlineContract(
                        contract_id=contract_id,
                        airport_ids=airport_ids,
                        category_prices=prices,
                        meal_prices=_meal_prices_from_row(row),
                        name=str(row["name"]),
                    )
                )
            return contracts

    def list_stays_for_report(
        self,
        *,
        window_start: datetime,
        window_end: datetime,
        statuses: Sequence[str],
        hotel_id: Optional[int] = None,
        airline_id: Optional[int] = None,
        airport_id: Optional[int] = None,
        person_name: Optional[str] = None,
        archived: Optional[bool] = None,
    ) -> list[StayRequest]:
        """Return stays touching the window: starting, ending, or spanning it."""
        start = format_iso_local(window_start)
        end = format_iso_local(window_end)
        clauses = [
            "((r.arrival BETWEEN ? AND ?) OR (r.departure BETWEEN ? AND ?) "
            "OR (r.arrival <= ? AND r.departure >= ?))"
        ]
        params: list[object] = [start, end, start, end, start, end]
        if statuses:
            clauses.append(f"r.status IN ({','.join('?' for _ in statuses)})")
            params.extend(statuses)
        if hotel_id is not None:
            clauses.append("r.hotel_id = ?")
            params.append(hotel_id)
        if airline_id is not None:
            clauses.append("r.airline_id = ?")
            params.append(airline_id)
        if airport_id is not None:
            clauses.append("r.airport_id = ?")
            params.append(airport_id)
        if person_name:
            clauses.append("r.person_name = ?")
            params.append(person_name)
        if archived is not None:
            clauses.append("r.archived = ?")
            params.append(1 if archived else 0)

        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT
                    r.id,
                    r.person_name,
                    r.person_position,
                    r.hotel_id,
                    h.name AS hotel_name,
                    r.airline_id,
                    r.airport_id,
                    r.room_id,
                    rm.name AS room_name,
                    rm.price AS room_price,
                    r.room_category,
                    r.arrival,
                    r.departure,
                    r.status
                FROM Requests AS r
                LEFT JOIN Hotels AS h ON h.id = r.hotel_id
                LEFT JOIN Rooms AS rm ON rm.id = r.room_id
                WHERE {' AND '.join(clauses)}
                ORDER BY r.arrival ASC, r.id ASC;
                """,
                params,
            )
            rows = cursor.fetchall()
            meal_plans = self._load_meal_plans(cursor, [int(row["id"]) for row in rows])

        stays: list[StayRequest] = []
        for row in rows:
            arrival = parse_local_datetime(row["arrival"])
            departure = parse_local_datetime(row["departure"])
            if arrival is None or departure is None:
                logger.warning("Stay with unreadable dates ignored | request_id=%s", row["id"])
                continue
            stays.append(
                StayRequest(
                    request_id=int(row["id"]),
                    person_name=row["person_name"],
                    person_position=row["person_position"],
                    hotel_id=row["hotel_id"],
                    hotel_name=row["hotel_name"],
                    airline_id=row["airline_id"],
                    airport_id=row["airport_id"],
                    room_id=row["room_id"],
                    room_name=row["room_name"],
                    room_price=row["room_price"],
                    room_category=row["room_category"],
                    arrival=arrival,
                    departure=departure,
                    status=str(row["status"]),
                    meal_plan=meal_plans.get(int(row["id"]), ()),
                )
            )
        return stays

    def _load_meal_plans(
        self,
        cursor: sqlite3.Cursor,
        request_ids: Sequence[int],
    ) -> dict[int, tuple[MealDay, ...]]:
        if not request_ids:
            return {}
        placeholders = ",".join("?" for _ in request_ids)
        cursor.execute(
            f"""
            SELECT request_id, meal_date, breakfast, lunch, dinner
            FROM DailyMeals
            WHERE request_id IN ({placeholders})
            ORDER BY request_id ASC, meal_date ASC;
            """,
            tuple(request_ids),
        )
        plans: dict[int, list[MealDay]] = {}
        for row in cursor.fetchall():
            meal_date = parse_local_datetime(row["meal_date"])
            if meal_date is None:
                continue
            plans.setdefault(int(row["request_id"]), []).append(
                MealDay(
                    day=meal_date.date(),
                    breakfast=int(row["breakfast"]),
                    lunch=int(row["lunch"]),
                    dinner=int(row["dinner"]),
                )
            )
        return {request_id: tuple(days) for request_id, days in plans.items()}

    def save_report(
        self,
        *,
        name: str,
        url: str,
        start_date: str,
        end_date: str,
        separator: str,
        hotel_id: Optional[int] = None,
        airline_id: Optional[int] = None,
    ) -> SavedReport:
        created_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO SavedReports (
                    name, url, start_date, end_date, created_at, separator, hotel_id, airline_id
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (name, url, start_date, end_date, created_at, separator, hotel_id, airline_id),
            )
            conn.commit()
            report_id = int(cursor.lastrowid)
        return SavedReport(
            report_id=report_id,
            name=name,
            url=url,
            start_date=start_date,
            end_date=end_date,
            created_at=created_at,
            separator=separator,
            hotel_id=hotel_id,
            airline_id=airline_id,
        )

    def list_saved_reports(
        self,
        *,
        separator: Optional[str] = None,
        hotel_id: Optional[int] = None,
        airline_id: Optional[int] = None,
    ) -> list[SavedReport]:
        """Return saved reports newest first."""
        clauses: list[str] = []
        params: list[object] = []
        if separator is not None:
            clauses.append("separator = ?")
            params.append(separator)
        if hotel_id is not None:
            clauses.append("hotel_id = ?")
            params.append(hotel_id)
        if airline_id is not None:
            clauses.append("airline_id = ?")
            params.append(airline_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT id, name, url, start_date, end_date, created_at, separator, hotel_id, airline_id
                FROM SavedReports
                {where}
                ORDER BY created_at DESC, id DESC;
                """,
                params,
            )
            return [self._saved_report_from_row(row) for row in cursor.fetchall()]

    def get_saved_report(self, report_id: int) -> Optional[SavedReport]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, name, url, start_date, end_date, created_at, separator, hotel_id, airline_id
                FROM SavedReports
                WHERE id = ?;
                """,
                (report_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return self._saved_report_from_row(row)

    def delete_saved_report(self, report_id: int) -> None:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM SavedReports WHERE id = ?;", (report_id,))
            conn.commit()

    def count_saved_reports(self) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) AS count FROM SavedReports;")
            return int(cursor.fetchone()["count"])

    @staticmethod
    def _saved_report_from_row(row: sqlite3.Row) -> SavedReport:
        return SavedReport(
            report_id=int(row["id"]),
            name=str(row["name"]),
            url=str(row["url"]),
            start_date=str(row["start_date"]),
            end_date=str(row["end_date"]),
            created_at=str(row["created_at"]),
            separator=str(row["separator"]),
            hotel_id=row["hotel_id"],
            airline_id=row["airline_id"],
        )
