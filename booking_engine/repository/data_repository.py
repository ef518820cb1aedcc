"""Repository layer responsible for all database access."""

from __future__ import annotations

import random
import sqlite3
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Iterable, Optional, Protocol, Sequence

from booking_engine.domain.models import (
    Customer,
    Reservation,
    ReservationStatus,
    StaffMember,
)
from booking_engine.utils.config import Settings, get_settings
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)


class ReservationStore(Protocol):
    """Read-only collaborator the engine pulls staff and history from."""

    def list_active_staff(self) -> list[StaffMember]: ...

    def list_reservations(
        self,
        start: datetime,
        end: datetime,
        staff_id: Optional[int] = None,
        statuses: Optional[Sequence[ReservationStatus]] = None,
    ) -> list[Reservation]: ...

    def list_reservations_for_customer(
        self,
        customer_id: int,
        limit: int,
    ) -> list[Reservation]: ...

    def get_customer(self, customer_id: int) -> Optional[Customer]: ...


def _to_db_timestamp(value: datetime) -> str:
    return value.isoformat(timespec="seconds")


def _from_db_timestamp(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def _row_to_reservation(row: sqlite3.Row) -> Reservation:
    return Reservation(
        reservation_id=int(row["id"]),
        staff_id=int(row["staff_id"]),
        customer_id=int(row["customer_id"]) if row["customer_id"] is not None else None,
        start_time=datetime.fromisoformat(str(row["start_time"])),
        end_time=_from_db_timestamp(row["end_time"]),
        status=ReservationStatus(str(row["status"])),
        menu_content=str(row["menu_content"] or ""),
    )


class DataRepository:
    """Encapsulates SQLite access so scoring logic stays storage-agnostic."""

    _SEED_STAFF_NAMES = ("Aiko", "Ren", "Mika", "Sora", "Yui", "Haru")
    _SEED_MENUS = (
        "cut",
        "cut + color",
        "color",
        "perm",
        "cut + perm",
        "head spa",
        "カット",
        "カット + カラー",
    )
    _SEED_DURATIONS = (30, 60, 60, 90, 120)

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
        """Create tables and indexes; safe to call repeatedly."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Staff (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL,
                        is_active INTEGER NOT NULL DEFAULT 1 CHECK (is_active IN (0,1))
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Customers (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL,
                        visit_count INTEGER NOT NULL DEFAULT 0 CHECK (visit_count >= 0),
                        last_visit_date TEXT
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Reservations (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        staff_id INTEGER NOT NULL,
                        customer_id INTEGER,
                        start_time TEXT NOT NULL,
                        end_time TEXT,
                        status TEXT NOT NULL DEFAULT 'CONFIRMED'
                            CHECK (status IN (
                                'TENTATIVE', 'CONFIRMED', 'COMPLETED', 'CANCELLED', 'NO_SHOW'
                            )),
                        menu_content TEXT NOT NULL DEFAULT '',
                        FOREIGN KEY (staff_id) REFERENCES Staff(id),
                        FOREIGN KEY (customer_id) REFERENCES Customers(id)
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_reservations_start_status
                    ON Reservations(start_time, status);
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_reservations_customer_start
                    ON Reservations(customer_id, start_time);
                    """
                )
                conn.commit()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    def seed_synthetic_data(self) -> None:
        """Seed deterministic staff, customers and reservation history when empty."""
        rng = random.Random(self._settings.synthetic_random_seed)
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT COUNT(*) AS count FROM Staff;")
                if int(cursor.fetchone()["count"]) > 0:
                    logger.info("Synthetic data already present; skipping seed")
                    return

                staff_names = [
                    self._SEED_STAFF_NAMES[index % len(self._SEED_STAFF_NAMES)]
                    for index in range(self._settings.synthetic_staff_count)
                ]
                cursor.executemany(
                    "INSERT INTO Staff (name, is_active) VALUES (?, 1);",
                    [(name,) for name in staff_names],
                )
                cursor.execute("SELECT id FROM Staff ORDER BY id ASC;")
                staff_ids = [int(row["id"]) for row in cursor.fetchall()]

                cursor.executemany(
                    "INSERT INTO Customers (name, visit_count) VALUES (?, 0);",
                    [
                        (f"Customer {index + 1:03d}",)
                        for index in range(self._settings.synthetic_customer_count)
                    ],
                )
                cursor.execute("SELECT id FROM Customers ORDER BY id ASC;")
                customer_ids = [int(row["id"]) for row in cursor.fetchall()]

                today = date.today()
                first_day = today - timedelta(days=self._settings.synthetic_seed_days)
                reservation_rows = []
                for offset in range((today - first_day).days + 14):
                    current_day = first_day + timedelta(days=offset)
                    is_past = current_day < today
                    for staff_id in staff_ids:
                        starts = rng.sample(
                            range(self._settings.business_start_hour, self._settings.business_end_hour),
                            k=min(
                                self._settings.synthetic_daily_bookings_per_staff,
                                self._settings.business_end_hour - self._settings.business_start_hour,
                            ),
                        )
                        for hour in sorted(starts):
                            start_time = datetime.combine(current_day, time(hour=hour))
                            duration = rng.choice(self._SEED_DURATIONS)
                            end_time = (
                                start_time + timedelta(minutes=duration)
                                if rng.random() > 0.1
                                else None
                            )
                            reservation_rows.append(
                                (
                                    staff_id,
                                    rng.choice(customer_ids) if customer_ids else None,
                                    _to_db_timestamp(start_time),
                                    _to_db_timestamp(end_time) if end_time else None,
                                    self._pick_seed_status(rng, is_past).value,
                                    rng.choice(self._SEED_MENUS),
                                )
                            )

                cursor.executemany(
                    """
                    INSERT INTO Reservations (
                        staff_id, customer_id, start_time, end_time, status, menu_content
                    )
                    VALUES (?, ?, ?, ?, ?, ?);
                    """,
                    reservation_rows,
                )
                cursor.execute(
                    """
                    UPDATE Customers
                    SET
                        visit_count = (
                            SELECT COUNT(*) FROM Reservations AS r
                            WHERE r.customer_id = Customers.id AND r.status = 'COMPLETED'
                        ),
                        last_visit_date = (
                            SELECT MAX(r.start_time) FROM Reservations AS r
                            WHERE r.customer_id = Customers.id AND r.status = 'COMPLETED'
                        );
                    """
                )
                conn.commit()
            logger.info(
                "Synthetic seed completed | staff=%s | customers=%s | reservations=%s",
                len(staff_ids),
                len(customer_ids),
                len(reservation_rows),
            )
        except sqlite3.Error as exc:
            raise RuntimeError(f"Synthetic data seeding failed: {exc}") from exc

    @staticmethod
    def _pick_seed_status(rng: random.Random, is_past: bool) -> ReservationStatus:
        roll = rng.random()
        if not is_past:
            return ReservationStatus.TENTATIVE if roll < 0.15 else ReservationStatus.CONFIRMED
        if roll < 0.08:
            return ReservationStatus.NO_SHOW
        if roll < 0.18:
            return ReservationStatus.CANCELLED
        return ReservationStatus.COMPLETED

    def create_staff(self, name: str, is_active: bool = True) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO Staff (name, is_active) VALUES (?, ?);",
                (name, 1 if is_active else 0),
            )
            conn.commit()
            return int(cursor.lastrowid)

    def create_customer(
        self,
        name: str,
        visit_count: int = 0,
        last_visit_date: Optional[datetime] = None,
    ) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO Customers (name, visit_count, last_visit_date)
                VALUES (?, ?, ?);
                """,
                (
                    name,
                    visit_count,
                    _to_db_timestamp(last_visit_date) if last_visit_date else None,
                ),
            )
            conn.commit()
            return int(cursor.lastrowid)

    def create_reservation(
        self,
        staff_id: int,
        start_time: datetime,
        end_time: Optional[datetime] = None,
        status: ReservationStatus = ReservationStatus.CONFIRMED,
        customer_id: Optional[int] = None,
        menu_content: str = "",
    ) -> int:
        """Insert a reservation row and return the created id."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO Reservations (
                    staff_id, customer_id, start_time, end_time, status, menu_content
                )
                VALUES (?, ?, ?, ?, ?, ?);
                """,
                (
                    staff_id,
                    customer_id,
                    _to_db_timestamp(start_time),
                    _to_db_timestamp(end_time) if end_time else None,
                    ReservationStatus(status).value,
                    menu_content,
                ),
            )
            conn.commit()
            return int(cursor.lastrowid)

    def list_active_staff(self) -> list[StaffMember]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, name, is_active FROM Staff WHERE is_active = 1 ORDER BY id ASC;"
            )
            return [
                StaffMember(
                    staff_id=int(row["id"]),
                    name=str(row["name"]),
                    is_active=bool(row["is_active"]),
                )
                for row in cursor.fetchall()
            ]

    def list_reservations(
        self,
        start: datetime,
        end: datetime,
        staff_id: Optional[int] = None,
        statuses: Optional[Sequence[ReservationStatus]] = None,
    ) -> list[Reservation]:
        """Return reservations starting in ``[start, end)`` ordered by start time."""
        clauses = ["start_time >= ?", "start_time < ?"]
        params: list[object] = [_to_db_timestamp(start), _to_db_timestamp(end)]
        if staff_id is not None:
            clauses.append("staff_id = ?")
            params.append(staff_id)
        if statuses:
            placeholders = ",".join("?" for _ in statuses)
            clauses.append(f"status IN ({placeholders})")
            params.extend(ReservationStatus(item).value for item in statuses)

        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT id, staff_id, customer_id, start_time, end_time, status, menu_content
                FROM Reservations
                WHERE {" AND ".join(clauses)}
                ORDER BY start_time ASC, id ASC;
                """,
                tuple(params),
            )
            return [_row_to_reservation(row) for row in cursor.fetchall()]

    def list_reservations_for_customer(
        self,
        customer_id: int,
        limit: int,
    ) -> list[Reservation]:
        """Return a customer's reservations, most recent first."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, staff_id, customer_id, start_time, end_time, status, menu_content
                FROM Reservations
                WHERE customer_id = ?
                ORDER BY start_time DESC, id DESC
                LIMIT ?;
                """,
                (customer_id, limit),
            )
            return [_row_to_reservation(row) for row in cursor.fetchall()]

    def get_customer(self, customer_id: int) -> Optional[Customer]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, name, visit_count, last_visit_date FROM Customers WHERE id = ?;",
                (customer_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return Customer(
                customer_id=int(row["id"]),
                name=str(row["name"]),
                visit_count=int(row["visit_count"]),
                last_visit_date=_from_db_timestamp(row["last_visit_date"]),
            )

    def count_reservations(self, statuses: Optional[Iterable[ReservationStatus]] = None) -> int:
        """Return reservation count for diagnostics and tests."""
        status_values = [ReservationStatus(item).value for item in statuses or ()]
        with self._connect() as conn:
            cursor = conn.cursor()
            if status_values:
                placeholders = ",".join("?" for _ in status_values)
                cursor.execute(
                    f"SELECT COUNT(*) AS count FROM Reservations WHERE status IN ({placeholders});",
                    tuple(status_values),
                )
            else:
                cursor.execute("SELECT COUNT(*) AS count FROM Reservations;")
            return int(cursor.fetchone()["count"])
