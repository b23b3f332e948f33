"""
SQLite adapter for ReservationStore.

Use ":memory:" for tests, a file path for production.

Each worker thread gets its own autocommit connection to a file database
(WAL journal, so readers never wait for a settlement in progress).  An
":memory:" database exists only inside one connection, so that case
shares a single connection under a lock.

Settlement is a single conditional UPDATE, so the row itself decides who
wins a race: the statement that flips settled 0 -> 1 reports one changed
row, every later one reports zero.  No lock in this process is involved,
which also holds across processes sharing the file.
"""

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal

from src.domain.pricing import BookingMode
from src.domain.reservation import Reservation, ReservationStore, SettleOutcome

_SCHEMA = """
CREATE TABLE IF NOT EXISTS reservations (
    id              TEXT PRIMARY KEY,
    asset_id        TEXT,
    location_id     TEXT,
    requester_id    TEXT,
    start_time      TEXT NOT NULL,
    end_time        TEXT NOT NULL,
    mode            TEXT NOT NULL,
    duration_hours  INTEGER NOT NULL,
    include_captain INTEGER NOT NULL DEFAULT 0,
    price           TEXT NOT NULL,
    settled         INTEGER NOT NULL DEFAULT 0,
    settled_at      TEXT,
    created_at      TEXT NOT NULL,
    CHECK (end_time > start_time),
    CHECK (settled IN (0, 1))
);

CREATE INDEX IF NOT EXISTS idx_reservations_requester ON reservations (requester_id);
CREATE INDEX IF NOT EXISTS idx_reservations_settled ON reservations (settled);
"""


def _fmt(dt: datetime) -> str:
    # Fixed-width UTC so that text order is time order.
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")


def _now() -> str:
    return _fmt(datetime.now(timezone.utc))


def _parse_dt(s: str) -> datetime:
    return datetime.fromisoformat(s)


class SqliteReservationStore(ReservationStore):

    def __init__(self, db_path: str = "booking.db", timeout: float = 30.0):
        self._db_path = db_path
        self._timeout = timeout
        self._local = threading.local()
        self._opened: list[sqlite3.Connection] = []
        self._opened_lock = threading.Lock()

        first = self._connect()
        first.executescript(_SCHEMA)
        if db_path == ":memory:":
            self._shared: sqlite3.Connection | None = first
            self._shared_lock = threading.Lock()
        else:
            self._shared = None
            self._local.conn = first

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self._db_path,
            timeout=self._timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        if self._db_path != ":memory:":
            conn.execute("PRAGMA journal_mode=WAL")
        with self._opened_lock:
            self._opened.append(conn)
        return conn

    @contextmanager
    def _connection(self):
        if self._shared is not None:
            with self._shared_lock:
                yield self._shared
            return
        conn = getattr(self._local, "conn", None)
        if conn is None:
            conn = self._local.conn = self._connect()
        yield conn

    def _run(self, sql: str, params=()) -> int:
        with self._connection() as conn:
            return conn.execute(sql, params).rowcount

    def _one(self, sql: str, params=()):
        with self._connection() as conn:
            return conn.execute(sql, params).fetchone()

    def _all(self, sql: str, params=()) -> list:
        with self._connection() as conn:
            return conn.execute(sql, params).fetchall()

    def create(self, reservation: Reservation) -> str:
        try:
            self._run(
                "INSERT INTO reservations"
                " (id, asset_id, location_id, requester_id, start_time, end_time,"
                "  mode, duration_hours, include_captain, price, settled, settled_at, created_at)"
                " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    reservation.reservation_id,
                    reservation.asset_id,
                    reservation.location_id,
                    reservation.requester_id,
                    _fmt(reservation.start_time),
                    _fmt(reservation.end_time),
                    reservation.mode.value,
                    reservation.duration_hours,
                    int(reservation.include_captain),
                    str(reservation.price),
                    int(reservation.settled),
                    _fmt(reservation.settled_at) if reservation.settled_at else None,
                    _fmt(reservation.created_at),
                ),
            )
        except sqlite3.IntegrityError as exc:
            raise ValueError(
                f"Cannot store reservation {reservation.reservation_id}: {exc}"
            ) from exc
        return reservation.reservation_id

    def get(self, reservation_id: str) -> Reservation | None:
        row = self._one("SELECT * FROM reservations WHERE id = ?", (reservation_id,))
        if not row:
            return None
        return self._row_to_reservation(row)

    def mark_settled(self, reservation_id: str) -> SettleOutcome:
        changed = self._run(
            "UPDATE reservations SET settled = 1, settled_at = ?"
            " WHERE id = ? AND settled = 0",
            (_now(), reservation_id),
        )
        if changed == 1:
            return SettleOutcome.SETTLED

        exists = self._one("SELECT 1 FROM reservations WHERE id = ?", (reservation_id,))
        return SettleOutcome.ALREADY_SETTLED if exists else SettleOutcome.NOT_FOUND

    def list_for_requester(self, requester_id: str) -> list[Reservation]:
        rows = self._all(
            "SELECT * FROM reservations WHERE requester_id = ?"
            " ORDER BY created_at DESC, rowid DESC",
            (requester_id,),
        )
        return [self._row_to_reservation(r) for r in rows]

    def list_pending(self) -> list[Reservation]:
        rows = self._all(
            "SELECT * FROM reservations WHERE settled = 0 ORDER BY created_at, rowid"
        )
        return [self._row_to_reservation(r) for r in rows]

    def clear_references(
        self,
        asset_id: str | None = None,
        location_id: str | None = None,
        requester_id: str | None = None,
    ) -> int:
        # A NULL parameter never compares equal, so unset arguments match nothing.
        return self._run(
            "UPDATE reservations SET"
            "  asset_id = CASE WHEN asset_id = :a THEN NULL ELSE asset_id END,"
            "  location_id = CASE WHEN location_id = :l THEN NULL ELSE location_id END,"
            "  requester_id = CASE WHEN requester_id = :r THEN NULL ELSE requester_id END"
            " WHERE asset_id = :a OR location_id = :l OR requester_id = :r",
            {"a": asset_id, "l": location_id, "r": requester_id},
        )

    def close(self) -> None:
        with self._opened_lock:
            for conn in self._opened:
                conn.close()
            self._opened.clear()

    @staticmethod
    def _row_to_reservation(row) -> Reservation:
        return Reservation(
            reservation_id=row["id"],
            asset_id=row["asset_id"],
            location_id=row["location_id"],
            requester_id=row["requester_id"],
            start_time=_parse_dt(row["start_time"]),
            end_time=_parse_dt(row["end_time"]),
            mode=BookingMode(row["mode"]),
            duration_hours=row["duration_hours"],
            include_captain=bool(row["include_captain"]),
            price=Decimal(row["price"]),
            created_at=_parse_dt(row["created_at"]),
            settled=bool(row["settled"]),
            settled_at=_parse_dt(row["settled_at"]) if row["settled_at"] else None,
        )
