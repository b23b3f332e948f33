"""
SQLite adapter for AssetCatalog.

Reads the boats table the admin screens maintain.  Use ":memory:" for
tests, the service database path for production.
"""

import sqlite3
import threading
from decimal import Decimal

from src.domain.catalog import Asset, AssetCatalog
from src.domain.pricing import RateSchedule

_SCHEMA = """
CREATE TABLE IF NOT EXISTS boats (
    id              TEXT PRIMARY KEY,
    name            TEXT NOT NULL,
    port_id         TEXT NOT NULL,
    hourly_rate     TEXT NOT NULL,
    half_day_rate   TEXT NOT NULL,
    full_day_rate   TEXT NOT NULL
);
"""


class SqliteAssetCatalog(AssetCatalog):

    def __init__(self, db_path: str = "booking.db"):
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn_lock = threading.Lock()
        self._conn.executescript(_SCHEMA)

    def get_asset(self, asset_id: str) -> Asset | None:
        with self._conn_lock:
            row = self._conn.execute(
                "SELECT * FROM boats WHERE id = ?", (asset_id,)
            ).fetchone()
        if not row:
            return None
        return Asset(
            asset_id=row["id"],
            name=row["name"],
            location_id=row["port_id"],
            rates=RateSchedule(
                hourly_rate=Decimal(row["hourly_rate"]),
                half_day_rate=Decimal(row["half_day_rate"]),
                full_day_rate=Decimal(row["full_day_rate"]),
            ),
        )

    def store(self, asset: Asset) -> None:
        with self._conn_lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO boats"
                " (id, name, port_id, hourly_rate, half_day_rate, full_day_rate)"
                " VALUES (?, ?, ?, ?, ?, ?)",
                (asset.asset_id, asset.name, asset.location_id,
                 str(asset.rates.hourly_rate), str(asset.rates.half_day_rate),
                 str(asset.rates.full_day_rate)),
            )
            self._conn.commit()

    def close(self) -> None:
        with self._conn_lock:
            self._conn.close()
