"""
event_store.py - Destination store write contract.

The store is a SQLite file rebuilt from scratch on every run. All inserts of
a run happen inside one transaction that is committed once at the end; a
fatal error leaves nothing committed beyond the empty schema.
"""
from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Union

from .location import CityInfo, LocationInfo

if TYPE_CHECKING:
    from .enrichment.model import EnrichedRecord

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE city_infos (
    id INTEGER PRIMARY KEY,
    city_key TEXT NOT NULL UNIQUE,
    title TEXT NOT NULL,
    article_url TEXT NOT NULL,
    thumbnail_url TEXT NOT NULL
);
CREATE TABLE location_infos (
    id INTEGER PRIMARY KEY,
    address_key TEXT NOT NULL UNIQUE,
    lat REAL NOT NULL,
    lon REAL NOT NULL,
    display_name TEXT,
    city TEXT NOT NULL,
    state TEXT NOT NULL,
    pct_dem_lead REAL,
    city_info_id INTEGER NOT NULL REFERENCES city_infos(id)
);
CREATE TABLE events (
    id INTEGER PRIMARY KEY,
    event_key TEXT NOT NULL UNIQUE,
    date INTEGER NOT NULL,
    name TEXT NOT NULL,
    link TEXT,
    address TEXT,
    zip TEXT,
    sheet_name TEXT,
    location_info_id INTEGER NOT NULL REFERENCES location_infos(id)
);
CREATE TABLE turnouts (
    id INTEGER PRIMARY KEY,
    turnout_key TEXT NOT NULL UNIQUE,
    date INTEGER NOT NULL,
    name TEXT NOT NULL,
    link TEXT,
    address TEXT,
    zip TEXT,
    low INTEGER,
    high INTEGER,
    coverage_url TEXT,
    sheet_name TEXT,
    location_info_id INTEGER NOT NULL REFERENCES location_infos(id)
);
CREATE TABLE event_regions (
    event_id INTEGER NOT NULL REFERENCES events(id),
    region_id INTEGER NOT NULL,
    PRIMARY KEY (event_id, region_id)
);
CREATE TABLE turnout_regions (
    turnout_id INTEGER NOT NULL REFERENCES turnouts(id),
    region_id INTEGER NOT NULL,
    PRIMARY KEY (turnout_id, region_id)
);
CREATE TABLE meta (
    key TEXT PRIMARY KEY,
    value TEXT
);
"""

RECORD_TABLES = {
    'event': ('events', 'event_key', 'event_regions', 'event_id'),
    'turnout': ('turnouts', 'turnout_key', 'turnout_regions', 'turnout_id'),
}


class StoreError(Exception):
    """Raised when the destination store cannot be created or written."""


def date_as_int(value: date) -> int:
    """Store form of a date, e.g. 2025-04-05 -> 20250405."""
    return value.year * 10000 + value.month * 100 + value.day


class EventStore:
    """
    Single writer of the destination store.

    Attributes:
        db_path (Path): Store file; ':memory:' keeps it in memory.
    """

    def __init__(self, db_path: Union[str, Path] = ':memory:') -> None:
        self.db_path = db_path if str(db_path) == ':memory:' else Path(db_path)
        try:
            if isinstance(self.db_path, Path):
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                if self.db_path.exists():
                    logger.info(f"Removing previous store {self.db_path}")
                    self.db_path.unlink()
            self.conn = sqlite3.connect(str(self.db_path))
            self.conn.executescript(SCHEMA)
            self.conn.execute(
                "INSERT INTO meta (key, value) VALUES ('created_at', ?)",
                (datetime.now(timezone.utc).isoformat(timespec='seconds'),),
            )
        except (OSError, sqlite3.Error) as e:
            raise StoreError(f"Cannot create destination store {self.db_path}: {e}") from e

    def _insert(self, sql: str, params: tuple) -> int:
        try:
            cursor = self.conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StoreError(f"Insert failed: {e}") from e
        return int(cursor.lastrowid)

    def insert_city_info(self, city_key: str, city_info: CityInfo) -> int:
        return self._insert(
            "INSERT INTO city_infos (city_key, title, article_url, thumbnail_url) VALUES (?, ?, ?, ?)",
            (city_key, city_info.title, city_info.article_url, city_info.thumbnail_url),
        )

    def insert_location_info(self, location: LocationInfo, city_info_id: int) -> int:
        return self._insert(
            """
            INSERT INTO location_infos
                (address_key, lat, lon, display_name, city, state, pct_dem_lead, city_info_id)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                location.address_key,
                location.lat,
                location.lon,
                location.geocode.display_name,
                location.city,
                location.state,
                location.pct_dem_lead,
                city_info_id,
            ),
        )

    def insert_record(self, enriched: 'EnrichedRecord', record_key: str, location_info_id: int) -> int:
        """
        Insert an event or turnout row.

        Returns:
            int: Id of the new row in its table.
        """
        record = enriched.record
        if record.record_type.value == 'turnout':
            return self._insert(
                """
                INSERT INTO turnouts
                    (turnout_key, date, name, link, address, zip, low, high, coverage_url, sheet_name, location_info_id)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record_key,
                    date_as_int(enriched.date),
                    record.name,
                    record.link,
                    record.address,
                    record.zip,
                    record.low,
                    record.high,
                    record.coverage_url,
                    record.sheet_name,
                    location_info_id,
                ),
            )
        return self._insert(
            """
            INSERT INTO events (event_key, date, name, link, address, zip, sheet_name, location_info_id)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record_key,
                date_as_int(enriched.date),
                record.name,
                record.link,
                record.address,
                record.zip,
                record.sheet_name,
                location_info_id,
            ),
        )

    def insert_record_regions(self, record_type: str, record_id: int, region_ids: Iterable[int]) -> None:
        _, _, junction, id_column = RECORD_TABLES[record_type]
        try:
            self.conn.executemany(
                f"INSERT OR IGNORE INTO {junction} ({id_column}, region_id) VALUES (?, ?)",
                [(record_id, int(region_id)) for region_id in region_ids],
            )
        except sqlite3.Error as e:
            raise StoreError(f"Insert into {junction} failed: {e}") from e

    def count(self, table: str) -> int:
        if table not in ('city_infos', 'location_infos', 'events', 'turnouts',
                         'event_regions', 'turnout_regions', 'meta'):
            raise ValueError(f"Unknown table: {table}")
        return int(self.conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0])

    def commit(self) -> None:
        try:
            self.conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Commit failed: {e}") from e

    def rollback(self) -> None:
        self.conn.rollback()

    def close(self) -> None:
        self.conn.close()
