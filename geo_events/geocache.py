"""
geocache.py - Resolution cache for addresses and cities.

Caches both successful lookups and failures ('no result' markers) so that an
address or city is sent to an external service at most once. Storage is
pluggable: an in-memory backend for tests and a SQLite backend that commits
every write so an interrupted run keeps what it already resolved.
"""

import json
import logging
import sqlite3
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Protocol, Tuple, Union

from .location import CityInfo, GeocodeResult

logger = logging.getLogger(__name__)

ADDRESS_NAMESPACE = 'address'
CITY_NAMESPACE = 'city'


@dataclass
class GeoCacheEntry:
    """
    Represents a single cached resolution.

    Attributes:
        key (str): Address key or city key.
        data (dict): Resolved values; empty for a no-result marker.
        no_result (bool): True if the lookup failed.
        timestamp (float): Time the entry was written.
    """
    key: str
    data: dict = field(default_factory=dict)
    no_result: bool = False
    timestamp: float = 0.0

    @classmethod
    def from_dict(cls, d: dict) -> 'GeoCacheEntry':
        """
        Create a GeoCacheEntry from a stored record, converting types as needed.

        Args:
            d (dict): Stored record.
        Returns:
            GeoCacheEntry: The constructed entry.
        """
        no_result = d.get('no_result', False)
        if isinstance(no_result, str):
            no_result = no_result.lower() in ('true', '1')
        else:
            no_result = bool(no_result)
        try:
            timestamp = float(d.get('timestamp') or 0.0)
        except (TypeError, ValueError):
            timestamp = 0.0
        data = d.get('data') or {}
        if isinstance(data, str):
            data = json.loads(data)
        return cls(key=d.get('key', ''), data=data, no_result=no_result, timestamp=timestamp)

    def as_dict(self) -> dict:
        return {
            'key': self.key,
            'data': dict(self.data),
            'no_result': self.no_result,
            'timestamp': self.timestamp,
        }

    def to_geocode(self) -> Optional[GeocodeResult]:
        if self.no_result:
            return None
        return GeocodeResult(
            latitude=float(self.data['latitude']),
            longitude=float(self.data['longitude']),
            display_name=self.data.get('display_name', ''),
        )

    def to_city_info(self) -> Optional[CityInfo]:
        if self.no_result:
            return None
        return CityInfo(
            title=self.data.get('title', ''),
            article_url=self.data.get('article_url', ''),
            thumbnail_url=self.data.get('thumbnail_url', ''),
        )


class CacheBackend(Protocol):
    """Key-value storage used by LocationCache."""

    def get(self, namespace: str, key: str) -> Optional[dict]:
        ...

    def put(self, namespace: str, key: str, record: dict) -> None:
        ...

    def delete(self, namespace: str, key: str) -> None:
        ...

    def count(self, namespace: str) -> int:
        ...

    def close(self) -> None:
        ...


class MemoryCacheBackend:
    """Dictionary backed storage, lost when the process exits."""

    def __init__(self) -> None:
        self._records: Dict[Tuple[str, str], dict] = {}

    def get(self, namespace: str, key: str) -> Optional[dict]:
        record = self._records.get((namespace, key))
        return dict(record) if record is not None else None

    def put(self, namespace: str, key: str, record: dict) -> None:
        self._records[(namespace, key)] = dict(record)

    def delete(self, namespace: str, key: str) -> None:
        self._records.pop((namespace, key), None)

    def count(self, namespace: str) -> int:
        return sum(1 for ns, _ in self._records if ns == namespace)

    def close(self) -> None:
        pass


class SQLiteCacheBackend:
    """
    SQLite storage shared across sequential runs.

    Every put is committed immediately.
    """

    def __init__(self, db_path: Union[str, Path]) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.execute("PRAGMA synchronous = FULL")
        self.conn.execute(
            """
            CREATE TABLE IF NOT EXISTS cache_entries (
                namespace TEXT NOT NULL,
                key TEXT NOT NULL,
                no_result INTEGER NOT NULL DEFAULT 0,
                timestamp REAL,
                data TEXT,
                PRIMARY KEY (namespace, key)
            )
            """
        )
        self.conn.commit()

    def get(self, namespace: str, key: str) -> Optional[dict]:
        row = self.conn.execute(
            "SELECT key, no_result, timestamp, data FROM cache_entries WHERE namespace = ? AND key = ?",
            (namespace, key),
        ).fetchone()
        if not row:
            return None
        return {'key': row[0], 'no_result': bool(row[1]), 'timestamp': row[2], 'data': row[3]}

    def put(self, namespace: str, key: str, record: dict) -> None:
        self.conn.execute(
            """
            INSERT OR REPLACE INTO cache_entries (namespace, key, no_result, timestamp, data)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                namespace,
                key,
                1 if record.get('no_result') else 0,
                record.get('timestamp'),
                json.dumps(record.get('data') or {}),
            ),
        )
        self.conn.commit()

    def delete(self, namespace: str, key: str) -> None:
        self.conn.execute("DELETE FROM cache_entries WHERE namespace = ? AND key = ?", (namespace, key))
        self.conn.commit()

    def count(self, namespace: str) -> int:
        row = self.conn.execute("SELECT COUNT(*) FROM cache_entries WHERE namespace = ?", (namespace,)).fetchone()
        return int(row[0])

    def close(self) -> None:
        self.conn.close()


class LocationCache:
    """
    Cache of address geocodes and city infos, good and bad.

    Attributes:
        backend (CacheBackend): Storage for the entries.
        time_between_retrying_failed_lookups (Optional[float]): Seconds after
            which a failure marker is dropped and the lookup retried; None
            keeps failure markers forever.
    """

    def __init__(
        self,
        backend: Optional[CacheBackend] = None,
        days_between_retrying_failed_lookups: Optional[float] = None
    ):
        self.backend: CacheBackend = backend if backend is not None else MemoryCacheBackend()
        self.time_between_retrying_failed_lookups: Optional[float] = (
            days_between_retrying_failed_lookups * 24 * 3600
            if days_between_retrying_failed_lookups is not None else None
        )
        logger.info(
            f"Location cache ready: {self.backend.count(ADDRESS_NAMESPACE)} addresses, "
            f"{self.backend.count(CITY_NAMESPACE)} cities"
        )

    def _should_retry_failed_lookup(self, entry: GeoCacheEntry) -> bool:
        if self.time_between_retrying_failed_lookups is None:
            return False
        return time.time() - entry.timestamp > self.time_between_retrying_failed_lookups

    def _lookup(self, namespace: str, key: str) -> Optional[GeoCacheEntry]:
        record = self.backend.get(namespace, key)
        if record is None:
            return None
        entry = GeoCacheEntry.from_dict(record)
        if entry.no_result and self._should_retry_failed_lookup(entry):
            logger.info(f"Retrying previously failed {namespace} lookup: {key}")
            self.backend.delete(namespace, key)
            return None
        return entry

    def _add(self, namespace: str, key: str, data: dict, no_result: bool) -> None:
        entry = GeoCacheEntry(key=key, data=data, no_result=no_result, timestamp=time.time())
        self.backend.put(namespace, key, entry.as_dict())

    def lookup_address(self, address_key: str) -> Optional[GeoCacheEntry]:
        """
        Look up an address key.

        Returns:
            Optional[GeoCacheEntry]: Entry (possibly a no-result marker) or None if never seen.
        """
        return self._lookup(ADDRESS_NAMESPACE, address_key)

    def add_address(self, address_key: str, result: GeocodeResult) -> None:
        self._add(ADDRESS_NAMESPACE, address_key, result.as_dict(), no_result=False)

    def add_bad_address(self, address_key: str) -> None:
        self._add(ADDRESS_NAMESPACE, address_key, {}, no_result=True)

    def lookup_city(self, city_key: str) -> Optional[GeoCacheEntry]:
        """
        Look up a city key.

        Returns:
            Optional[GeoCacheEntry]: Entry (possibly a no-result marker) or None if never seen.
        """
        return self._lookup(CITY_NAMESPACE, city_key)

    def add_city(self, city_key: str, city_info: CityInfo) -> None:
        self._add(CITY_NAMESPACE, city_key, city_info.as_dict(), no_result=False)

    def add_bad_city(self, city_key: str) -> None:
        self._add(CITY_NAMESPACE, city_key, {}, no_result=True)

    def close(self) -> None:
        self.backend.close()
