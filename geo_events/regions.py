"""
regions.py - Enclosing region lookup.

Regions (cities, states, zips, metros, ...) live in an external SQLite store:

    region_bounds(id, xmin, ymin, xmax, ymax)   bounding boxes, plain or R*Tree
    polygon_regions(region_id, polygon_wkb)     exact boundaries as WKB

A point query first selects the regions whose bounding box contains the point,
then keeps those whose polygon covers it. Regions without a stored polygon are
accepted on their bounding box.
"""
from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Union

from shapely import wkb
from shapely.geometry import Point

if TYPE_CHECKING:
    from .voting_info import PrecinctIndex

logger = logging.getLogger(__name__)


class SpatialIndexError(Exception):
    """Raised when a region store or precinct index cannot be loaded."""


class RegionDb:
    """Read-only access to the region store."""

    def __init__(self, db_path: Union[str, Path]) -> None:
        self.db_path = Path(db_path)
        if not self.db_path.exists():
            raise SpatialIndexError(f"Region store not found: {self.db_path}")
        try:
            self.conn = sqlite3.connect(f"file:{self.db_path.resolve().as_posix()}?mode=ro", uri=True)
            self.conn.execute("SELECT 1 FROM region_bounds LIMIT 1").fetchall()
        except sqlite3.Error as e:
            raise SpatialIndexError(f"Cannot open region store {self.db_path}: {e}") from e
        self._geometries: Dict[int, object] = {}

    def candidate_ids(self, lat: float, lon: float) -> List[int]:
        """Ids of regions whose bounding box contains the point."""
        rows = self.conn.execute(
            """
            SELECT id FROM region_bounds
            WHERE xmin <= :lon AND xmax >= :lon AND ymin <= :lat AND ymax >= :lat
            ORDER BY id
            """,
            {'lat': lat, 'lon': lon},
        ).fetchall()
        return [int(row[0]) for row in rows]

    def geometry(self, region_id: int):
        """Polygon of a region, or None if the store has none."""
        if region_id not in self._geometries:
            row = self.conn.execute(
                "SELECT polygon_wkb FROM polygon_regions WHERE region_id = ?", (region_id,)
            ).fetchone()
            self._geometries[region_id] = wkb.loads(bytes(row[0])) if row and row[0] is not None else None
        return self._geometries[region_id]

    def regions_containing(self, lat: float, lon: float) -> List[int]:
        point = Point(lon, lat)
        region_ids = []
        for region_id in self.candidate_ids(lat, lon):
            geometry = self.geometry(region_id)
            if geometry is None or geometry.covers(point):
                region_ids.append(region_id)
        return region_ids

    def close(self) -> None:
        self.conn.close()


class RegionIndex:
    """
    Regions and voting lean for a point.

    Attributes:
        region_db (RegionDb): Region store.
        precinct_index (Optional[PrecinctIndex]): Precinct lean index.
    """

    def __init__(self, region_db: RegionDb, precinct_index: Optional['PrecinctIndex'] = None) -> None:
        self.region_db = region_db
        self.precinct_index = precinct_index

    @classmethod
    def from_paths(cls, region_db_path: Union[str, Path], precinct_path: Union[str, Path]) -> 'RegionIndex':
        """
        Open the region store and load the precinct index.

        Raises:
            SpatialIndexError: If either source is missing or unreadable.
        """
        from .voting_info import load_precinct_index
        return cls(RegionDb(region_db_path), load_precinct_index(precinct_path))

    def regions_containing(self, lat: float, lon: float) -> List[int]:
        """
        Ids of all regions covering a point, ascending.

        A point outside every region gives an empty list.
        """
        return self.region_db.regions_containing(lat, lon)

    def voting_lean_at(self, lat: float, lon: float) -> Optional[float]:
        if self.precinct_index is None:
            return None
        return self.precinct_index.voting_lean_at(lat, lon)

    def close(self) -> None:
        self.region_db.close()
