"""
voting_info.py - Precinct voting lean lookup.

Loads a GeoJSON FeatureCollection of precinct polygons once per process into
a shapely STRtree. A point lookup pre-filters by envelope through the tree,
then runs an exact covers test and returns the precinct's pct_dem_lead.
"""
from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Union

from shapely.geometry import Point, shape
from shapely.strtree import STRtree

from .regions import SpatialIndexError

logger = logging.getLogger(__name__)

VOTING_LEAN_PROPERTY = 'pct_dem_lead'


class PrecinctIndex:
    """
    Spatial index of precincts.

    Attributes:
        geometries (list): Precinct polygons.
        leans (List[Optional[float]]): Voting lean per precinct, same order.
    """

    def __init__(self, geometries: list, leans: List[Optional[float]]) -> None:
        if len(geometries) != len(leans):
            raise ValueError("geometries and leans must have the same length")
        self.geometries = list(geometries)
        self.leans = list(leans)
        self.tree = STRtree(self.geometries)

    @classmethod
    def from_feature_collection(cls, collection: dict) -> 'PrecinctIndex':
        geometries = []
        leans: List[Optional[float]] = []
        for feature in collection.get('features', []):
            if not feature.get('geometry'):
                continue
            geometries.append(shape(feature['geometry']))
            value = (feature.get('properties') or {}).get(VOTING_LEAN_PROPERTY)
            leans.append(float(value) if value is not None else None)
        return cls(geometries, leans)

    def __len__(self) -> int:
        return len(self.geometries)

    def voting_lean_at(self, lat: float, lon: float) -> Optional[float]:
        """
        Voting lean of the precinct covering a point.

        Returns:
            Optional[float]: Signed lean, or None when no precinct covers the point.
        """
        point = Point(lon, lat)
        for index in sorted(int(i) for i in self.tree.query(point)):
            if self.geometries[index].covers(point):
                return self.leans[index]
        return None


@lru_cache(maxsize=4)
def _load_precinct_index(path: Path) -> PrecinctIndex:
    logger.info(f"Loading precinct index from {path}")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            collection = json.load(f)
    except (OSError, ValueError) as e:
        raise SpatialIndexError(f"Cannot load precinct index {path}: {e}") from e
    index = PrecinctIndex.from_feature_collection(collection)
    logger.info(f"Loaded {len(index)} precincts")
    return index


def load_precinct_index(path: Union[str, Path]) -> PrecinctIndex:
    """
    Load the precinct index, once per process for a given path.

    Raises:
        SpatialIndexError: If the file is missing or unreadable.
    """
    path = Path(path).resolve()
    if not path.exists():
        raise SpatialIndexError(f"Precinct index not found: {path}")
    return _load_precinct_index(path)
