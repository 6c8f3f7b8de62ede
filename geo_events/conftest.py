"""
Pytest fixtures shared by the geo_events and geo_events.enrichment tests.
"""
from __future__ import annotations

import json
import sqlite3
from typing import Callable, Dict, List, Optional, Tuple

import pytest
from geopy.location import Location
from shapely import wkb
from shapely.geometry import Polygon, box, mapping

from geo_events.geo_config import GeoConfig

SPRINGFIELD_LAT = 39.78
SPRINGFIELD_LON = -89.65

# Square county with its north east quarter cut away
NOTCHED_REGION = Polygon([(-90, 39), (-89, 39), (-89, 39.5), (-89.5, 39.5), (-89.5, 40), (-90, 40)])
STATE_REGION = box(-91.5, 37.0, -87.5, 42.5)


class FakeGeolocator:
    """Stands in for geopy's Nominatim; answers come from a callable."""

    def __init__(self, respond: Optional[Callable] = None):
        self.respond = respond or (lambda query: [])
        self.calls: List = []
        self.kwargs: List[dict] = []

    def geocode(self, query, **kwargs):
        self.calls.append(query)
        self.kwargs.append(kwargs)
        results = self.respond(query)
        if not results:
            return None
        return [Location(name, (lat, lon), {}) for lat, lon, name in results]


class FakeWikiClient:
    """Stands in for WikiClient with canned search results and categories."""

    def __init__(
        self,
        search: Optional[Dict[str, List[str]]] = None,
        categories: Optional[Dict[str, List[str]]] = None,
        details: Optional[Dict[str, Tuple[str, str]]] = None,
    ):
        self.search = search or {}
        self.category_map = categories or {}
        self.details = details or {}
        self.calls: List[Tuple[str, str]] = []

    def search_titles(self, query: str, limit: int = 10) -> List[str]:
        self.calls.append(('search', query))
        return list(self.search.get(query, []))[:limit]

    def categories(self, title: str) -> List[str]:
        self.calls.append(('categories', title))
        return list(self.category_map.get(title, []))

    def page_details(self, title: str, thumbnail_size: int = 400) -> Tuple[str, str]:
        self.calls.append(('details', title))
        default = (f"https://en.wikipedia.org/wiki/{title.replace(' ', '_')}", '')
        return self.details.get(title, default)


def springfield_wiki_client() -> FakeWikiClient:
    return FakeWikiClient(
        search={
            'Springfield, Illinois': [
                'Springfield',
                'Springfield, Illinois',
                'Springfield (disambiguation)',
            ],
        },
        categories={
            'Springfield': ['Category:Disambiguation pages', 'Category:Place name disambiguation pages'],
            'Springfield, Illinois': ['Category:Cities in Illinois', 'Category:County seats in Illinois'],
        },
        details={
            'Springfield, Illinois': (
                'https://en.wikipedia.org/wiki/Springfield,_Illinois',
                'https://upload.wikimedia.org/thumb/400px-Springfield_IL.jpg',
            ),
        },
    )


@pytest.fixture
def geo_config():
    """GeoConfig without throttle delays."""
    return GeoConfig(geo_config_updates={'geocode_sleep_interval': 0, 'wiki_request_interval': 0})


@pytest.fixture
def fake_geolocator():
    def _create(respond: Optional[Callable] = None) -> FakeGeolocator:
        return FakeGeolocator(respond)
    return _create


@pytest.fixture
def springfield_geolocator():
    """Geolocator that only knows Springfield, IL by postal code."""
    def respond(query):
        if isinstance(query, dict) and query.get('postalcode') == '62704':
            return [(SPRINGFIELD_LAT, SPRINGFIELD_LON, 'Springfield, Sangamon County, Illinois, 62704, United States')]
        return []
    return FakeGeolocator(respond)


@pytest.fixture
def fake_wiki_client():
    def _create(**kwargs) -> FakeWikiClient:
        return FakeWikiClient(**kwargs)
    return _create


@pytest.fixture
def springfield_wiki():
    return springfield_wiki_client()


@pytest.fixture
def region_db_path(tmp_path):
    """Region store with a notched county (1), a state (2) and a box-only region (3)."""
    path = tmp_path / "regions.db"
    conn = sqlite3.connect(str(path))
    conn.execute("CREATE TABLE region_bounds (id INTEGER PRIMARY KEY, xmin REAL, ymin REAL, xmax REAL, ymax REAL)")
    conn.execute("CREATE TABLE polygon_regions (region_id INTEGER PRIMARY KEY, polygon_wkb BLOB)")
    for region_id, geometry in ((1, NOTCHED_REGION), (2, STATE_REGION)):
        conn.execute("INSERT INTO region_bounds VALUES (?, ?, ?, ?, ?)", (region_id, *geometry.bounds))
        conn.execute("INSERT INTO polygon_regions VALUES (?, ?)", (region_id, wkb.dumps(geometry)))
    conn.execute("INSERT INTO region_bounds VALUES (3, -89.7, 39.7, -89.6, 39.8)")
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def precinct_path(tmp_path):
    """Two precincts splitting the notched county east and west."""
    path = tmp_path / "precincts.geojson"
    collection = {
        'type': 'FeatureCollection',
        'features': [
            {'type': 'Feature', 'properties': {'pct_dem_lead': 12.5}, 'geometry': mapping(box(-90, 39, -89.6, 40))},
            {'type': 'Feature', 'properties': {'pct_dem_lead': -3.0}, 'geometry': mapping(box(-89.6, 39, -89, 40))},
        ],
    }
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(collection, f)
    return path
