import sqlite3

import pytest

from geo_events.regions import RegionDb, RegionIndex, SpatialIndexError
from geo_events.voting_info import PrecinctIndex, load_precinct_index


def test_point_inside_polygon(region_db_path):
    db = RegionDb(region_db_path)
    assert db.regions_containing(39.78, -89.65) == [1, 2, 3]
    db.close()


def test_notch_is_excluded(region_db_path):
    """Inside the county's bounding box but in the cut away corner."""
    db = RegionDb(region_db_path)
    assert 1 in db.candidate_ids(39.8, -89.2)
    assert db.regions_containing(39.8, -89.2) == [2]
    db.close()


def test_point_outside_every_region(region_db_path):
    db = RegionDb(region_db_path)
    assert db.regions_containing(47.6, -122.3) == []
    db.close()


def test_boundary_point_is_covered(region_db_path):
    db = RegionDb(region_db_path)
    assert 1 in db.regions_containing(39.0, -90.0)
    db.close()


def test_missing_region_store(tmp_path):
    with pytest.raises(SpatialIndexError):
        RegionDb(tmp_path / "missing.db")


def test_region_store_without_tables(tmp_path):
    path = tmp_path / "empty.db"
    sqlite3.connect(str(path)).close()
    with pytest.raises(SpatialIndexError):
        RegionDb(path)


def test_precinct_lookup(precinct_path):
    index = load_precinct_index(precinct_path)
    assert len(index) == 2
    assert index.voting_lean_at(39.78, -89.65) == 12.5
    assert index.voting_lean_at(39.2, -89.2) == -3.0
    assert index.voting_lean_at(47.6, -122.3) is None


def test_precinct_index_loaded_once(precinct_path):
    assert load_precinct_index(precinct_path) is load_precinct_index(str(precinct_path))


def test_missing_precinct_file(tmp_path):
    with pytest.raises(SpatialIndexError):
        load_precinct_index(tmp_path / "missing.geojson")


def test_feature_without_lean():
    index = PrecinctIndex.from_feature_collection({
        'type': 'FeatureCollection',
        'features': [{'type': 'Feature', 'properties': {},
                      'geometry': {'type': 'Polygon',
                                   'coordinates': [[[-90, 39], [-89, 39], [-89, 40], [-90, 40], [-90, 39]]]}}],
    })
    assert index.voting_lean_at(39.5, -89.5) is None


def test_region_index_from_paths(region_db_path, precinct_path):
    index = RegionIndex.from_paths(region_db_path, precinct_path)
    assert index.regions_containing(39.78, -89.65) == [1, 2, 3]
    assert index.voting_lean_at(39.78, -89.65) == 12.5
    index.close()


def test_region_index_requires_precincts(region_db_path, tmp_path):
    with pytest.raises(SpatialIndexError):
        RegionIndex.from_paths(region_db_path, tmp_path / "missing.geojson")
