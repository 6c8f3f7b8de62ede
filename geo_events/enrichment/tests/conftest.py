"""
Pytest fixtures for enrichment tests.
"""
from __future__ import annotations

import pytest

from geo_events.enrichment.config import EnrichmentConfig
from geo_events.enrichment.pipeline import EnrichmentPipeline
from geo_events.event_store import EventStore
from geo_events.geocache import LocationCache
from geo_events.geocode import Geocode
from geo_events.records import RawRecord
from geo_events.regions import RegionIndex
from geo_events.wiki_city_info import WikiCityInfo


@pytest.fixture
def default_config():
    """Default enrichment configuration."""
    return EnrichmentConfig()


@pytest.fixture
def make_row():
    """Build a source row, Springfield IL by default."""
    def _create_row(**values) -> dict:
        row = {
            'date': '4/5/2025',
            'name': 'Hands Off Springfield',
            'address': '',
            'city': 'Springfield',
            'state': 'IL',
            'zip': '62704',
            'link': 'https://example.org/hands-off',
        }
        row.update(values)
        return row
    return _create_row


@pytest.fixture
def make_record(make_row):
    def _create_record(record_type: str = 'event', row_number: int = 1, **values) -> RawRecord:
        return RawRecord.from_dict(make_row(**values), 'April', record_type, row_number)
    return _create_record


@pytest.fixture
def make_pipeline(default_config, geo_config, springfield_geolocator, springfield_wiki, region_db_path, precinct_path):
    """
    Pipeline over an in-memory store and cache.

    Resolvers default to the Springfield fakes; pass geolocator or wiki_client
    to override them.
    """
    created = []

    def _create_pipeline(geolocator=None, wiki_client=None, config=None, with_regions=True, app_hooks=None):
        cache = LocationCache()
        region_index = RegionIndex.from_paths(region_db_path, precinct_path) if with_regions else None
        pipeline = EnrichmentPipeline(
            config=config or default_config,
            geocoder=Geocode(geo_config, cache, geolocator=geolocator or springfield_geolocator),
            city_resolver=WikiCityInfo(geo_config, cache, client=wiki_client or springfield_wiki),
            store=EventStore(),
            region_index=region_index,
            app_hooks=app_hooks,
        )
        created.append(pipeline)
        return pipeline

    yield _create_pipeline
    for pipeline in created:
        pipeline.store.close()
        if pipeline.region_index is not None:
            pipeline.region_index.close()
