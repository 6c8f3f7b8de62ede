"""geo_events package: Exposes core classes for enriching and storing crowd-sourced protest events and turnouts."""

from geo_events.address import Address
from geo_events.location import CityInfo, GeocodeResult, LocationInfo
from geo_events.geo_config import GeoConfig
from geo_events.geocache import LocationCache, MemoryCacheBackend, SQLiteCacheBackend
from geo_events.geocode import Geocode, UnresolvableAddress
from geo_events.wiki_client import WikiClient, WikiRequestError
from geo_events.wiki_city_info import WikiCityInfo
from geo_events.regions import RegionDb, RegionIndex, SpatialIndexError
from geo_events.voting_info import PrecinctIndex, load_precinct_index
from geo_events.identity import EntityKind, IdentityDeduplicator, SeenKeySet, city_key
from geo_events.records import RawRecord, RecordSchemaError, RecordType, SourceSheet
from geo_events.issue_log import Issue, IssueLog, IssueType
from geo_events.event_store import EventStore, StoreError
from geo_events.build import build_events_db

__all__ = [
    "Address",
    "CityInfo",
    "EntityKind",
    "EventStore",
    "GeoConfig",
    "Geocode",
    "GeocodeResult",
    "IdentityDeduplicator",
    "Issue",
    "IssueLog",
    "IssueType",
    "LocationCache",
    "LocationInfo",
    "MemoryCacheBackend",
    "PrecinctIndex",
    "RawRecord",
    "RecordSchemaError",
    "RecordType",
    "RegionDb",
    "RegionIndex",
    "SQLiteCacheBackend",
    "SeenKeySet",
    "SourceSheet",
    "SpatialIndexError",
    "StoreError",
    "UnresolvableAddress",
    "WikiCityInfo",
    "WikiClient",
    "WikiRequestError",
    "build_events_db",
    "city_key",
    "load_precinct_index",
]
