"""
build.py - Build the events database from already shaped source sheets.

Opens the region sources, recreates the destination store, runs the event
and turnout sheets through the enrichment pipeline, commits once, scans the
stored names for near duplicates and writes the processing summary.

Setup failures (missing region store or precinct index, unwritable store)
raise before any row is processed; nothing is committed in that case and
whatever was already opened is closed.
"""

import logging
from contextlib import ExitStack
from pathlib import Path
from typing import Iterable, Optional, Union

from .app_hooks import AppHooks
from .enrichment.config import EnrichmentConfig
from .enrichment.pipeline import EnrichmentPipeline
from .enrichment.summary import ProcessingSummary
from .event_store import EventStore
from .geo_config import GeoConfig
from .geocache import LocationCache, MemoryCacheBackend, SQLiteCacheBackend
from .geocode import Geocode
from .identity import IdentityDeduplicator
from .issue_log import IssueLog
from .records import RecordType, SourceSheet
from .regions import RegionIndex
from .similar_names import scan_for_similar_names
from .wiki_city_info import WikiCityInfo
from .wiki_client import WikiClient

logger = logging.getLogger(__name__)

DEFAULT_DB_NAME = 'events.db'


def build_events_db(
    event_sheets: Iterable[SourceSheet],
    turnout_sheets: Iterable[SourceSheet],
    output_dir: Union[str, Path],
    region_db_path: Union[str, Path],
    precinct_path: Union[str, Path],
    cache_path: Optional[Union[str, Path]] = None,
    db_name: str = DEFAULT_DB_NAME,
    geo_config: Optional[GeoConfig] = None,
    config: Optional[EnrichmentConfig] = None,
    geolocator=None,
    wiki_client: Optional[WikiClient] = None,
    app_hooks: Optional['AppHooks'] = None
) -> ProcessingSummary:
    """
    Build the destination store.

    Args:
        event_sheets (Iterable[SourceSheet]): Event sheets in source order.
        turnout_sheets (Iterable[SourceSheet]): Turnout sheets in source order.
        output_dir (Union[str, Path]): Directory for the store, issue log and summary.
        region_db_path (Union[str, Path]): Region store.
        precinct_path (Union[str, Path]): Precinct GeoJSON.
        cache_path (Optional[Union[str, Path]]): SQLite resolver cache shared
            across runs; an in-memory cache is used when None.
        db_name (str): File name of the store inside output_dir.
        geo_config (Optional[GeoConfig]): Resolver settings.
        config (Optional[EnrichmentConfig]): Pipeline settings.
        geolocator: Geocoder override, Nominatim by default.
        wiki_client (Optional[WikiClient]): Encyclopedia client override.
        app_hooks (Optional[AppHooks]): Progress reporting.

    Returns:
        ProcessingSummary: Event and turnout run summaries.

    Raises:
        SpatialIndexError: If the region store or precinct index is missing.
        StoreError: If the destination store cannot be created or written.
    """
    geo_config = geo_config if geo_config else GeoConfig()
    config = config if config else EnrichmentConfig()
    output_dir = Path(output_dir)

    with ExitStack() as stack:
        # Each resource is closed even if a later one fails to open
        region_index = RegionIndex.from_paths(region_db_path, precinct_path)
        stack.callback(region_index.close)
        store = EventStore(output_dir / db_name)
        stack.callback(store.close)
        backend = SQLiteCacheBackend(cache_path) if cache_path else MemoryCacheBackend()
        cache = LocationCache(backend, geo_config.days_between_retrying_failed_lookups)
        stack.callback(cache.close)
        issue_log = IssueLog(output_dir / config.issue_log_name)
        stack.callback(issue_log.close)

        try:
            pipeline = EnrichmentPipeline(
                config=config,
                geocoder=Geocode(geo_config, cache, geolocator=geolocator),
                city_resolver=WikiCityInfo(geo_config, cache, client=wiki_client),
                store=store,
                region_index=region_index,
                dedup=IdentityDeduplicator(geo_config.state_aliases),
                issue_log=issue_log,
                app_hooks=app_hooks,
            )
            summary = ProcessingSummary(suspicious_reject_ratio=config.suspicious_reject_ratio)
            for record_type, sheets in ((RecordType.EVENT, event_sheets), (RecordType.TURNOUT, turnout_sheets)):
                summary.add(pipeline.run(sheets, record_type))
            store.commit()
            logger.info(f"Committed {store.count('events')} events and {store.count('turnouts')} turnouts to {store.db_path}")

            if config.check_similar_names:
                scan_for_similar_names(pipeline.persisted_names, issue_log, config.similar_name_threshold)

            summary.write_json(output_dir / config.summary_name)
            if summary.is_suspicious:
                logger.warning("Build flagged as suspicious: reject ratio above threshold")
            return summary
        except Exception:
            store.rollback()
            raise
