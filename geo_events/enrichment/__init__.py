"""Enrichment module: turns crowd-sourced event and turnout rows into stored records.

Each row is taken through:
    - Sanitizing: name, date, state, zip, link and turnout number cleanup
    - Location resolving: address geocoding with a fallback cascade
    - City resolving: encyclopedia article and thumbnail for the city
    - Region tagging: enclosing regions and precinct voting lean
    - Deduplicating: at most one stored row per identity key

Core classes:
    - EnrichmentPipeline: Orchestrates the stages and writes the store
    - EnrichmentConfig: Configuration for pipeline behavior
    - EnrichedRecord: Sanitized row with its resolved location
    - RowOutcome: Terminal state of a row with its issues
    - RunSummary: Counters of one run, with a suspicious run check
    - ProcessingSummary: Runs of one build, written as JSON

Example:
    >>> from geo_events.enrichment import EnrichmentPipeline, EnrichmentConfig
    >>> pipeline = EnrichmentPipeline(EnrichmentConfig(), geocoder, city_resolver, store, region_index)
    >>> summary = pipeline.run(sheets, 'event')
    >>> if summary.is_suspicious():
    ...     print(f"{summary.rejects} rows rejected")
"""

from .model import EnrichedRecord
from .model import RowOutcome
from .model import RowState
from .config import EnrichmentConfig
from .sanitize import SanitizeResult
from .sanitize import sanitize_record
from .summary import RunSummary
from .summary import ProcessingSummary
from .pipeline import EnrichmentPipeline

__all__ = [
    'EnrichedRecord',
    'RowOutcome',
    'RowState',
    'EnrichmentConfig',
    'SanitizeResult',
    'sanitize_record',
    'RunSummary',
    'ProcessingSummary',
    'EnrichmentPipeline',
]
