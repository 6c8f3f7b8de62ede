from __future__ import annotations

import logging
import time
from typing import Iterable, List, Optional, Union

from geo_events.app_hooks import AppHooks
from geo_events.event_store import EventStore
from geo_events.geocode import Geocode, UnresolvableAddress
from geo_events.identity import EntityKind, IdentityDeduplicator
from geo_events.issue_log import Issue, IssueLog, IssueType
from geo_events.location import LocationInfo
from geo_events.records import RawRecord, RecordSchemaError, RecordType, SourceSheet
from geo_events.regions import RegionIndex
from geo_events.wiki_city_info import WikiCityInfo

from .config import EnrichmentConfig
from .model import EnrichedRecord, RowOutcome, RowState
from .sanitize import sanitize_record
from .summary import RunSummary

logger = logging.getLogger(__name__)


class EnrichmentPipeline:
    """
    Turns source rows into stored, deduplicated, region tagged records.

    Each row goes through sanitizing, address geocoding, city info lookup,
    region tagging and deduplication before it is written. Rows are handled
    one at a time in source order.

    Attributes:
        config (EnrichmentConfig): Pipeline settings.
        geocoder (Geocode): Address resolver, with its cache.
        city_resolver (WikiCityInfo): City info resolver, with its cache.
        store (EventStore): Destination store.
        region_index (Optional[RegionIndex]): Regions and voting lean lookup.
        dedup (IdentityDeduplicator): Seen keys of the destination store.
        issue_log (IssueLog): Issue log of the build.
        stats (RunSummary): Counters of the current run.
        persisted_names (List[str]): Names of the rows written, in order.
    """

    def __init__(
        self,
        config: EnrichmentConfig,
        geocoder: Geocode,
        city_resolver: WikiCityInfo,
        store: EventStore,
        region_index: Optional[RegionIndex] = None,
        dedup: Optional[IdentityDeduplicator] = None,
        issue_log: Optional[IssueLog] = None,
        app_hooks: Optional['AppHooks'] = None
    ) -> None:
        self.config = config
        self.geocoder = geocoder
        self.city_resolver = city_resolver
        self.store = store
        self.region_index = region_index
        self.state_aliases = geocoder.geo_config.state_aliases
        self.dedup = dedup if dedup is not None else IdentityDeduplicator(self.state_aliases)
        self.issue_log = issue_log if issue_log is not None else IssueLog()
        self.app_hooks = app_hooks
        self.stats = RunSummary()
        self.persisted_names: List[str] = []

    def run(self, sheets: Iterable[SourceSheet], record_type: Union[RecordType, str]) -> RunSummary:
        """
        Process every row of the given sheets.

        Known bad sheets, and sheets whose sample row does not fit the record
        schema, are skipped whole and their rows left out of the total.

        Args:
            sheets (Iterable[SourceSheet]): Sheets in source order.
            record_type (Union[RecordType, str]): Type of all rows.

        Returns:
            RunSummary: Counters of this run.
        """
        record_type = RecordType(record_type)
        sheets = list(sheets)
        self.stats = RunSummary(record_type=record_type.value)
        start = time.monotonic()

        usable: List[SourceSheet] = []
        for sheet in sheets:
            if self.config.is_known_bad_sheet(sheet.title):
                logger.info(f"Skipping known bad sheet '{sheet.title}'")
                self.stats.skipped_sheets.append(sheet.title)
            elif not sheet.matches_schema(record_type):
                logger.warning(f"Skipping sheet '{sheet.title}': rows do not match the {record_type.value} schema")
                self.stats.skipped_sheets.append(sheet.title)
            else:
                usable.append(sheet)
        self.stats.rows_total = sum(len(sheet.rows) for sheet in usable)

        self._report_step(info=f"Enriching {record_type.value}s", target=self.stats.rows_total, reset_counter=True, plus_step=0)
        for sheet in usable:
            logger.info(f"Processing sheet '{sheet.title}' ({len(sheet.rows)} rows)")
            for row_number, row in enumerate(sheet.rows, start=1):
                try:
                    record = RawRecord.from_dict(row, sheet.title, record_type, row_number)
                except RecordSchemaError as e:
                    self.stats.rows_processed += 1
                    self._reject(Issue(IssueType.OTHER, str(e), sheet.title, row_number))
                else:
                    self.process_record(record)
                self._report_step(plus_step=1)

        self.stats.elapsed_seconds = time.monotonic() - start
        self.stats.log()
        if self.stats.is_suspicious(self.config.suspicious_reject_ratio):
            logger.warning(
                f"Suspicious {record_type.value} run: {self.stats.rejects} of "
                f"{self.stats.rows_processed} rows rejected"
            )
        self._update_key_value(f"{record_type.value}s_added", self.stats.added)
        return self.stats

    def process_record(self, record: RawRecord) -> RowOutcome:
        """
        Take one row through the pipeline.

        Resolver failures become rejected outcomes; only store failures raise.

        Args:
            record (RawRecord): Row to process.

        Returns:
            RowOutcome: Persisted, rejected or duplicate, with the row's issues.
        """
        self.stats.rows_processed += 1

        # Sanitizing
        sanitized = sanitize_record(
            record, self.config.default_year, self.state_aliases, self.config.min_year, self.config.max_year
        )
        for issue in sanitized.issues:
            self._record_issue(issue)
        if sanitized.rejected:
            self.stats.rejects += 1
            return RowOutcome(RowState.REJECTED, sanitized.record, issues=sanitized.issues)
        record = sanitized.record
        issues = list(sanitized.issues)

        # LocationResolving
        address = record.address_fields
        lookups_before = self.geocoder.stats['lookups']
        try:
            geocode = self.geocoder.resolve(address)
        except UnresolvableAddress as e:
            issues.append(self._reject(self._issue(record, IssueType.ADDRESS, str(e))))
            return RowOutcome(RowState.REJECTED, record, issues=issues)
        finally:
            self.stats.geocodings += self.geocoder.stats['lookups'] - lookups_before

        # CityResolving
        lookups_before = self.city_resolver.stats['lookups']
        city_info = self.city_resolver.resolve(record.city, record.state)
        self.stats.wiki_fetches += self.city_resolver.stats['lookups'] - lookups_before
        if city_info is None:
            issues.append(self._reject(self._issue(record, IssueType.CITY, f"No city info for {record.city}, {record.state}")))
            return RowOutcome(RowState.REJECTED, record, issues=issues)

        # RegionTagging
        region_ids: List[int] = []
        pct_dem_lead = None
        if self.region_index is not None:
            region_ids = self.region_index.regions_containing(geocode.latitude, geocode.longitude)
            pct_dem_lead = self.region_index.voting_lean_at(geocode.latitude, geocode.longitude)

        location = LocationInfo(
            geocode=geocode,
            city=record.city,
            state=record.state,
            city_info=city_info,
            pct_dem_lead=pct_dem_lead,
            address_key=address.key,
        )
        enriched = EnrichedRecord(record=record, date=sanitized.date, location=location, region_ids=region_ids)

        # Deduplicating
        kind = EntityKind(record.record_type.value)
        key = self.dedup.key_for(kind, enriched.identity_fields())
        if self.dedup.has_seen(kind, key):
            self.stats.duplicates += 1
            logger.debug(f"Duplicate {kind.value}: {key}")
            return RowOutcome(RowState.DUPLICATE, record, enriched, issues=issues)

        record_id = self._persist(enriched, kind, key)
        self.stats.added += 1
        self.persisted_names.append(record.name)
        return RowOutcome(RowState.PERSISTED, record, enriched, record_id, issues)

    def _persist(self, enriched: EnrichedRecord, kind: EntityKind, key: str) -> int:
        """Write the row with its city and location rows; keys are marked seen after each insert."""
        location = enriched.location

        city_key = self.dedup.key_for(EntityKind.CITY, {'city': location.city, 'state': location.state})
        city_info_id = self.dedup.seen_id(EntityKind.CITY, city_key)
        if not self.dedup.has_seen(EntityKind.CITY, city_key):
            city_info_id = self.store.insert_city_info(city_key, location.city_info)
            self.dedup.mark_seen(EntityKind.CITY, city_key, city_info_id)

        location_key = location.address_key
        location_info_id = self.dedup.seen_id(EntityKind.LOCATION, location_key)
        if not self.dedup.has_seen(EntityKind.LOCATION, location_key):
            location_info_id = self.store.insert_location_info(location, city_info_id)
            self.dedup.mark_seen(EntityKind.LOCATION, location_key, location_info_id)

        record_id = self.store.insert_record(enriched, key, location_info_id)
        self.store.insert_record_regions(kind.value, record_id, enriched.region_ids)
        self.dedup.mark_seen(kind, key, record_id)
        return record_id

    def _issue(self, record: RawRecord, issue_type: IssueType, reason: str) -> Issue:
        return Issue(issue_type, reason, record.sheet_name, record.row_number, record.name)

    def _record_issue(self, issue: Issue) -> Issue:
        self.stats.count_issue(issue.issue_type.value)
        self.issue_log.add(issue)
        return issue

    def _reject(self, issue: Issue) -> Issue:
        self.stats.rejects += 1
        return self._record_issue(issue)

    def _report_step(self, info: str = "", target: Optional[int] = None, reset_counter: bool = False, plus_step: int = 0) -> None:
        """
        Report a step via app hooks if available. (Private method)

        Args:
            info (str): Information message.
            target (int): Target count for progress.
            reset_counter (bool): Whether to reset the counter.
            plus_step (int): Incremental step count.
        """
        if self.app_hooks and callable(getattr(self.app_hooks, "report_step", None)):
            self.app_hooks.report_step(info=info, target=target, reset_counter=reset_counter, plus_step=plus_step)
        elif info:
            logger.debug(info)

    def _update_key_value(self, key: str, value) -> None:
        if self.app_hooks and callable(getattr(self.app_hooks, "update_key_value", None)):
            self.app_hooks.update_key_value(key, value)
