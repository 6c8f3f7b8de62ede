"""
Tests for enrichment pipeline.
"""
from __future__ import annotations

import pytest

from geo_events.enrichment.config import EnrichmentConfig
from geo_events.enrichment.model import RowState
from geo_events.issue_log import IssueType
from geo_events.records import SourceSheet


def _everywhere(lat=39.78, lon=-89.65):
    """Geolocator response placing every query at one point."""
    return lambda query: [(lat, lon, 'Somewhere, United States')]


class RecordingHooks:
    def __init__(self):
        self.steps = []
        self.values = {}

    def report_step(self, info="", target=None, reset_counter=False, plus_step=1):
        self.steps.append((info, target, reset_counter, plus_step))

    def update_key_value(self, key, value):
        self.values[key] = value


class TestProcessRecord:
    """Tests for single row processing."""

    def test_springfield_is_persisted(self, make_pipeline, make_record):
        pipeline = make_pipeline()
        outcome = pipeline.process_record(make_record())

        assert outcome.state is RowState.PERSISTED
        location = outcome.enriched.location
        assert (location.lat, location.lon) == (39.78, -89.65)
        assert location.state == 'Illinois'
        assert location.city_info.article_url == 'https://en.wikipedia.org/wiki/Springfield,_Illinois'
        assert location.pct_dem_lead == 12.5
        assert outcome.enriched.region_ids == [1, 2, 3]
        assert pipeline.store.count('events') == 1
        assert pipeline.store.count('event_regions') == 3
        assert pipeline.stats.added == 1

    def test_bad_date_is_rejected_before_lookups(self, make_pipeline, make_record, springfield_geolocator):
        pipeline = make_pipeline()
        outcome = pipeline.process_record(make_record(date='13/45/2025'))

        assert outcome.rejected
        assert outcome.reject_issue.issue_type is IssueType.DATE
        assert pipeline.stats.rejects == 1
        assert pipeline.stats.added == 0
        assert pipeline.store.count('events') == 0
        assert springfield_geolocator.calls == []

    def test_configured_year_range(self, make_pipeline, make_record):
        config = EnrichmentConfig.from_dict({'max_year': 2024})
        outcome = make_pipeline(config=config).process_record(make_record(date='4/5/2025'))
        assert outcome.reject_issue.issue_type is IssueType.DATE

    def test_duplicate_row(self, make_pipeline, make_record):
        pipeline = make_pipeline()
        assert pipeline.process_record(make_record(row_number=1)).persisted
        outcome = pipeline.process_record(make_record(row_number=2))

        assert outcome.duplicate
        assert pipeline.stats.duplicates == 1
        assert pipeline.store.count('events') == 1

    def test_same_place_shares_location_and_city_rows(self, make_pipeline, make_record):
        pipeline = make_pipeline()
        pipeline.process_record(make_record(name='Rally one'))
        pipeline.process_record(make_record(name='Rally two', state='Illinois'))

        assert pipeline.store.count('events') == 2
        assert pipeline.store.count('location_infos') == 1
        assert pipeline.store.count('city_infos') == 1
        assert pipeline.stats.geocodings == 1
        assert pipeline.stats.wiki_fetches == 1

    def test_bad_zip_is_persisted_without_zip(self, make_pipeline, make_record, fake_geolocator):
        pipeline = make_pipeline(geolocator=fake_geolocator(_everywhere()))
        outcome = pipeline.process_record(make_record(zip='1234'))

        assert outcome.persisted
        assert outcome.record.zip == ''
        assert [issue.issue_type for issue in outcome.issues] == [IssueType.ZIP]
        assert pipeline.stats.issue_counts == {'zip': 1}
        assert pipeline.store.conn.execute("SELECT zip FROM events").fetchone() == ('',)

    def test_unresolvable_address_is_rejected(self, make_pipeline, make_record):
        pipeline = make_pipeline()
        outcome = pipeline.process_record(make_record(zip='99999'))

        assert outcome.reject_issue.issue_type is IssueType.ADDRESS
        assert pipeline.stats.geocodings == 1
        assert pipeline.store.count('location_infos') == 0

    def test_city_failure_rejects_but_keeps_address(self, make_pipeline, make_record, fake_geolocator, fake_wiki_client):
        pipeline = make_pipeline(geolocator=fake_geolocator(_everywhere(40.7, -74.0)), wiki_client=fake_wiki_client())
        record = make_record(city='Gotham', state='NY', zip='')
        outcome = pipeline.process_record(record)

        assert outcome.reject_issue.issue_type is IssueType.CITY
        assert pipeline.store.count('location_infos') == 0
        entry = pipeline.geocoder.geo_cache.lookup_address(outcome.record.address_fields.key)
        assert entry is not None and not entry.no_result

    def test_turnout_row(self, make_pipeline, make_record):
        pipeline = make_pipeline()
        outcome = pipeline.process_record(make_record('turnout', low='100', high='250'))

        assert outcome.persisted
        assert pipeline.store.count('turnouts') == 1
        assert pipeline.store.count('turnout_regions') == 3

    def test_without_region_index(self, make_pipeline, make_record):
        outcome = make_pipeline(with_regions=False).process_record(make_record())
        assert outcome.persisted
        assert outcome.enriched.region_ids == []
        assert outcome.enriched.location.pct_dem_lead is None


class TestRun:
    """Tests for whole runs over sheets."""

    def test_run_counts(self, make_pipeline, make_row):
        rows = [
            make_row(),
            make_row(),
            make_row(date='13/45/2025'),
            {'date': '4/5/2025', 'name': 'No link column', 'city': 'Springfield', 'state': 'IL'},
        ]
        hooks = RecordingHooks()
        pipeline = make_pipeline(app_hooks=hooks)
        summary = pipeline.run([SourceSheet('April', rows), SourceSheet('Archive', [make_row()])], 'event')

        assert summary.record_type == 'event'
        assert summary.rows_total == 4
        assert summary.rows_processed == 4
        assert (summary.added, summary.duplicates, summary.rejects) == (1, 1, 2)
        assert summary.issue_counts == {'date': 1, 'other': 1}
        assert summary.skipped_sheets == ['Archive']
        assert summary.is_suspicious()
        assert hooks.steps[0][1] == 4
        assert sum(step[3] for step in hooks.steps) == 4
        assert hooks.values['events_added'] == 1

    def test_malformed_sheet_is_skipped(self, make_pipeline, make_row):
        pipeline = make_pipeline()
        sheet = SourceSheet('Notes', [{'note': 'call Sam'}, {'note': 'bring signs'}])
        summary = pipeline.run([sheet, SourceSheet('April', [make_row()])], 'event')

        assert summary.skipped_sheets == ['Notes']
        assert summary.rows_total == 1
        assert summary.added == 1

    def test_configured_bad_sheets(self, make_pipeline, make_row):
        config = EnrichmentConfig.from_dict({'known_bad_sheet_names': ['April']})
        summary = make_pipeline(config=config).run([SourceSheet('April', [make_row()])], 'event')
        assert summary.rows_total == 0
        assert summary.added == 0

    def test_runs_share_resolvers(self, make_pipeline, make_row):
        pipeline = make_pipeline()
        pipeline.run([SourceSheet('April', [make_row()])], 'event')
        turnouts = pipeline.run([SourceSheet('Turnout', [make_row(low='10', high='20')])], 'turnout')

        assert turnouts.added == 1
        assert turnouts.geocodings == 0
        assert turnouts.wiki_fetches == 0
        assert pipeline.persisted_names == ['Hands Off Springfield', 'Hands Off Springfield']

    @pytest.mark.parametrize("record_type", ['parade', ''])
    def test_unknown_record_type(self, make_pipeline, record_type):
        with pytest.raises(ValueError):
            make_pipeline().run([], record_type)
