"""
Tests for enrichment.summary module.
"""
from __future__ import annotations

from geo_events.enrichment.summary import ProcessingSummary, RunSummary


class TestRunSummary:
    """Tests for RunSummary."""

    def test_empty_run_is_not_suspicious(self):
        summary = RunSummary(record_type='event')
        assert summary.reject_ratio == 0.0
        assert not summary.is_suspicious()

    def test_reject_ratio(self):
        summary = RunSummary(record_type='event', rows_processed=10, rejects=1)
        assert summary.reject_ratio == 0.1
        assert not summary.is_suspicious(0.10)
        summary.rejects = 2
        assert summary.is_suspicious(0.10)
        assert not summary.is_suspicious(0.25)

    def test_count_issue(self):
        summary = RunSummary()
        summary.count_issue('zip')
        summary.count_issue('zip')
        summary.count_issue('city')
        assert summary.issue_counts == {'zip': 2, 'city': 1}
        assert summary.as_dict()['issue_counts'] == {'zip': 2, 'city': 1}


class TestProcessingSummary:
    """Tests for ProcessingSummary."""

    def test_suspicious_if_any_run_is(self):
        summary = ProcessingSummary()
        summary.add(RunSummary(record_type='event', rows_processed=10, rejects=0))
        assert not summary.is_suspicious
        summary.add(RunSummary(record_type='turnout', rows_processed=4, rejects=1))
        assert summary.is_suspicious

    def test_json_round_trip(self, tmp_path):
        summary = ProcessingSummary(suspicious_reject_ratio=0.2)
        summary.add(RunSummary(record_type='event', rows_total=5, rows_processed=5, added=4, rejects=1,
                               issue_counts={'date': 1}, skipped_sheets=['Instructions']))
        path = summary.write_json(tmp_path / "out" / "summary.json")

        loaded = ProcessingSummary.read_json(path)
        assert loaded.suspicious_reject_ratio == 0.2
        assert loaded.runs['event'] == summary.runs['event']
        assert loaded.created_at == summary.created_at

    def test_read_missing_file(self, tmp_path):
        assert ProcessingSummary.read_json(tmp_path / "missing.json") is None
