"""
Tests for enrichment.config module.
"""
from __future__ import annotations

import pytest

from geo_events.enrichment.config import EnrichmentConfig


class TestEnrichmentConfig:
    """Tests for EnrichmentConfig."""

    def test_defaults_from_yaml(self):
        config = EnrichmentConfig()
        assert config.default_year == 2025
        assert (config.min_year, config.max_year) == (1900, 2100)
        assert config.suspicious_reject_ratio == 0.10
        assert config.similar_name_threshold == 80
        assert config.issue_log_name == 'issues.log'

    def test_known_bad_sheets(self):
        config = EnrichmentConfig()
        assert config.is_known_bad_sheet(' instructions ')
        assert not config.is_known_bad_sheet('April')

    def test_from_dict_falls_back_to_defaults(self):
        config = EnrichmentConfig.from_dict({'default_year': 2024, 'known_bad_sheet_names': ['Old']})
        assert config.default_year == 2024
        assert config.is_known_bad_sheet('old')
        assert not config.is_known_bad_sheet('Instructions')
        assert config.check_similar_names is True

    def test_from_dict_missing_field(self):
        with pytest.raises(ValueError):
            EnrichmentConfig.from_dict({'default_year': 2024}, defaults={})

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("default_year: 2026\ncheck_similar_names: false\n")
        config = EnrichmentConfig.from_yaml(path)
        assert config.default_year == 2026
        assert config.check_similar_names is False
        assert config.summary_name == 'processing_summary.json'

    def test_from_yaml_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            EnrichmentConfig.from_yaml(tmp_path / "missing.yaml")
