"""
Tests for enrichment.date_utils module.
"""
from __future__ import annotations

import pytest
from datetime import date as _date, datetime

from geo_events.enrichment.date_utils import date_key, parse_event_date


class TestParseEventDate:
    """Tests for parse_event_date function."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ('4/5/2025', _date(2025, 4, 5)),
            ('04/05/2025', _date(2025, 4, 5)),
            ('4/5/25', _date(2025, 4, 5)),
            ('2025-04-05', _date(2025, 4, 5)),
            (' 12/31/2024 ', _date(2024, 12, 31)),
        ],
    )
    def test_accepted_forms(self, value, expected):
        assert parse_event_date(value, 2025) == expected

    def test_default_year(self):
        """Test a date without a year takes the default year."""
        assert parse_event_date('4/5', 2024) == _date(2024, 4, 5)

    @pytest.mark.parametrize("value", ['13/45/2025', '2/30/2025', 'April 5th', '', None, '2025/04/05', '4-5-2025'])
    def test_rejected_values(self, value):
        assert parse_event_date(value, 2025) is None

    @pytest.mark.parametrize("value", ['4/5/0025', '4/5/1025', '0025-04-05', '4/5/2101', _date(1899, 12, 31)])
    def test_years_outside_range(self, value):
        assert parse_event_date(value, 2025) is None

    def test_year_bounds(self):
        assert parse_event_date('1/1/1900', 2025) == _date(1900, 1, 1)
        assert parse_event_date('12/31/2100', 2025) == _date(2100, 12, 31)
        assert parse_event_date('4/5/2030', 2025, max_year=2026) is None
        assert parse_event_date('4/5/1025', 2025, min_year=1000) == _date(1025, 4, 5)

    def test_date_objects(self):
        assert parse_event_date(_date(2025, 4, 5), 2024) == _date(2025, 4, 5)
        assert parse_event_date(datetime(2025, 4, 5, 13, 30), 2024) == _date(2025, 4, 5)


def test_date_key():
    assert date_key(_date(2025, 4, 5)) == '2025-04-05'
