# geo_events/enrichment/date_utils.py
from __future__ import annotations

import re
from datetime import date as _date, datetime
from typing import Any, Optional

_SLASH_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})(?:/(\d{2}|\d{4}))?$")
_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")


def _safe_date(year: int, month: int, day: int) -> Optional[_date]:
    """
    Build a date, returning None for impossible calendar values.

    Args:
        year: Four digit year
        month: Month 1-12
        day: Day of month

    Returns:
        datetime.date if valid, None otherwise
    """
    try:
        return _date(year, month, day)
    except ValueError:
        return None


MIN_YEAR = 1900
MAX_YEAR = 2100


def parse_event_date(
    value: Any,
    default_year: int,
    min_year: int = MIN_YEAR,
    max_year: int = MAX_YEAR
) -> Optional[_date]:
    """
    Parse a source sheet date.

    Accepted forms:
        - M/D/YYYY, e.g. '4/5/2025'
        - M/D/YY, e.g. '4/5/25' (years 2000-2099)
        - M/D, e.g. '4/5' (default_year)
        - YYYY-MM-DD, e.g. '2025-04-05'
        - date or datetime objects

    Args:
        value: Date cell value
        default_year: Year used when the text has none
        min_year: Earliest accepted year
        max_year: Latest accepted year

    Returns:
        datetime.date, or None when the value is not a real date in one of the
        accepted forms or its year is outside min_year..max_year
    """
    parsed = _parse_date(value, default_year)
    if parsed is None or not min_year <= parsed.year <= max_year:
        return None
    return parsed


def _parse_date(value: Any, default_year: int) -> Optional[_date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, _date):
        return value
    if value is None:
        return None

    text = str(value).strip()
    m = _SLASH_DATE_RE.match(text)
    if m:
        month, day, year_text = int(m.group(1)), int(m.group(2)), m.group(3)
        if year_text is None:
            year = default_year
        elif len(year_text) == 2:
            year = 2000 + int(year_text)
        else:
            year = int(year_text)
        return _safe_date(year, month, day)

    m = _ISO_DATE_RE.match(text)
    if m:
        return _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    return None


def date_key(value: _date) -> str:
    """ISO text used inside identity keys."""
    return value.isoformat()
