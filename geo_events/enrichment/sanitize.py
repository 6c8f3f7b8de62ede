"""
sanitize.py - Row level cleanup before any lookup.

Hard problems (bad date, unknown state, unusable turnout numbers) reject the
row. Soft problems clear or default the field and the row carries on.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from datetime import date
from typing import List, Mapping, Optional

from geo_events.issue_log import Issue, IssueType
from geo_events.records import RawRecord, RecordType
from geo_events.us_states import StateInfo, get_state_info
from .date_utils import MAX_YEAR, MIN_YEAR, parse_event_date

logger = logging.getLogger(__name__)

PLACEHOLDER_NAMES = {'none', 'no name'}
MINOR_WORDS = {
    'a', 'an', 'and', 'as', 'at', 'but', 'by', 'for', 'if', 'in', 'nor',
    'of', 'on', 'or', 'so', 'the', 'to', 'up', 'yet',
}
ZIP_RE = re.compile(r"^\d{5}(-\d{4})?$")
_URL_IN_NAME_RE = re.compile(r"https?:|^www\.", re.IGNORECASE)


def to_title_case(text: str) -> str:
    """Title case with minor words kept lower case except at either end."""
    words = text.lower().split(' ')
    last = len(words) - 1
    return ' '.join(
        word if (0 < i < last and word in MINOR_WORDS) else word[:1].upper() + word[1:]
        for i, word in enumerate(words)
    ).strip()


def is_valid_zip(zip_code: str) -> bool:
    return not zip_code or bool(ZIP_RE.match(zip_code))


def is_likely_malformed_url(url: str) -> bool:
    return bool(url) and not url.lower().startswith('http')


def unnamed_label(record_type: RecordType) -> str:
    return f"Unnamed {record_type.value}"


@dataclass
class SanitizeResult:
    """
    Outcome of sanitizing one row.

    Attributes:
        record (RawRecord): Cleaned copy of the row.
        date (Optional[date]): Parsed date, None when the row is rejected for it.
        state_info (Optional[StateInfo]): Resolved state.
        issues (List[Issue]): Issues found, in detection order.
    """
    record: RawRecord
    date: Optional[date] = None
    state_info: Optional[StateInfo] = None
    issues: List[Issue] = field(default_factory=list)

    @property
    def reject_issue(self) -> Optional[Issue]:
        return next((issue for issue in self.issues if issue.rejects_row), None)

    @property
    def rejected(self) -> bool:
        return self.reject_issue is not None


def sanitize_record(
    record: RawRecord,
    default_year: int,
    state_aliases: Optional[Mapping[str, str]] = None,
    min_year: int = MIN_YEAR,
    max_year: int = MAX_YEAR
) -> SanitizeResult:
    """
    Clean a row and collect its issues.

    Args:
        record (RawRecord): Row to clean; it is not modified.
        default_year (int): Year for dates written without one.
        state_aliases (Optional[Mapping[str, str]]): Extra state spellings.
        min_year (int): Earliest accepted event year.
        max_year (int): Latest accepted event year.

    Returns:
        SanitizeResult: Cleaned copy plus issues. Processing stops at the
            first issue that rejects the row.
    """
    issues: List[Issue] = []

    def add_issue(issue_type: IssueType, reason: str, name: str = '') -> None:
        issues.append(Issue(issue_type, reason, record.sheet_name, record.row_number, name or record.name))

    # Name (warn only)
    name = record.name.strip()
    unnamed = unnamed_label(record.record_type)
    if not name or name.lower() in PLACEHOLDER_NAMES:
        add_issue(IssueType.NAME, f"Unnamed - will be titled '{unnamed}'")
        name = unnamed
    elif _URL_IN_NAME_RE.search(name):
        add_issue(IssueType.NAME, f"{name} shouldn't be a URL - will be titled '{unnamed}'")
        name = unnamed
    else:
        name = to_title_case(name)
    cleaned = replace(record, name=name)

    # Date (reject)
    event_date = parse_event_date(record.date, default_year, min_year, max_year)
    if event_date is None:
        add_issue(IssueType.DATE, record.date or '<unspecified>', name)
        return SanitizeResult(cleaned, issues=issues)

    # State (reject)
    state_info = get_state_info(record.state, state_aliases)
    if state_info is None:
        add_issue(IssueType.STATE, record.state or '<unspecified>', name)
        return SanitizeResult(cleaned, event_date, issues=issues)
    cleaned = replace(cleaned, state=state_info.full_name)

    # Zip (warn only)
    if not is_valid_zip(record.zip):
        add_issue(IssueType.ZIP, record.zip, name)
        cleaned = replace(cleaned, zip='')

    # Link (warn only)
    if is_likely_malformed_url(record.link):
        add_issue(IssueType.LINK, record.link, name)
        cleaned = replace(cleaned, link='')

    if record.record_type is RecordType.TURNOUT:
        if is_likely_malformed_url(record.coverage_url):
            add_issue(IssueType.COVERAGE_URL, record.coverage_url, name)
            cleaned = replace(cleaned, coverage_url='')

        low, high = record.low, record.high
        bad_low = not isinstance(low, int)
        bad_high = not isinstance(high, int)
        if bad_low:
            add_issue(IssueType.TURNOUT_NUMBERS, f"Low ({low}) should be a whole number", name)
        if bad_high:
            add_issue(IssueType.TURNOUT_NUMBERS, f"High ({high}) should be a whole number", name)
        if bad_low and bad_high:
            add_issue(IssueType.OTHER, "No usable turnout numbers", name)
            return SanitizeResult(cleaned, event_date, state_info, issues)
        if bad_low:
            low = high
        elif bad_high:
            high = low
        elif low > high:
            add_issue(IssueType.OTHER, f"Low of {low} > high of {high}", name)
            return SanitizeResult(cleaned, event_date, state_info, issues)
        cleaned = replace(cleaned, low=low, high=high)

    return SanitizeResult(cleaned, event_date, state_info, issues)
