"""
issue_log.py - Categorized row issues and the append-only issue log.

Every sanitize or resolve problem becomes an Issue with an IssueType. Types
that reject the row are marked as such; the others are warnings where the
row carries on with a cleared or defaulted field.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, TextIO, Union

logger = logging.getLogger(__name__)


class IssueType(str, Enum):
    ADDRESS = 'address'
    CITY = 'city'
    STATE = 'state'
    DATE = 'date'
    OTHER = 'other'
    ZIP = 'zip'
    LINK = 'link'
    NAME = 'name'
    COVERAGE_URL = 'coverage_url'
    TURNOUT_NUMBERS = 'turnout_numbers'

    @property
    def label(self) -> str:
        return ISSUE_INFO[self][0]

    @property
    def rejects_row(self) -> bool:
        return ISSUE_INFO[self][1]


# type -> (label, rejects row)
ISSUE_INFO: Dict[IssueType, tuple] = {
    IssueType.ADDRESS: ('Bad address', True),
    IssueType.CITY: ('Bad city', True),
    IssueType.STATE: ('Bad state', True),
    IssueType.DATE: ('Bad date', True),
    IssueType.OTHER: ('Bad row', True),
    IssueType.ZIP: ('Bad zipcode', False),
    IssueType.LINK: ('Bad link', False),
    IssueType.NAME: ('Bad name', False),
    IssueType.COVERAGE_URL: ('Bad coverage url', False),
    IssueType.TURNOUT_NUMBERS: ('Bad turnout numbers', False),
}


@dataclass(frozen=True)
class Issue:
    """
    One problem found in a source row.

    Attributes:
        issue_type (IssueType): Category.
        reason (str): Human readable detail.
        sheet_name (str): Source sheet of the row.
        row_number (int): Row position in its sheet.
        record_name (str): Name of the event or turnout, when known.
    """
    issue_type: IssueType
    reason: str
    sheet_name: str = ''
    row_number: int = 0
    record_name: str = ''

    @property
    def rejects_row(self) -> bool:
        return self.issue_type.rejects_row

    def line(self) -> str:
        where = f"[{self.sheet_name}:{self.row_number}]" if self.sheet_name else f"[row {self.row_number}]"
        name = f" '{self.record_name}'" if self.record_name else ''
        return f"{self.issue_type.label} {where}{name}: {self.reason}"


class IssueLog:
    """
    Append-only issue log.

    Lines go to an optional file opened in append mode and to the module
    logger. Issues are also kept in memory for the run summary.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None) -> None:
        self.path = Path(path) if path else None
        self.issues: List[Issue] = []
        self._file: Optional[TextIO] = None
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.path, 'a', encoding='utf-8')

    def add(self, issue: Issue) -> None:
        self.issues.append(issue)
        if issue.rejects_row:
            logger.warning(issue.line())
        else:
            logger.info(issue.line())
        self.write_line(issue.line())

    def write_line(self, line: str) -> None:
        """Append a free-form line, e.g. a post-run note."""
        if self._file is not None:
            self._file.write(line + '\n')
            self._file.flush()

    def counts(self) -> Dict[str, int]:
        """Number of issues per issue type value."""
        counts: Dict[str, int] = {}
        for issue in self.issues:
            counts[issue.issue_type.value] = counts.get(issue.issue_type.value, 0) + 1
        return counts

    def __len__(self) -> int:
        return len(self.issues)

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> 'IssueLog':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
