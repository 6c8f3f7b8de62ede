from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from geo_events.issue_log import Issue
from geo_events.location import LocationInfo
from geo_events.records import RawRecord, RecordType

from .date_utils import date_key


class RowState(str, Enum):
    """Terminal states of a row in the pipeline."""
    PERSISTED = 'persisted'
    REJECTED = 'rejected'
    DUPLICATE = 'duplicate'


@dataclass
class EnrichedRecord:
    """
    A sanitized row joined with its resolved location and regions.

    Attributes:
        record (RawRecord): Sanitized row.
        date (date): Parsed date.
        location (LocationInfo): Resolved location.
        region_ids (List[int]): Ids of the regions covering the location.
    """
    record: RawRecord
    date: date
    location: LocationInfo
    region_ids: List[int] = field(default_factory=list)

    @property
    def record_type(self) -> RecordType:
        return self.record.record_type

    def identity_fields(self) -> Dict[str, object]:
        """Fields that make up the event or turnout identity key."""
        return {
            'date': date_key(self.date),
            'name': self.record.name,
            'link': self.record.link,
            'lat': self.location.lat,
            'lon': self.location.lon,
        }


@dataclass
class RowOutcome:
    """
    Result of processing one row.

    Attributes:
        state (RowState): Terminal state.
        record (Optional[RawRecord]): Row as sanitized, when it got that far.
        enriched (Optional[EnrichedRecord]): Enriched row, for persisted and duplicate rows.
        record_id (Optional[int]): Store id of the persisted row.
        issues (List[Issue]): Issues raised for the row.
    """
    state: RowState
    record: Optional[RawRecord] = None
    enriched: Optional[EnrichedRecord] = None
    record_id: Optional[int] = None
    issues: List[Issue] = field(default_factory=list)

    @property
    def persisted(self) -> bool:
        return self.state is RowState.PERSISTED

    @property
    def rejected(self) -> bool:
        return self.state is RowState.REJECTED

    @property
    def duplicate(self) -> bool:
        return self.state is RowState.DUPLICATE

    @property
    def reject_issue(self) -> Optional[Issue]:
        return next((issue for issue in self.issues if issue.rejects_row), None)
