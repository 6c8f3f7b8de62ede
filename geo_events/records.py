"""
records.py - Source row schema for geo_events.

A RawRecord is one row of a source sheet, validated at the ingestion
boundary: known columns become typed fields, unknown columns are kept in an
extensions map, and rows missing a required column raise RecordSchemaError.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from .address import Address

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('date', 'name', 'city', 'state', 'link')
ADDRESS_FIELDS = ('address', 'zip', 'country')
TURNOUT_FIELDS = ('low', 'high', 'coverage_url')

# Column spellings seen in source sheets
COLUMN_ALIASES = {
    'event_name': 'name',
    'title': 'name',
    'street': 'address',
    'street_address': 'address',
    'zipcode': 'zip',
    'zip_code': 'zip',
    'postal_code': 'zip',
    'url': 'link',
    'coverage': 'coverage_url',
    'coverage_link': 'coverage_url',
    'low_estimate': 'low',
    'high_estimate': 'high',
}

_COLUMN_RE = re.compile(r"[^a-z0-9]+")
_COUNT_RE = re.compile(r"^\d{1,3}(,\d{3})+$|^\d+$")


class RecordSchemaError(ValueError):
    """Raised when a row does not have the shape of a record."""


class RecordType(str, Enum):
    EVENT = 'event'
    TURNOUT = 'turnout'


def normalize_column(name: Any) -> str:
    column = _COLUMN_RE.sub('_', str(name).strip().lower()).strip('_')
    return COLUMN_ALIASES.get(column, column)


def parse_count(value: Any) -> Union[int, str, None]:
    """
    Parse a head count such as '1,200' or 350.

    Returns:
        int when the value is a whole number, None when blank, otherwise the
        trimmed text so it can be reported.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else str(value)
    text = str(value).strip()
    if not text:
        return None
    if _COUNT_RE.match(text):
        return int(text.replace(',', ''))
    return text


def _text(value: Any) -> str:
    if value is None:
        return ''
    return str(value).strip()


@dataclass
class RawRecord:
    """
    One source row.

    Attributes:
        record_type (RecordType): Event or turnout.
        sheet_name (str): Title of the source sheet.
        row_number (int): Position of the row in its sheet, 1-based.
        date, name, address, zip, city, state, country, link (str): Row text.
        low, high: Turnout estimates, int when parsed, raw text otherwise.
        coverage_url (str): Turnout coverage link.
        extensions (Dict[str, Any]): Columns not part of the schema.
    """
    record_type: RecordType
    sheet_name: str
    date: str
    name: str
    city: str
    state: str
    link: str
    address: str = ''
    zip: str = ''
    country: str = ''
    low: Union[int, str, None] = None
    high: Union[int, str, None] = None
    coverage_url: str = ''
    row_number: int = 0
    extensions: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(
        cls,
        row: Mapping[str, Any],
        sheet_name: str = '',
        record_type: Union[RecordType, str] = RecordType.EVENT,
        row_number: int = 0
    ) -> 'RawRecord':
        """
        Validate and convert a source row.

        Args:
            row (Mapping[str, Any]): Column name -> cell value.
            sheet_name (str): Source sheet title.
            record_type (Union[RecordType, str]): Event or turnout.
            row_number (int): Position of the row in its sheet.

        Raises:
            RecordSchemaError: If a required column is missing.
        """
        if not isinstance(row, Mapping):
            raise RecordSchemaError(f"Row is not a mapping: {type(row).__name__}")
        record_type = RecordType(record_type)
        known = set(REQUIRED_FIELDS) | set(ADDRESS_FIELDS)
        if record_type is RecordType.TURNOUT:
            known |= set(TURNOUT_FIELDS)

        values: Dict[str, Any] = {}
        extensions: Dict[str, Any] = {}
        for column, value in row.items():
            name = normalize_column(column)
            if name in known and name not in values:
                values[name] = value
            else:
                extensions[str(column)] = value

        missing = [name for name in REQUIRED_FIELDS if name not in values]
        if missing:
            raise RecordSchemaError(f"Missing columns {missing} in sheet '{sheet_name}'")

        record = cls(
            record_type=record_type,
            sheet_name=sheet_name,
            row_number=row_number,
            date=_text(values['date']),
            name=_text(values['name']),
            city=_text(values['city']),
            state=_text(values['state']),
            link=_text(values['link']),
            address=_text(values.get('address')),
            zip=_text(values.get('zip')),
            country=_text(values.get('country')),
            extensions=extensions,
        )
        if record_type is RecordType.TURNOUT:
            record.low = parse_count(values.get('low'))
            record.high = parse_count(values.get('high'))
            record.coverage_url = _text(values.get('coverage_url'))
        return record

    @property
    def address_fields(self) -> Address:
        return Address(address=self.address, city=self.city, state=self.state, zip=self.zip, country=self.country)

    @property
    def location(self) -> str:
        return f"{self.sheet_name}:{self.row_number}"


@dataclass
class SourceSheet:
    """
    An already shaped source table.

    Attributes:
        title (str): Sheet title.
        rows (List[Dict[str, Any]]): Rows as column -> value mappings.
    """
    title: str
    rows: List[Dict[str, Any]] = field(default_factory=list)

    def sample_row(self) -> Optional[Dict[str, Any]]:
        """Row used to check the sheet's shape: the second row when there is one."""
        if not self.rows:
            return None
        return self.rows[1] if len(self.rows) > 1 else self.rows[0]

    def matches_schema(self, record_type: Union[RecordType, str]) -> bool:
        """Check the sample row against the record schema."""
        sample = self.sample_row()
        if sample is None:
            return False
        try:
            RawRecord.from_dict(sample, self.title, record_type)
        except RecordSchemaError as e:
            logger.debug(f"Sheet '{self.title}' does not match the {RecordType(record_type).value} schema: {e}")
            return False
        return True
