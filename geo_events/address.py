"""
address.py - Normalized address fields and address keys for geo_events.

An Address is the location subset of a source row. Its key is the identity
used for geocode caching and for location deduplication.

Module: geo_events.address
"""
from __future__ import annotations

__all__ = ['Address', 'address_key', 'ADDRESS_KEY_FIELDS']

from dataclasses import dataclass
from typing import Any, Mapping, Optional

ADDRESS_KEY_FIELDS = ('address', 'zip', 'city', 'state', 'country')
ADDRESS_KEY_SEPARATOR = '|'


def _clean(value: Any) -> str:
    if value is None:
        return ''
    return str(value).strip()


def address_key(fields: Mapping[str, Any]) -> str:
    """
    Build the address key for a mapping of address fields.

    Non-empty fields are trimmed, lower-cased and joined in the fixed order
    address, zip, city, state, country.

    Args:
        fields (Mapping[str, Any]): Address fields; missing keys are treated as empty.

    Returns:
        str: Address key, empty if every field is blank.
    """
    parts = [_clean(fields.get(name)).lower() for name in ADDRESS_KEY_FIELDS]
    return ADDRESS_KEY_SEPARATOR.join(part for part in parts if part)


@dataclass(frozen=True)
class Address:
    """
    Location fields of a source row.

    Attributes:
        address (str): Street address.
        city (str): City name.
        state (str): State name or abbreviation.
        zip (str): Postal code.
        country (str): Country name.
    """
    address: str = ''
    city: str = ''
    state: str = ''
    zip: str = ''
    country: str = ''

    def __post_init__(self):
        for name in ('address', 'city', 'state', 'zip', 'country'):
            object.__setattr__(self, name, _clean(getattr(self, name)))

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> 'Address':
        """Create an Address from any mapping carrying address fields."""
        return cls(
            address=d.get('address') or '',
            city=d.get('city') or '',
            state=d.get('state') or '',
            zip=d.get('zip') or '',
            country=d.get('country') or '',
        )

    @property
    def key(self) -> str:
        return address_key(self.as_dict())

    def is_empty(self) -> bool:
        return not self.key

    def as_dict(self) -> dict:
        return {
            'address': self.address,
            'zip': self.zip,
            'city': self.city,
            'state': self.state,
            'country': self.country,
        }

    def display(self, country: Optional[str] = None) -> str:
        """Human readable form used in log messages."""
        city_state = ', '.join(part for part in (self.city, self.state) if part)
        parts = [self.address, city_state, self.zip, self.country or (country or '')]
        return ' '.join(part for part in parts if part)
