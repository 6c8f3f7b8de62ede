"""
identity.py - Content keys and at-most-once bookkeeping.

Keys are pure functions of an entity's fields:
    - location: the AddressKey of its Address
    - city: "{city}-{full state name}", transliterated and reduced to [a-z0-9-]
    - event/turnout: "{type}:{date}|{name}|{link}|{lat}|{lon}"

IdentityDeduplicator keeps one append-only SeenKeySet per entity kind. A key
is marked seen only after its entity was written to the open store
transaction.
"""
from __future__ import annotations

import logging
import re
from datetime import date
from enum import Enum
from typing import Dict, Iterator, Mapping, Optional, Union

from unidecode import unidecode

from .address import address_key
from .us_states import expand_state_name

logger = logging.getLogger(__name__)

_CITY_KEY_RE = re.compile(r"[^a-z0-9-]")


class EntityKind(str, Enum):
    LOCATION = 'location'
    CITY = 'city'
    EVENT = 'event'
    TURNOUT = 'turnout'


def city_key(city: str, state: str, aliases: Optional[Mapping[str, str]] = None) -> str:
    """
    Normalized key for a (city, state) pair.

    The state is expanded to its full name when it resolves, so 'IL' and
    'Illinois' give the same key.
    """
    full_state = expand_state_name(state, aliases)
    raw = unidecode(f"{(city or '').strip()}-{full_state}").lower()
    return _CITY_KEY_RE.sub('', raw)


def _format_coordinate(value: float) -> str:
    return f"{float(value):.6f}"


def record_key(
    record_type: str,
    event_date: Union[date, str],
    name: str,
    link: str,
    lat: float,
    lon: float,
) -> str:
    """Identity key for an event or turnout after sanitizing and geocoding."""
    date_text = event_date.isoformat() if isinstance(event_date, date) else str(event_date)
    return f"{record_type}:{date_text}|{name}|{link}|{_format_coordinate(lat)}|{_format_coordinate(lon)}"


class SeenKeySet:
    """
    Append-only set of keys, each optionally mapped to the id of the stored entity.

    Adding an existing key is a no-op; there is no removal.
    """

    def __init__(self) -> None:
        self._ids: Dict[str, Optional[int]] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)

    def add(self, key: str, entity_id: Optional[int] = None) -> bool:
        """
        Add a key.

        Returns:
            bool: True if the key was new.
        """
        if key in self._ids:
            return False
        self._ids[key] = entity_id
        return True

    def get(self, key: str) -> Optional[int]:
        return self._ids.get(key)


class IdentityDeduplicator:
    """Computes identity keys and tracks which ones were already stored."""

    def __init__(self, state_aliases: Optional[Mapping[str, str]] = None) -> None:
        self.state_aliases = dict(state_aliases or {})
        self._seen: Dict[EntityKind, SeenKeySet] = {kind: SeenKeySet() for kind in EntityKind}

    def key_for(self, kind: Union[EntityKind, str], fields: Mapping) -> str:
        """
        Compute the identity key of an entity.

        Args:
            kind: Entity kind.
            fields: location - address, zip, city, state, country;
                city - city, state;
                event/turnout - date, name, link, lat, lon.

        Raises:
            ValueError: If the kind is unknown.
        """
        kind = EntityKind(kind)
        if kind is EntityKind.LOCATION:
            return address_key(fields)
        if kind is EntityKind.CITY:
            return city_key(fields.get('city', ''), fields.get('state', ''), self.state_aliases)
        return record_key(
            kind.value,
            fields['date'],
            fields.get('name', ''),
            fields.get('link', ''),
            fields['lat'],
            fields['lon'],
        )

    def seen_keys(self, kind: Union[EntityKind, str]) -> SeenKeySet:
        return self._seen[EntityKind(kind)]

    def has_seen(self, kind: Union[EntityKind, str], key: str) -> bool:
        return key in self._seen[EntityKind(kind)]

    def seen_id(self, kind: Union[EntityKind, str], key: str) -> Optional[int]:
        """Store id recorded with a seen key, or None."""
        return self._seen[EntityKind(kind)].get(key)

    def mark_seen(self, kind: Union[EntityKind, str], key: str, entity_id: Optional[int] = None) -> None:
        """Record that the entity behind a key has been written."""
        if not self._seen[EntityKind(kind)].add(key, entity_id):
            logger.debug(f"{EntityKind(kind).value} key already marked seen: {key}")
