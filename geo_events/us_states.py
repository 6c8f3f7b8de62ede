"""
us_states.py - US state, district and territory lookup.

States are taken from pycountry's ISO 3166-2 subdivisions of the US, keyed by
both full name and USPS abbreviation, ignoring case and punctuation.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Mapping, Optional

import pycountry
from unidecode import unidecode

# pycountry names that differ from common usage
_NAME_OVERRIDES = {
    'VI': 'U.S. Virgin Islands',
}

_NON_LETTERS_RE = re.compile(r"[^a-z]")


@dataclass(frozen=True)
class StateInfo:
    full_name: str
    abbreviation: str


def normalize_state_key(name: str) -> str:
    return _NON_LETTERS_RE.sub('', unidecode(name or '').lower())


@lru_cache(maxsize=1)
def _state_lookup() -> Dict[str, StateInfo]:
    lookup: Dict[str, StateInfo] = {}
    for subdivision in pycountry.subdivisions.get(country_code='US'):
        abbreviation = subdivision.code.split('-', 1)[1]
        info = StateInfo(
            full_name=_NAME_OVERRIDES.get(abbreviation, subdivision.name),
            abbreviation=abbreviation,
        )
        lookup[normalize_state_key(subdivision.name)] = info
        lookup[normalize_state_key(info.full_name)] = info
        lookup[normalize_state_key(abbreviation)] = info
    return lookup


def all_states() -> Dict[str, StateInfo]:
    """Abbreviation -> StateInfo for every known state, district and territory."""
    return {info.abbreviation: info for info in _state_lookup().values()}


def get_state_info(name: Optional[str], aliases: Optional[Mapping[str, str]] = None) -> Optional[StateInfo]:
    """
    Look up a state by full name or abbreviation.

    Args:
        name: State name in any case, e.g. 'IL', 'illinois', 'Illinois '.
        aliases: Optional alias -> abbreviation mapping checked when the
            name is not found directly.

    Returns:
        StateInfo or None if the name is unknown.
    """
    if not name or not name.strip():
        return None
    lookup = _state_lookup()
    key = normalize_state_key(name)
    info = lookup.get(key)
    if info is None and aliases:
        for alias, abbreviation in aliases.items():
            if normalize_state_key(alias) == key:
                info = lookup.get(normalize_state_key(abbreviation))
                break
    return info


def expand_state_name(name: Optional[str], aliases: Optional[Mapping[str, str]] = None) -> str:
    """Full state name when resolvable, otherwise the trimmed input."""
    info = get_state_info(name, aliases)
    return info.full_name if info else (name or '').strip()
