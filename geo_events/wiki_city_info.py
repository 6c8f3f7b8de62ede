"""
wiki_city_info.py - Encyclopedia metadata for (city, state) pairs.

Searches the encyclopedia for a city, ranks candidate titles with a simple
priority heuristic and accepts the first candidate whose categories say it
is a populated place. The accepted article's URL and thumbnail are returned
as a CityInfo. Outcomes are cached by city key, including "no result".
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Set

from .geo_config import GeoConfig
from .geocache import LocationCache
from .identity import city_key
from .location import CityInfo
from .us_states import StateInfo, get_state_info
from .wiki_client import WikiClient, WikiRequestError

logger = logging.getLogger(__name__)

PLACE_CATEGORY_RE = re.compile(
    r"^(?:Category:)?\s*(?:"
    r"census-designated places"
    r"|cities"
    r"|towns"
    r"|villages"
    r"|townships"
    r"|counties"
    r"|boroughs"
    r"|unincorporated communities"
    r"|islands"
    r"|county seats"
    r"|populated places"
    r")\b",
    re.IGNORECASE,
)
DISAMBIGUATION_RE = re.compile(r"disambiguation", re.IGNORECASE)

WASHINGTON_DC_QUERY = "Washington, D.C."
_NON_LETTERS_RE = re.compile(r"[^a-z]")


def _letters(text: str) -> str:
    return _NON_LETTERS_RE.sub('', (text or '').lower())


def is_washington_dc(city: str, state: str) -> bool:
    return _letters(city) == 'washingtondc' or _letters(state) in ('washingtondc', 'dc', 'districtofcolumbia')


def search_queries(city: str, state_name: str) -> List[str]:
    """
    Search queries for a city, most direct first.

    Township and county variants are skipped when the city name already
    names an island or a township.
    """
    city = city.strip()
    queries = [f"{city}, {state_name}"]
    lowered = city.lower()
    if 'island' not in lowered and 'township' not in lowered:
        queries.append(f"{city} Township, {state_name}")
        queries.append(f"{city} County, {state_name}")
    return queries


def title_priority(title: str, city: str, state_name: str) -> int:
    """
    Priority of a search result title; lower is better.

    The part of the title before the first comma is compared with the city:
    exact 0, prefix 1, substring 2, otherwise 3. A title that also names the
    state gets one point off, one that does not gets one point on.
    """
    base = title.split(',', 1)[0].strip().lower()
    city = city.strip().lower()
    if base == city:
        priority = 0
    elif base.startswith(city):
        priority = 1
    elif city in base:
        priority = 2
    else:
        priority = 3
    if state_name and state_name.lower() in title.lower():
        priority -= 1
    else:
        priority += 1
    return priority


def rank_titles(titles: Iterable[str], city: str, state_name: str) -> List[str]:
    """Titles sorted by priority; ties keep search rank."""
    return sorted(titles, key=lambda title: title_priority(title, city, state_name))


def is_populated_place(categories: Iterable[str]) -> bool:
    categories = list(categories)
    if any(DISAMBIGUATION_RE.search(c) for c in categories):
        return False
    return any(PLACE_CATEGORY_RE.search(c) for c in categories)


class WikiCityInfo:
    """
    Resolves (city, state) to encyclopedia city info.

    Attributes:
        geo_config (GeoConfig): Resolver settings.
        client (WikiClient): Encyclopedia API client.
        geo_cache (Optional[LocationCache]): Cache of good and bad outcomes.
        stats (Dict[str, int]): cache_hits, cached_failures, lookups,
            rejected_candidates and request_failures counters.
    """

    def __init__(
        self,
        geo_config: Optional[GeoConfig] = None,
        geo_cache: Optional[LocationCache] = None,
        client: Optional[WikiClient] = None,
    ):
        self.geo_config = geo_config if geo_config else GeoConfig()
        self.geo_cache = geo_cache
        self.client = client if client is not None else WikiClient(self.geo_config)
        self.stats: Dict[str, int] = {
            'cache_hits': 0,
            'cached_failures': 0,
            'lookups': 0,
            'rejected_candidates': 0,
            'request_failures': 0,
        }

    def resolve(self, city: str, state: str) -> Optional[CityInfo]:
        """
        Resolve a city, using the cache when one is configured.

        Args:
            city (str): City name.
            state (str): State name or abbreviation.

        Returns:
            Optional[CityInfo]: City info, or None when no validated place exists.
        """
        state_info = get_state_info(state, self.geo_config.state_aliases)
        if not (city or '').strip() or state_info is None:
            logger.warning(f"Invalid city or state provided: '{city}', '{state}'")
            return None

        key = city_key(city, state_info.full_name)
        if self.geo_cache is not None:
            entry = self.geo_cache.lookup_city(key)
            if entry is not None:
                if entry.no_result:
                    self.stats['cached_failures'] += 1
                    return None
                self.stats['cache_hits'] += 1
                return entry.to_city_info()

        try:
            city_info = self.city_info_from_service(city, state_info)
        except WikiRequestError as e:
            # Not cached so a later run can try again
            self.stats['request_failures'] += 1
            logger.error(f"Encyclopedia lookup failed for {city}, {state_info.full_name}: {e}")
            return None

        if self.geo_cache is not None:
            if city_info is None:
                self.geo_cache.add_bad_city(key)
            else:
                self.geo_cache.add_city(key, city_info)
        return city_info

    def queries_for(self, city: str, state_info: StateInfo) -> List[str]:
        if is_washington_dc(city, state_info.abbreviation):
            return [WASHINGTON_DC_QUERY]
        return search_queries(city, state_info.full_name)

    def city_info_from_service(self, city: str, state_info: StateInfo) -> Optional[CityInfo]:
        """
        Search the encyclopedia for a city, ignoring the cache.

        Raises:
            WikiRequestError: If a request failed after retries.
        """
        self.stats['lookups'] += 1
        logger.info(f"Fetching wiki city info for {city}, {state_info.full_name}")
        rejected: Set[str] = set()

        for query in self.queries_for(city, state_info):
            titles = self.client.search_titles(query, limit=self.geo_config.wiki_search_limit)
            for title in rank_titles(titles, city, state_info.full_name):
                if title in rejected:
                    continue
                if not is_populated_place(self.client.categories(title)):
                    rejected.add(title)
                    self.stats['rejected_candidates'] += 1
                    logger.debug(f"Rejected '{title}' for {city}, {state_info.full_name}: not a populated place")
                    continue
                return self._city_info_for(title)

        logger.info(f"No populated place found for {city}, {state_info.full_name}")
        return None

    def _city_info_for(self, title: str) -> CityInfo:
        article_url, thumbnail_url = self.client.page_details(title, self.geo_config.wiki_thumbnail_size)
        if not article_url:
            article_url = self.geo_config.wiki_article_base_url + title.replace(' ', '_')
        if not thumbnail_url:
            logger.debug(f"No thumbnail for '{title}'")
        return CityInfo(title=title, article_url=article_url, thumbnail_url=thumbnail_url)
