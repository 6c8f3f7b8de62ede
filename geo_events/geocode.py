"""
geocode.py - Address geocoding for geo_events.

Resolves an Address to coordinates with Nominatim, trying a cascade of
query strategies from most to least specific. Outcomes are cached by
address key, including failures, when a LocationCache is supplied.
"""

import time
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from geopy.geocoders import Nominatim
from geopy.exc import GeocoderServiceError
from geopy.adapters import AdapterHTTPError

from .address import Address
from .fallback import first_non_empty
from .geo_config import GeoConfig
from .geocache import LocationCache
from .location import GeocodeResult

logger = logging.getLogger(__name__)

Query = Union[str, Dict[str, str]]


class UnresolvableAddress(Exception):
    """
    Raised when an address cannot be geocoded.

    Attributes:
        address_key (str): Key of the failed address.
        cached (bool): True if the failure was served from the cache.
        transient (bool): True if a strategy ran out of retries on transport
            errors, so the outcome says nothing about the address itself.
    """

    def __init__(self, message: str, address_key: str = '', cached: bool = False, transient: bool = False):
        super().__init__(message)
        self.address_key = address_key
        self.cached = cached
        self.transient = transient


@dataclass(frozen=True)
class GeocodeStrategy:
    """
    One tier of the geocoding cascade.

    Attributes:
        name (str): Name used in configuration and logs.
        structured (bool): Send a structured query instead of free text.
        include_street (bool): Requires and sends the street address.
        include_zip (bool): Requires and sends the postal code.
    """
    name: str
    structured: bool
    include_street: bool
    include_zip: bool

    def build_query(self, address: Address, default_country: str = '') -> Optional[Query]:
        """
        Build the query for an address, or None if this strategy does not apply.

        A strategy does not apply when a field it requires is blank or when the
        query would name nothing more specific than the country.
        """
        if self.include_street and not address.address:
            return None
        if self.include_zip and not address.zip:
            return None
        street = address.address if self.include_street else ''
        postalcode = address.zip if self.include_zip else ''
        if not any((street, postalcode, address.city, address.state)):
            return None
        country = address.country or default_country

        if self.structured:
            parts = {
                'street': street,
                'city': address.city,
                'state': address.state,
                'postalcode': postalcode,
                'country': country,
            }
            return {k: v for k, v in parts.items() if v}
        return ', '.join(p for p in (street, postalcode, address.city, address.state, country) if p)


GEOCODE_STRATEGIES: Dict[str, GeocodeStrategy] = {
    s.name: s for s in (
        GeocodeStrategy('structured_street_zip', structured=True, include_street=True, include_zip=True),
        GeocodeStrategy('structured_street', structured=True, include_street=True, include_zip=False),
        GeocodeStrategy('freetext_street', structured=False, include_street=True, include_zip=False),
        GeocodeStrategy('structured_zip', structured=True, include_street=False, include_zip=True),
        GeocodeStrategy('freetext_city', structured=False, include_street=False, include_zip=False),
    )
}
DEFAULT_STRATEGY_ORDER = list(GEOCODE_STRATEGIES.keys())


def strategies_from_names(names: Sequence[str]) -> List[GeocodeStrategy]:
    """
    Map configured strategy names to strategies.

    Raises:
        ValueError: If a name is unknown.
    """
    unknown = [name for name in names if name not in GEOCODE_STRATEGIES]
    if unknown:
        raise ValueError(f"Unknown geocode strategies: {unknown}")
    return [GEOCODE_STRATEGIES[name] for name in names]


def _query_signature(query: Query) -> str:
    if isinstance(query, dict):
        return repr(sorted(query.items()))
    return query.lower()


class Geocode:
    """
    Resolves addresses to coordinates.

    Attributes:
        geo_config (GeoConfig): Resolver settings.
        geolocator: Geopy geocoder (Nominatim unless injected).
        geo_cache (Optional[LocationCache]): Cache of good and bad outcomes.
        strategies (List[GeocodeStrategy]): Cascade in evaluation order.
        stats (Dict[str, int]): cache_hits, cached_failures, lookups, requests,
            transport_errors and failures counters.
    """

    __slots__ = ['geo_config', 'geolocator', 'geo_cache', 'strategies', 'stats', 'sleep']

    def __init__(
        self,
        geo_config: Optional[GeoConfig] = None,
        geo_cache: Optional[LocationCache] = None,
        geolocator=None,
        strategies: Optional[Sequence[GeocodeStrategy]] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize the Geocode object.

        Args:
            geo_config (Optional[GeoConfig]): Settings; defaults to the packaged config.
            geo_cache (Optional[LocationCache]): Cache consulted by resolve().
            geolocator: Object with a geopy compatible geocode() method.
            strategies (Optional[Sequence[GeocodeStrategy]]): Cascade override.
            sleep (Callable[[float], None]): Sleep function used for throttling.
        """
        self.geo_config = geo_config if geo_config else GeoConfig()
        self.geo_cache = geo_cache
        self.geolocator = geolocator if geolocator is not None else Nominatim(user_agent=self.geo_config.user_agent)
        if strategies is None:
            strategies = strategies_from_names(self.geo_config.geocode_strategies or DEFAULT_STRATEGY_ORDER)
        self.strategies = list(strategies)
        self.sleep = sleep
        self.stats: Dict[str, int] = {
            'cache_hits': 0,
            'cached_failures': 0,
            'lookups': 0,
            'requests': 0,
            'transport_errors': 0,
            'failures': 0,
        }

    def resolve(self, address: Address) -> GeocodeResult:
        """
        Resolve an address, using the cache when one is configured.

        Args:
            address (Address): Address to resolve.

        Returns:
            GeocodeResult: Coordinates of the best candidate.

        Raises:
            UnresolvableAddress: If the address is empty, failed before, or
                every strategy came back empty.
        """
        key = address.key
        if not key:
            raise UnresolvableAddress("Cannot geocode: all address fields are empty", key)

        if self.geo_cache is not None:
            entry = self.geo_cache.lookup_address(key)
            if entry is not None:
                if entry.no_result:
                    self.stats['cached_failures'] += 1
                    raise UnresolvableAddress(f"No geocode for '{key}' (cached)", key, cached=True)
                self.stats['cache_hits'] += 1
                return entry.to_geocode()

        try:
            result = self.geocode_from_service(address)
        except UnresolvableAddress as e:
            # Not cached when a service outage may have hidden a result
            if self.geo_cache is not None and not e.transient:
                self.geo_cache.add_bad_address(key)
            raise

        if self.geo_cache is not None:
            self.geo_cache.add_address(key, result)
        return result

    def queries_for(self, address: Address) -> List[Tuple[GeocodeStrategy, Query]]:
        """
        Applicable (strategy, query) pairs for an address, without repeats.
        """
        queries: List[Tuple[GeocodeStrategy, Query]] = []
        seen = set()
        for strategy in self.strategies:
            query = strategy.build_query(address, self.geo_config.default_country)
            if query is None:
                continue
            signature = _query_signature(query)
            if signature in seen:
                continue
            seen.add(signature)
            queries.append((strategy, query))
        return queries

    def geocode_from_service(self, address: Address) -> GeocodeResult:
        """
        Geocode an address with the external service, ignoring the cache.

        Raises:
            UnresolvableAddress: If no strategy produced an in-bounds candidate.
        """
        key = address.key
        if not key:
            raise UnresolvableAddress("Cannot geocode: all address fields are empty", key)

        self.stats['lookups'] += 1
        logger.info(f"Geocoding new address: '{address.display()}' key: {key}")

        exhausted: List[str] = []

        def run(attempt: Tuple[GeocodeStrategy, Query]) -> list:
            candidates = self._candidates(attempt[1])
            if candidates is None:
                exhausted.append(attempt[0].name)
                return []
            return candidates

        winner = first_non_empty(
            self.queries_for(address),
            run,
            label=lambda attempt: f"{attempt[0].name}: {attempt[1]}",
        )
        if winner is None:
            self.stats['failures'] += 1
            if exhausted:
                raise UnresolvableAddress(
                    f"No results found for '{key}'; service errors on {', '.join(exhausted)}", key, transient=True
                )
            raise UnresolvableAddress(f"No results found for '{key}' after all fallbacks", key)

        (strategy, _), candidates = winner
        top = candidates[0]
        logger.info(f"Geocoded '{key}' with {strategy.name} to ({top.latitude}, {top.longitude})")
        return GeocodeResult(
            latitude=float(top.latitude),
            longitude=float(top.longitude),
            display_name=top.address or '',
        )

    def _candidates(self, query: Query) -> Optional[list]:
        """Query the service and keep candidates inside the country bounds; None if retries ran out."""
        results = self._query_service(query)
        if results is None:
            return None
        in_bounds = [r for r in results if self.geo_config.in_country_bounds(float(r.latitude), float(r.longitude))]
        if results and not in_bounds:
            logger.debug(f"Discarding out of bounds candidates for {query}")
        return in_bounds

    def _query_service(self, query: Query) -> Optional[list]:
        """
        Send one query, retrying transport errors.

        Returns:
            Optional[list]: Geopy Location candidates, empty if none, or None if
                retries ran out.
        """
        max_retries = max(1, self.geo_config.geocode_max_retries)
        interval = self.geo_config.geocode_sleep_interval
        for attempt in range(max_retries):
            self.sleep(interval)  # Delay due to Nominatim request limit
            try:
                self.stats['requests'] += 1
                results = self.geolocator.geocode(
                    query,
                    exactly_one=False,
                    limit=1,
                    addressdetails=True,
                    country_codes=self.geo_config.country_codes,
                    timeout=self.geo_config.geocode_timeout,
                )
                return list(results or [])
            except (GeocoderServiceError, AdapterHTTPError) as e:
                self.stats['transport_errors'] += 1
                logger.error(f"Error geocoding {query}: {e}")
                if attempt < max_retries - 1:
                    backoff = interval * (attempt + 1)
                    logger.info(f"Retrying geocode for {query} (attempt {attempt+2}/{max_retries}) after {backoff} seconds...")
                    self.sleep(backoff)
                else:
                    logger.error(f"Giving up on geocoding {query} after {max_retries} attempts.")
        return None
