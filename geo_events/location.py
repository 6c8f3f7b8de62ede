"""
location.py - Resolved location types for geo_events.

Holds the results of the two location lookups (geocoding and encyclopedia
city info) and the LocationInfo that combines them for a record.

Module: geo_events.location
"""
__all__ = ['GeocodeResult', 'CityInfo', 'LocationInfo']

import logging
from dataclasses import dataclass, asdict
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeocodeResult:
    """
    Coordinates returned by the geocoding service for an address.

    Attributes:
        latitude (float): Latitude in degrees.
        longitude (float): Longitude in degrees.
        display_name (str): Display name of the matched place.
    """
    latitude: float
    longitude: float
    display_name: str = ''

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CityInfo:
    """
    Encyclopedia metadata for a city.

    Attributes:
        title (str): Article title, e.g. 'Springfield, Illinois'.
        article_url (str): Canonical article URL.
        thumbnail_url (str): Thumbnail image URL, may be empty.
    """
    title: str
    article_url: str
    thumbnail_url: str = ''

    def as_dict(self) -> dict:
        return asdict(self)


class LocationInfo:
    """
    Fully resolved location for a record.

    Only built once both the address and the city resolved.

    Attributes:
        geocode (GeocodeResult): Coordinates of the address.
        city (str): City name as given by the record.
        state (str): Full state name.
        city_info (CityInfo): Encyclopedia info for the city.
        pct_dem_lead (Optional[float]): Signed precinct voting lean, if known.
        address_key (str): Address key the geocode was cached under.
    """
    __slots__ = ['geocode', 'city', 'state', 'city_info', 'pct_dem_lead', 'address_key']

    def __init__(
        self,
        geocode: GeocodeResult,
        city: str,
        state: str,
        city_info: CityInfo,
        pct_dem_lead: Optional[float] = None,
        address_key: str = ''
    ):
        if geocode is None or city_info is None:
            raise ValueError("LocationInfo requires both a geocode and city info")
        self.geocode = geocode
        self.city = city
        self.state = state
        self.city_info = city_info
        self.pct_dem_lead = pct_dem_lead
        self.address_key = address_key

    @property
    def lat(self) -> float:
        return self.geocode.latitude

    @property
    def lon(self) -> float:
        return self.geocode.longitude

    def as_dict(self) -> dict:
        return {
            'lat': self.lat,
            'lon': self.lon,
            'display_name': self.geocode.display_name,
            'city': self.city,
            'state': self.state,
            'city_title': self.city_info.title,
            'city_article_url': self.city_info.article_url,
            'city_thumbnail_url': self.city_info.thumbnail_url,
            'pct_dem_lead': self.pct_dem_lead,
            'address_key': self.address_key,
        }

    def __str__(self):
        return f"LocationInfo(city={self.city}, state={self.state}, lat={self.lat}, lon={self.lon})"

    def __repr__(self):
        return f"LocationInfo(city={self.city!r}, state={self.state!r}, lat={self.lat!r}, lon={self.lon!r})"
