"""
geo_config.py - Geographic and resolver configuration for geo_events.

Provides GeoConfig for loading geocoding, encyclopedia and state alias
settings from a YAML configuration file, with optional dict overrides.
"""

import yaml
import logging
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_GEO_CONFIG_PATH = Path(__file__).parent / "geo_config.yaml"


class GeoConfig:
    """
    GeoConfig manages loading of geographic configuration data from a YAML file.

    Attributes:
        user_agent (str): User agent sent to external services.
        default_country (str): Country appended to free-text geocode queries.
        country_codes (str): Country restriction passed to the geocoder.
        geocode_sleep_interval (float): Throttle delay before each geocode request.
        geocode_timeout (float): Geocode request timeout in seconds.
        geocode_max_retries (int): Attempts per geocode request on transport errors.
        geocode_strategies (List[str]): Ordered geocode strategy names.
        country_bounds (Dict[str, float]): min/max lat/lon accepted for candidates.
        days_between_retrying_failed_lookups (Optional[float]): Expiry of failure markers.
        wiki_api_url (str): MediaWiki API endpoint.
        wiki_article_base_url (str): Base URL for article links.
        wiki_search_limit (int): Number of search candidates per query.
        wiki_request_interval (float): Throttle delay before each wiki request.
        wiki_timeout (float): Wiki request timeout in seconds.
        wiki_max_attempts (int): Attempts per wiki request on retryable errors.
        wiki_thumbnail_size (int): Thumbnail width in pixels.
        state_aliases (Dict[str, str]): Lower-cased alias -> state abbreviation.
    """

    def __init__(self, geo_config_path: Optional[Path] = None, geo_config_updates: Optional[dict] = None) -> None:
        """Initialize GeoConfig from the YAML file and optional overrides.

        Args:
            geo_config_path: Optional path to the configuration YAML file.
                Defaults to the geo_config.yaml shipped with the package.
            geo_config_updates: Optional dict of values overriding the file.

        Raises:
            TypeError: If geo_config_path is not a Path or None.
        """
        if geo_config_path is not None and not isinstance(geo_config_path, Path):
            raise TypeError("geo_config_path must be a pathlib.Path or None")
        self.__geo_config_path: Path = geo_config_path or DEFAULT_GEO_CONFIG_PATH
        self.__geo_config: dict = {}

        self.load_geo_config()
        if geo_config_updates:
            self.update_geo_config(geo_config_updates)
        self.initialize_settings()

    def load_geo_config(self) -> None:
        """
        Load geographic configuration from the YAML file.
        """
        if self.__geo_config_path.exists():
            try:
                with open(self.__geo_config_path, 'r', encoding='utf-8') as f:
                    self.__geo_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                logger.error(f"Failed to load geo config from {self.__geo_config_path}: {e}")
                self.__geo_config = {}
        else:
            logger.warning(f"Geo config file not found: {self.__geo_config_path}")
            self.__geo_config = {}

    def get_geo_config(self, key: Optional[str] = None, default=None):
        """
        Get the geo configuration dictionary or a specific key value.

        Args:
            key: Optional key to retrieve a specific value. If None, returns entire config.
            default: Default value to return if key is not found.

        Returns:
            The entire config dict if key is None, otherwise the value for the key.
        """
        if key is None:
            return self.__geo_config.copy()
        return self.__geo_config.get(key, default)

    def set_geo_config(self, key: str, value) -> None:
        """
        Set a value in the geo configuration and refresh derived settings.
        """
        self.__geo_config[key] = value
        self.initialize_settings()

    def update_geo_config(self, settings_dict: dict) -> None:
        """
        Update multiple values in the geo configuration dictionary from a dict.

        Args:
            settings_dict: Dictionary of key-value pairs to update in the config.
        """
        self.__geo_config.update(settings_dict)
        self.initialize_settings()

    def initialize_settings(self) -> None:
        """
        Populate typed attributes from the loaded configuration.
        """
        cfg = self.__geo_config
        self.user_agent: str = cfg.get('user_agent', 'geo_events/1.0')
        self.default_country: str = cfg.get('default_country', '') or ''
        self.country_codes: str = cfg.get('country_codes', 'us')

        self.geocode_sleep_interval: float = float(cfg.get('geocode_sleep_interval', 1.0))
        self.geocode_timeout: float = float(cfg.get('geocode_timeout', 10))
        self.geocode_max_retries: int = int(cfg.get('geocode_max_retries', 3))
        self.geocode_strategies: List[str] = list(cfg.get('geocode_strategies') or [])
        self.country_bounds: Dict[str, float] = dict(cfg.get('country_bounds') or {})

        retry_days = cfg.get('days_between_retrying_failed_lookups')
        self.days_between_retrying_failed_lookups: Optional[float] = (
            float(retry_days) if retry_days is not None else None
        )

        self.wiki_api_url: str = cfg.get('wiki_api_url', 'https://en.wikipedia.org/w/api.php')
        self.wiki_article_base_url: str = cfg.get('wiki_article_base_url', 'https://en.wikipedia.org/wiki/')
        self.wiki_search_limit: int = int(cfg.get('wiki_search_limit', 10))
        self.wiki_request_interval: float = float(cfg.get('wiki_request_interval', 0.0))
        self.wiki_timeout: float = float(cfg.get('wiki_timeout', 20))
        self.wiki_max_attempts: int = int(cfg.get('wiki_max_attempts', 3))
        self.wiki_thumbnail_size: int = int(cfg.get('wiki_thumbnail_size', 400))

        aliases = cfg.get('state_aliases') or {}
        self.state_aliases: Dict[str, str] = {str(k).lower(): str(v).upper() for k, v in aliases.items()}

    def in_country_bounds(self, lat: float, lon: float) -> bool:
        """
        Check whether a coordinate lies inside the configured country bounds.

        Always True when no bounds are configured.
        """
        bounds = self.country_bounds
        if not bounds:
            return True
        return (
            bounds.get('min_lat', -90.0) <= lat <= bounds.get('max_lat', 90.0)
            and bounds.get('min_lon', -180.0) <= lon <= bounds.get('max_lon', 180.0)
        )
