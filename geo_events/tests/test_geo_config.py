import pytest
from pathlib import Path

from geo_events.geo_config import GeoConfig


def test_geo_config_init():
    """Test GeoConfig loads the packaged defaults."""
    config = GeoConfig()
    assert config.default_country == 'United States'
    assert config.country_codes == 'us'
    assert config.geocode_strategies[0] == 'structured_street_zip'
    assert config.geocode_strategies[-1] == 'freetext_city'
    assert config.days_between_retrying_failed_lookups is None


def test_geo_config_invalid_args():
    """Test GeoConfig rejects a non-Path config path."""
    with pytest.raises(TypeError):
        GeoConfig("unexpected_argument")


def test_geo_config_updates():
    """Test overrides take effect on the typed attributes."""
    config = GeoConfig(geo_config_updates={'geocode_sleep_interval': 0, 'wiki_max_attempts': 5})
    assert config.geocode_sleep_interval == 0.0
    assert config.wiki_max_attempts == 5
    config.set_geo_config('days_between_retrying_failed_lookups', 7)
    assert config.days_between_retrying_failed_lookups == 7.0
    assert config.get_geo_config('wiki_max_attempts') == 5


def test_geo_config_missing_file(tmp_path):
    """Test a missing config file falls back to built-in defaults."""
    config = GeoConfig(tmp_path / "missing.yaml")
    assert config.get_geo_config() == {}
    assert config.geocode_max_retries == 3
    assert config.in_country_bounds(-45.0, 170.0)


def test_geo_config_from_file(tmp_path):
    """Test values are read from a custom YAML file."""
    path = tmp_path / "geo.yaml"
    path.write_text("default_country: Canada\ncountry_codes: ca\nstate_aliases:\n  Chi-Town: il\n")
    config = GeoConfig(Path(path))
    assert config.default_country == 'Canada'
    assert config.state_aliases == {'chi-town': 'IL'}


def test_in_country_bounds():
    """Test the default bounds accept Alaska and Hawaii and reject Europe."""
    config = GeoConfig()
    assert config.in_country_bounds(39.78, -89.65)
    assert config.in_country_bounds(61.2, -149.9)
    assert config.in_country_bounds(21.3, -157.8)
    assert not config.in_country_bounds(51.5, -0.1)
    assert not config.in_country_bounds(10.0, -89.65)
