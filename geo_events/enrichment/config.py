from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


def _load_yaml(yaml_path: Path) -> Dict[str, Any]:
    if not yaml_path or not yaml_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {yaml_path}")
    try:
        with open(yaml_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing {yaml_path}: {e}")


@dataclass
class EnrichmentConfig:
    """
    Configuration for the enrichment pipeline.

    Loads all configuration values from config.yaml in the enrichment directory.
    """
    # Year assumed for dates written as M/D
    default_year: int = field(init=False)

    # Accepted date range, in years
    min_year: int = field(init=False)
    max_year: int = field(init=False)

    # Sheets that are known not to hold records
    known_bad_sheet_names: List[str] = field(init=False)

    # Runs rejecting more than this share of processed rows are flagged
    suspicious_reject_ratio: float = field(init=False)

    # Post-run similar name scan
    check_similar_names: bool = field(init=False)
    similar_name_threshold: int = field(init=False)

    # Output files, relative to the output directory given to the build
    issue_log_name: str = field(init=False)
    summary_name: str = field(init=False)

    def __post_init__(self):
        """Load configuration from YAML file."""
        config_dict = _load_yaml(DEFAULT_CONFIG_PATH)
        for key in self.__dataclass_fields__.keys():
            if key in config_dict:
                object.__setattr__(self, key, config_dict[key])
            else:
                raise ValueError(f"Required configuration field '{key}' not found in config.yaml")

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> EnrichmentConfig:
        """
        Load configuration from a specific YAML file.

        Args:
            yaml_path: Path to YAML config file.

        Returns:
            EnrichmentConfig: Configuration instance loaded from YAML.
        """
        return cls.from_dict(_load_yaml(yaml_path))

    def is_known_bad_sheet(self, sheet_name: str) -> bool:
        return sheet_name.strip().lower() in {name.strip().lower() for name in self.known_bad_sheet_names}

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any], defaults: Optional[Dict[str, Any]] = None) -> EnrichmentConfig:
        """
        Create configuration from a dictionary.

        Keys missing from config_dict are taken from the default config.yaml.

        Args:
            config_dict (Dict[str, Any]): Dictionary with configuration values.
            defaults: Optional dictionary used instead of the default config.yaml.
        Returns:
            EnrichmentConfig: Configuration instance.
        """
        instance = object.__new__(cls)
        default_dict = defaults if defaults is not None else _load_yaml(DEFAULT_CONFIG_PATH)

        for key in cls.__dataclass_fields__.keys():
            if key in config_dict:
                object.__setattr__(instance, key, config_dict[key])
            elif key in default_dict:
                object.__setattr__(instance, key, default_dict[key])
            else:
                raise ValueError(f"Required configuration field '{key}' not found")
        return instance
