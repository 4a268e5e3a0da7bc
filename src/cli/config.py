"""Configuration loading and management."""

from pathlib import Path
from typing import Optional

import yaml

from .config_models import CuratorConfig

CONFIG_FILENAME = "curator.yaml"
GLOBAL_CONFIG = Path("~/.vault-curator/config.yaml")


def find_config() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / CONFIG_FILENAME,
        GLOBAL_CONFIG.expanduser(),
    ]
    for loc in locations:
        if loc.exists():
            return loc
    return None


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration as a plain dict. Use load_config_model() for typed access."""
    return load_config_model(config_path).to_dict()


def load_config_model(config_path: Optional[Path] = None) -> CuratorConfig:
    """Load configuration as Pydantic model with validation.

    An explicit path must exist; otherwise a missing file means defaults.
    """
    base_config = {}

    if config_path is not None and not Path(config_path).expanduser().exists():
        raise ValueError(f"Config file not found: {config_path}")

    path = Path(config_path).expanduser() if config_path else find_config()
    if path and path.exists():
        try:
            with open(path) as f:
                base_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file: {e}")

    if not isinstance(base_config, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")

    try:
        return CuratorConfig.from_dict(base_config)
    except Exception as e:
        raise ValueError(f"Config validation failed: {e}")
