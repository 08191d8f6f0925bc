"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  0. Settings defaults   — Built-in fallbacks for keys nobody sets
  1. config/config.yaml  — Static defaults checked into the repo
  2. .env file           — Local operator overrides (not committed)
  3. Environment vars    — Set by the scheduler's runtime

formation_config_from() turns the merged ``formation`` section into the
validated :class:`FormationConfig` the job consumes.
"""

from pathlib import Path

import yaml
from pydantic import ValidationError

from concert_groups.config.settings import FormationConfig, Settings
from concert_groups.utils.errors import ConfigurationError


# Where each Settings field lands in the merged config dict.
_SETTINGS_LAYOUT: dict[str, tuple[str, str]] = {
    "app_env": ("app", "env"),
    "radius_miles": ("formation", "radius_miles"),
    "artist_delay_ms": ("formation", "artist_delay_ms"),
    "max_concurrent_artists": ("formation", "max_concurrent_artists"),
    "ticketmaster_api_key": ("event_catalog", "ticketmaster_api_key"),
    "ticketmaster_base_url": ("event_catalog", "base_url"),
    "http_timeout_seconds": ("event_catalog", "http_timeout_seconds"),
    "ticketmaster_min_interval_seconds": ("event_catalog", "min_interval_seconds"),
    "database_path": ("storage", "database_path"),
    "db_timeout_seconds": ("storage", "timeout_seconds"),
    "log_level": ("logging", "level"),
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Settings fields that were explicitly set (environment, ``.env`` or
    constructor) override the YAML.  Fields left at their built-in default
    only fill keys the YAML does not mention, so a value set in config.yaml
    is not clobbered by an unset env var.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built Settings; constructed from the environment if omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    if settings is None:
        settings = Settings()
    explicit = settings.model_fields_set

    defaults: dict = {}
    env_overrides: dict = {}
    for field_name, (section, key) in _SETTINGS_LAYOUT.items():
        target = env_overrides if field_name in explicit else defaults
        target.setdefault(section, {})[key] = getattr(settings, field_name)

    _deep_merge(defaults, yaml_config)
    _deep_merge(defaults, env_overrides)
    return defaults


def formation_config_from(config: dict) -> FormationConfig:
    """Build a FormationConfig from the ``formation`` section of *config*."""
    section = config.get("formation") or {}
    try:
        return FormationConfig(**section)
    except ValidationError as exc:
        raise ConfigurationError(message=f"Invalid formation config: {exc}") from exc


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
