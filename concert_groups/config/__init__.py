"""Configuration module — exports Settings, FormationConfig and the loaders."""

from concert_groups.config.loader import formation_config_from, load_config
from concert_groups.config.settings import FormationConfig, Settings

__all__ = ["FormationConfig", "Settings", "formation_config_from", "load_config"]
