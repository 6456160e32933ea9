"""Configuration module for the group console."""
from .groups import GroupsConfig, GroupsConfigError, load_groups_config
from .settings import AppConfig, load_secret, load_settings

__all__ = [
    "AppConfig",
    "GroupsConfig",
    "GroupsConfigError",
    "load_groups_config",
    "load_secret",
    "load_settings",
]
