"""Configuration loading for agentsync.

Configuration is loaded from TOML files with environment variable overrides.

Usage:
    from agentsync.config import get_settings

    settings = get_settings()
    workspace = settings.get_workspace("production")
    prompts_dir = settings.paths.prompts_dir
"""

from functools import lru_cache

from agentsync.config.loader import load_config
from agentsync.config.settings import Settings, set_toml_config


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the cached settings instance.

    Call `get_settings.cache_clear()` or `reload_settings()` to reload.
    """
    set_toml_config(load_config())
    return Settings()


def reload_settings() -> Settings:
    """Clear the settings cache and reload configuration."""
    get_settings.cache_clear()
    return get_settings()


__all__ = ["get_settings", "reload_settings", "Settings"]
