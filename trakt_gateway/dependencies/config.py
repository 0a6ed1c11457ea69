"""
FastAPI dependency utilities for injecting configuration.
"""

from functools import lru_cache

from trakt_gateway.core.config import AppSettings, get_settings


@lru_cache()
def _settings_singleton() -> AppSettings:
    return get_settings()


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning application settings."""
    return _settings_singleton()


__all__ = ["get_app_settings"]
