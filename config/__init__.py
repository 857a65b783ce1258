"""Configuration module for loading and managing application settings"""
from functools import lru_cache
from typing import Dict, Any

from .lib.load_settings_conf import (
    DEFAULTS,
    SettingsError,
    load_settings_conf,
    validate_settings
)

__all__ = ['get_settings', 'load_settings_conf', 'validate_settings', 'SettingsError', 'DEFAULTS']


@lru_cache(maxsize=None)
def get_settings() -> Dict[str, Any]:
    """Load settings.conf from the working directory once and cache it.

    Raises:
        SettingsError: If the settings file is invalid
    """
    try:
        return load_settings_conf()
    except SettingsError as e:
        # Re-raise the error but provide more context
        raise SettingsError(
            f"Configuration Error\n"
            "=================\n\n"
            f"{str(e)}\n\n"
            "Please ensure settings.conf is properly configured.\n"
            "See settings.conf.example for the available settings."
        )
