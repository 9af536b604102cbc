# Configuration module for the events gateway
from .settings import (
    Settings,
    Environment,
    ConfigurationError,
    get_settings,
    clear_settings_cache,
)

__all__ = ["Settings", "Environment", "ConfigurationError", "get_settings", "clear_settings_cache"]
