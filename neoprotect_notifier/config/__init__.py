"""
Notifier Configuration Module
Centralized configuration management using pydantic-settings.
"""

from neoprotect_notifier.config.settings import (
    ApiSettings,
    IntegrationSettings,
    LoggingSettings,
    MonitorMode,
    MonitorSettings,
    ReappearPolicy,
    Settings,
    load_settings,
    read_config_file,
)

__all__ = [
    "Settings",
    "ApiSettings",
    "MonitorSettings",
    "IntegrationSettings",
    "LoggingSettings",
    "MonitorMode",
    "ReappearPolicy",
    "load_settings",
    "read_config_file",
]
