"""
Notifier Settings
Pydantic-based configuration with support for env vars and a JSON config file.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Optional, Union

from pydantic import Field, ValidationError, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from neoprotect_notifier.domain.value_objects.ip_address import AddressSet
from neoprotect_notifier.errors import ConfigError

DEFAULT_API_ENDPOINT = "https://api.neoprotect.net/v2"


class MonitorMode(str, Enum):
    """Which attacks the poller asks upstream for."""

    ALL = "all"
    SPECIFIC = "specific"


class ReappearPolicy(str, Enum):
    """What to do when an attack id already marked ended is reported again."""

    IGNORE = "ignore"
    REOPEN = "reopen"
    NEW_ATTACK = "new_attack"


def _split_list(v):
    if isinstance(v, str):
        return [item.strip() for item in v.split(",") if item.strip()]
    return v


class ApiSettings(BaseSettings):
    """NeoProtect API settings."""

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
    )

    api_key: str = Field(default="", alias="NEOPROTECT_API_KEY")
    api_endpoint: str = Field(default=DEFAULT_API_ENDPOINT, alias="NEOPROTECT_API_ENDPOINT")
    request_timeout: float = Field(default=30.0, gt=0, alias="NEOPROTECT_REQUEST_TIMEOUT")

    @field_validator("api_endpoint", mode="before")
    @classmethod
    def default_endpoint(cls, v):
        return v or DEFAULT_API_ENDPOINT


class MonitorSettings(BaseSettings):
    """Polling and lifecycle settings."""

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
    )

    poll_interval_seconds: int = Field(default=60, alias="POLL_INTERVAL_SECONDS")
    monitor_mode: MonitorMode = Field(default=MonitorMode.ALL, alias="MONITOR_MODE")
    specific_ips: Annotated[list[str], NoDecode] = Field(default=[], alias="SPECIFIC_IPS")
    blacklisted_ips: Annotated[list[str], NoDecode] = Field(default=[], alias="BLACKLISTED_IPS")
    retention_hours: float = Field(default=24.0, gt=0, alias="RETENTION_HOURS")
    reappear_policy: ReappearPolicy = Field(default=ReappearPolicy.IGNORE, alias="REAPPEAR_POLICY")

    @field_validator("poll_interval_seconds", mode="before")
    @classmethod
    def default_interval(cls, v):
        # Non-positive intervals fall back to the default
        if v in (None, "") or int(v) <= 0:
            return 60
        return v

    @field_validator("monitor_mode", "reappear_policy", mode="before")
    @classmethod
    def normalize_choice(cls, v, info: ValidationInfo):
        if v is None or (isinstance(v, str) and not v.strip()):
            return cls.model_fields[info.field_name].default
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("specific_ips", "blacklisted_ips", mode="before")
    @classmethod
    def parse_address_list(cls, v):
        return _split_list(v)

    @property
    def blacklist(self) -> AddressSet:
        """Blacklist entries as an address set."""
        return AddressSet.from_entries(self.blacklisted_ips)


class IntegrationSettings(BaseSettings):
    """Notification channel settings."""

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
    )

    enabled_integrations: Annotated[list[str], NoDecode] = Field(
        default=["console"],
        alias="ENABLED_INTEGRATIONS",
    )
    integration_configs: Annotated[dict[str, dict[str, Any]], NoDecode] = Field(
        default={},
        alias="INTEGRATION_CONFIGS",
    )
    channel_timeout_seconds: float = Field(default=10.0, gt=0, alias="CHANNEL_TIMEOUT_SECONDS")

    @field_validator("enabled_integrations", mode="before")
    @classmethod
    def parse_enabled(cls, v):
        return _split_list(v)

    @field_validator("integration_configs", mode="before")
    @classmethod
    def parse_configs(cls, v):
        if isinstance(v, str):
            return json.loads(v) if v.strip() else {}
        return v


class LoggingSettings(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="console", alias="LOG_FORMAT")

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    @field_validator("log_format")
    @classmethod
    def check_format(cls, v):
        if v not in ("console", "json"):
            raise ValueError("LOG_FORMAT must be 'console' or 'json'")
        return v


class Settings(BaseSettings):
    """
    Main settings class that aggregates all config sections.

    Usage:
        from neoprotect_notifier.config import load_settings

        settings = load_settings("config.json")
        print(settings.monitor.poll_interval_seconds)
        print(settings.integrations.enabled_integrations)
    """

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    # Sub-settings
    api: ApiSettings = Field(default_factory=ApiSettings)
    monitor: MonitorSettings = Field(default_factory=MonitorSettings)
    integrations: IntegrationSettings = Field(default_factory=IntegrationSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def validate_runtime(self) -> None:
        """
        Check the cross-field rules needed to run the monitor.

        Raises:
            ConfigError: If the settings cannot drive a monitor
        """
        if not self.api.api_key:
            raise ConfigError("apiKey must be provided (NEOPROTECT_API_KEY)")
        if self.monitor.monitor_mode == MonitorMode.SPECIFIC and not self.monitor.specific_ips:
            raise ConfigError(
                "at least one IP address must be provided in specificIPs "
                "when monitorMode is 'specific'"
            )
        if not self.integrations.enabled_integrations:
            raise ConfigError("at least one integration must be enabled")
        try:
            AddressSet.from_entries(self.monitor.blacklisted_ips)
        except ValueError as e:
            raise ConfigError(f"invalid blacklist entry: {e}") from e

    def integration_config(self, name: str) -> Optional[dict[str, Any]]:
        """Get the configuration mapping of one channel."""
        return self.integrations.integration_configs.get(name)


# JSON config key -> environment alias
_FILE_KEYS = {
    "apiKey": "NEOPROTECT_API_KEY",
    "apiEndpoint": "NEOPROTECT_API_ENDPOINT",
    "requestTimeoutSeconds": "NEOPROTECT_REQUEST_TIMEOUT",
    "pollIntervalSeconds": "POLL_INTERVAL_SECONDS",
    "monitorMode": "MONITOR_MODE",
    "specificIPs": "SPECIFIC_IPS",
    "blacklistedIPs": "BLACKLISTED_IPS",
    "retentionHours": "RETENTION_HOURS",
    "reappearPolicy": "REAPPEAR_POLICY",
    "enabledIntegrations": "ENABLED_INTEGRATIONS",
    "integrationConfigs": "INTEGRATION_CONFIGS",
    "channelTimeoutSeconds": "CHANNEL_TIMEOUT_SECONDS",
    "logLevel": "LOG_LEVEL",
    "logFormat": "LOG_FORMAT",
}


def read_config_file(path: Union[str, Path]) -> dict[str, Any]:
    """
    Read a camelCase JSON config file into environment aliases.

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"failed to read config file: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"failed to parse config file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("config file must contain a JSON object")

    return {_FILE_KEYS[key]: value for key, value in data.items() if key in _FILE_KEYS}


def _section(cls: type[BaseSettings], values: dict[str, Any]) -> BaseSettings:
    aliases = {f.alias for f in cls.model_fields.values()}
    return cls(**{k: v for k, v in values.items() if k in aliases})


def load_settings(config_path: Optional[Union[str, Path]] = None) -> Settings:
    """
    Build settings from the environment, optionally overlaid by a JSON file.

    File values take precedence over environment variables.

    Raises:
        ConfigError: If the resulting configuration is invalid
    """
    values = read_config_file(config_path) if config_path else {}
    try:
        settings = Settings(
            api=_section(ApiSettings, values),
            monitor=_section(MonitorSettings, values),
            integrations=_section(IntegrationSettings, values),
            logging=_section(LoggingSettings, values),
        )
    except (ValidationError, ValueError) as e:
        raise ConfigError(f"invalid configuration: {e}") from e

    settings.validate_runtime()
    return settings

