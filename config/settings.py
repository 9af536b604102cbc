"""
Configuration management for the events gateway.

This module provides centralized configuration loading and validation using Pydantic settings.
Shared secrets and ClickHouse credentials are loaded from environment variables or .env files.
The resulting Settings object is frozen: it is built once at startup and passed into every
component that needs it.
"""

import os
from enum import Enum
from pathlib import Path
from typing import Optional, List, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from errors.codes import ErrorCode


class Environment(str, Enum):
    """Supported deployment environments."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


def _detect_environment() -> Environment:
    """
    Detect the current environment from the ENVIRONMENT variable.

    Returns:
        Environment: The detected environment, defaults to DEVELOPMENT if not set.
    """
    env_value = os.environ.get("ENVIRONMENT", "development").lower().strip()
    try:
        return Environment(env_value)
    except ValueError:
        return Environment.DEVELOPMENT


def _get_env_files(environment: Environment) -> Tuple[str, ...]:
    """
    Get the list of .env files to load for the given environment.

    Files are loaded in order, with later files overriding earlier ones.
    The base .env file is loaded first, then the environment-specific file.
    """
    env_file_map = {
        Environment.DEVELOPMENT: ".env.development",
        Environment.STAGING: ".env.staging",
        Environment.PRODUCTION: ".env.production",
    }
    env_specific_file = env_file_map.get(environment, ".env.development")
    return (".env", env_specific_file)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The two ingestion secrets and the ClickHouse credentials are required.
    The application refuses to start if any of them is missing or empty.
    Secrets are compared byte-for-byte, so they are never stripped or
    otherwise normalized here.
    """

    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Deployment environment (development, staging, production)"
    )

    # Ingestion secrets
    embedded_token: str = Field(
        ...,
        description="Shared secret expected in the 'emitter' header of /api/data"
    )
    gps_push_token: str = Field(
        ...,
        description="Shared secret expected in the path of /api/gps/{bucket}/{token}"
    )

    # ClickHouse Configuration
    clickhouse_url: str = Field(
        default="http://localhost:8123/",
        description="ClickHouse HTTP interface URL"
    )
    clickhouse_user: str = Field(
        ...,
        description="ClickHouse user sent in X-ClickHouse-User"
    )
    clickhouse_password: str = Field(
        ...,
        description="ClickHouse password sent in X-ClickHouse-Key"
    )
    clickhouse_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Timeout applied to every ClickHouse request"
    )

    # Dashboard Configuration
    humidity_bucket: str = Field(
        default="humidity-laundry-room",
        description="Bucket whose humidity readings feed the dashboard"
    )
    dashboard_partial_results: bool = Field(
        default=False,
        description="Return null for failed dashboard queries instead of failing the request"
    )

    # Observability Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    otel_endpoint: Optional[str] = Field(
        default=None,
        description="OTLP/HTTP traces endpoint; falls back to the OTEL_EXPORTER_* variables"
    )
    otel_service_name: str = Field(
        default="events-service",
        description="Service name for OpenTelemetry traces"
    )
    otel_export_enabled: bool = Field(
        default=True,
        description="Export spans to the OTLP collector"
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, ge=1, le=65535, description="Bind port")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @field_validator("embedded_token", "gps_push_token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        """Validate that a shared secret is present; the value is kept verbatim."""
        if not v:
            raise ValueError("token cannot be empty")
        return v

    @field_validator("clickhouse_user", "clickhouse_password", "humidity_bucket")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("value cannot be empty")
        return v.strip()

    @field_validator("clickhouse_url")
    @classmethod
    def validate_clickhouse_url(cls, v: str) -> str:
        """Validate that clickhouse_url is a valid HTTP/HTTPS URL."""
        v = v.strip()
        if not (v.startswith("http://") or v.startswith("https://")):
            raise ValueError("clickhouse_url must be a valid HTTP/HTTPS URL")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.strip().upper()
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(valid_levels))}")
        return v


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid. Fatal at startup."""

    error_code = ErrorCode.CONFIGURATION_MISSING

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None,
                 invalid_fields: Optional[dict] = None):
        self.message = message
        self.missing_fields = missing_fields or []
        self.invalid_fields = invalid_fields or {}
        super().__init__(self.format_error_message())

    def format_error_message(self) -> str:
        """Format a descriptive error message listing all issues."""
        parts = [self.message]

        if self.missing_fields:
            parts.append(f"\nMissing required fields: {', '.join(self.missing_fields)}")

        if self.invalid_fields:
            invalid_parts = [f"  - {field}: {error}" for field, error in self.invalid_fields.items()]
            parts.append("\nInvalid field values:\n" + "\n".join(invalid_parts))

        return "".join(parts)


def create_settings_for_environment(environment: Optional[Environment] = None) -> Settings:
    """
    Factory function to create Settings for a specific environment.

    This function detects the environment from the ENVIRONMENT variable (if not provided)
    and loads the appropriate environment-specific .env file.

    Args:
        environment: Optional environment override. If not provided, detected from
                    ENVIRONMENT variable.

    Returns:
        Settings: Validated settings for the specified environment.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    if environment is None:
        environment = _detect_environment()

    env_files = tuple(f for f in _get_env_files(environment) if Path(f).exists())

    try:
        return Settings(_env_file=env_files or None)
    except Exception as e:
        missing_fields = []
        invalid_fields = {}

        # Extract field-level errors from Pydantic ValidationError
        if hasattr(e, 'errors'):
            for error in e.errors():
                field_name = '.'.join(str(loc) for loc in error.get('loc', []))
                error_type = error.get('type', '')
                error_msg = error.get('msg', str(error))

                if error_type == 'missing':
                    missing_fields.append(field_name)
                else:
                    invalid_fields[field_name] = error_msg

        raise ConfigurationError(
            f"Failed to load configuration for environment '{environment.value}'",
            missing_fields=missing_fields,
            invalid_fields=invalid_fields
        ) from e


_settings_cache: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Settings are loaded once and cached for subsequent calls.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    global _settings_cache

    if _settings_cache is None:
        _settings_cache = create_settings_for_environment()

    return _settings_cache


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    This is primarily useful for testing to allow reloading settings
    with different environment variables.
    """
    global _settings_cache
    _settings_cache = None

