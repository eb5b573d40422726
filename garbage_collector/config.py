"""Configuration management for the leaked resource garbage collector.

This module handles loading and validating configuration from environment
variables with sensible defaults.
"""

from typing import Optional
from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for local development.
    In production, these should be set via environment variables
    or a .env file.
    """

    # Service Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="LOG_LEVEL"
    )
    environment: str = Field(
        default="development",
        description="Environment name (development, staging, production)",
        validation_alias=AliasChoices("ENVIRONMENT", "ENV")
    )

    # AWS Configuration
    aws_region: str = Field(
        default="us-east-1",
        description="Default AWS region",
        validation_alias=AliasChoices("AWS_REGION", "AWS_DEFAULT_REGION")
    )

    # CloudWatch Configuration
    cloudwatch_enabled: bool = Field(
        default=False,
        description="Enable CloudWatch logging",
        validation_alias="CLOUDWATCH_ENABLED"
    )
    cloudwatch_log_group: str = Field(
        default="/fleet/garbage-collector",
        description="CloudWatch log group name",
        validation_alias="CLOUDWATCH_LOG_GROUP"
    )
    cloudwatch_log_stream: Optional[str] = Field(
        default=None,
        description="CloudWatch log stream name (auto-generated if not set)",
        validation_alias="CLOUDWATCH_LOG_STREAM"
    )

    # Time-series store Configuration
    query_endpoint: str = Field(
        default="",
        description="Endpoint of the time-series store holding session snapshots",
        validation_alias=AliasChoices("GC_QUERY_ENDPOINT", "QUERY_ENDPOINT")
    )
    query_database: str = Field(
        default="",
        description="Database queried for session snapshots",
        validation_alias=AliasChoices("GC_QUERY_DATABASE", "QUERY_DATABASE")
    )
    query_max_attempts: int = Field(
        default=5,
        ge=1,
        description="Maximum attempts for a time-series query with transient failures",
        validation_alias="GC_QUERY_MAX_ATTEMPTS"
    )
    query_retry_base_delay_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Base delay for exponential backoff between query attempts",
        validation_alias="GC_QUERY_RETRY_BASE_DELAY_SECONDS"
    )
    query_retry_max_delay_seconds: float = Field(
        default=32.0,
        ge=0.0,
        description="Maximum delay between query attempts",
        validation_alias="GC_QUERY_RETRY_MAX_DELAY_SECONDS"
    )

    # Session service Configuration
    session_owner_id: Optional[str] = Field(
        default=None,
        description="Principal id that owns the test sessions created by the platform",
        validation_alias=AliasChoices("GC_SESSION_OWNER_ID", "SESSION_OWNER_ID")
    )
    session_owner_secret_name: str = Field(
        default="garbage-collector/session-owner-id",
        description="Secret holding the session owner principal id when not set directly",
        validation_alias="GC_SESSION_OWNER_SECRET_NAME"
    )

    # Remediation Configuration
    remediation_owner_team: str = Field(
        default="fleet-reliability",
        description="Team that owns the remediation experiment templates",
        validation_alias="GC_REMEDIATION_OWNER_TEAM"
    )
    session_cleanup_template_id: str = Field(
        default="GarbageCollector_TestSessionCleanup.Template.v1.json",
        description="Template id of the test session cleanup experiment",
        validation_alias="GC_SESSION_CLEANUP_TEMPLATE_ID"
    )
    resource_group_cleanup_template_id: str = Field(
        default="GarbageCollector_ResourceGroupCleanup.Template.v1.json",
        description="Template id of the resource group cleanup experiment",
        validation_alias="GC_RESOURCE_GROUP_CLEANUP_TEMPLATE_ID"
    )

    # Telemetry Configuration
    telemetry_batch_size: int = Field(
        default=20,
        ge=1,
        description="Number of resources logged per telemetry batch",
        validation_alias="GC_TELEMETRY_BATCH_SIZE"
    )

    # Scheduler Configuration
    scheduler_enabled: bool = Field(
        default=True,
        description="Run garbage collection on a fixed interval",
        validation_alias="GC_SCHEDULER_ENABLED"
    )
    collection_interval_minutes: int = Field(
        default=60,
        ge=1,
        description="Minutes between garbage collection runs",
        validation_alias="GC_COLLECTION_INTERVAL_MINUTES"
    )

    model_config = SettingsConfigDict(
        env_prefix="",  # No prefix for environment variables
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )


def get_settings() -> Settings:
    """
    Get application settings.

    Loads settings from environment variables and .env file.

    Returns:
        Settings instance with all configuration values
    """
    return Settings()


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def settings() -> Settings:
    """
    Get the global settings instance.

    Creates the settings instance on first call and caches it.

    Returns:
        Global Settings instance
    """
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings
