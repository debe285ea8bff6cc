"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Supports two modes:
    - DEVELOPMENT: Uses the in-memory mock order API (no backend needed)
    - PRODUCTION: Talks to the restaurant order API over HTTP

The ENV_MODE variable controls which order API client is instantiated,
enabling seamless switching between local testing and a live kitchen.

Usage:
    from staff_console.core.config import get_settings

    settings = get_settings()
    if settings.is_development:
        # Use mock order API
    else:
        # Use the HTTP order API

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
import sys
from enum import Enum
from typing import Optional
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local testing with the mock order API
        PRODUCTION: Live environment against the real order API
        STAGING: Pre-production testing against a staging order API
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class ExportBackend(str, Enum):
    """Where bulk print/CSV exports are executed."""
    INLINE = "inline"
    CELERY = "celery"


class Settings(BaseSettings):
    """
    Staff console settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    The API token should NEVER be committed to version control.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        # Order API
        order_api_base_url: Base URL of the restaurant order API
        order_api_token: Bearer token for staff endpoints

        # Console behaviour
        staff_id: Staff member operating this console
        refresh_interval_seconds: Order snapshot polling interval
        notification_poll_seconds: Notification polling interval

        # Alerting
        urgency_badge_minutes: Wait time before the inline badge appears
        wait_alert_minutes: One-shot wait time alert thresholds
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="Staff Order Console",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=8002,
        description="API server port"
    )

    # ==========================================================================
    # ORDER API
    # ==========================================================================

    order_api_base_url: Optional[str] = Field(
        default=None,
        description="Base URL of the order API (e.g. http://localhost:8081/api)"
    )
    order_api_token: Optional[str] = Field(
        default=None,
        description="Bearer token for the staff endpoints"
    )
    order_api_timeout_seconds: float = Field(
        default=15.0,
        description="HTTP timeout for order API calls"
    )
    mock_failure_rate: float = Field(
        default=0.05,
        description="Simulated failure rate of the mock order API"
    )
    mock_min_latency: float = Field(
        default=0.05,
        description="Minimum simulated latency of the mock order API (seconds)"
    )
    mock_max_latency: float = Field(
        default=0.25,
        description="Maximum simulated latency of the mock order API (seconds)"
    )

    # ==========================================================================
    # CONSOLE
    # ==========================================================================

    staff_id: Optional[str] = Field(
        default="staff-001",
        description="Staff member currently operating the console"
    )
    refresh_interval_seconds: float = Field(
        default=30.0,
        description="Order snapshot refresh interval"
    )
    clock_tick_seconds: float = Field(
        default=1.0,
        description="Display clock / cooking timer tick interval"
    )
    notification_poll_seconds: float = Field(
        default=30.0,
        description="Server notification polling interval"
    )
    notification_max_retries: int = Field(
        default=3,
        description="Retries after a failed notification fetch"
    )
    notification_retry_base_delay: float = Field(
        default=1.0,
        description="Base delay (seconds) for notification fetch backoff"
    )

    # ==========================================================================
    # ALERT THRESHOLDS
    # ==========================================================================

    urgency_badge_minutes: int = Field(
        default=20,
        description="Elapsed minutes before the inline urgency badge shows"
    )
    wait_alert_minutes: str = Field(
        default="30,45,60",
        description="Comma-separated elapsed minutes that raise one-shot alerts"
    )
    timer_near_complete_seconds: int = Field(
        default=300,
        description="Remaining seconds that trigger the near-complete timer alert"
    )

    # ==========================================================================
    # ALERT CHANNELS
    # ==========================================================================

    sound_enabled: bool = Field(default=True, description="Play audible cues")
    vibration_enabled: bool = Field(default=True, description="Vibrate the device")
    desktop_enabled: bool = Field(default=True, description="Show desktop alerts")
    desktop_auto_dismiss_seconds: float = Field(
        default=5.0,
        description="Auto-dismiss delay for non-urgent desktop alerts"
    )
    sound_volume: float = Field(
        default=0.7,
        description="Volume for audible cues (0.0-1.0)"
    )

    # ==========================================================================
    # BULK OPERATIONS
    # ==========================================================================

    bulk_throttle_seconds: float = Field(
        default=0.0,
        description="Pause between per-order API calls in bulk actions"
    )

    # ==========================================================================
    # EXPORT / CELERY
    # ==========================================================================

    export_backend: ExportBackend = Field(
        default=ExportBackend.INLINE,
        description="Run print/CSV exports inline or on the Celery worker"
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (Celery broker and result backend)"
    )
    data_directory: str = Field(
        default="data",
        description="Directory for exported CSV files and printed tickets"
    )
    export_lock_timeout: int = Field(
        default=30,
        description="Seconds to wait for the export file lock"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    @field_validator("mock_failure_rate", "sound_volume")
    @classmethod
    def validate_ratio(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("Value must be between 0.0 and 1.0")
        return v

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env_mode == EnvironmentMode.PRODUCTION

    @property
    def use_real_services(self) -> bool:
        """Check if the real order API should be used."""
        return self.env_mode in (EnvironmentMode.PRODUCTION, EnvironmentMode.STAGING)

    @property
    def wait_alert_minutes_list(self) -> list[int]:
        """Get wait alert thresholds as a sorted list of minutes."""
        return sorted(int(m.strip()) for m in self.wait_alert_minutes.split(",") if m.strip())

    # ==========================================================================
    # VALIDATION METHODS
    # ==========================================================================

    def validate_production_config(self) -> list[str]:
        """
        Validate that all required production settings are configured.

        Returns:
            List of missing configuration keys (empty if all present)
        """
        missing = []

        if self.use_real_services:
            if not self.order_api_base_url:
                missing.append("ORDER_API_BASE_URL")
            if not self.order_api_token:
                missing.append("ORDER_API_TOKEN")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are loaded only once and stay
    consistent across the console lifecycle.

    Returns:
        Settings: Configured application settings

    Example:
        >>> settings = get_settings()
        >>> print(settings.refresh_interval_seconds)
        30.0
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured package logger
    """
    settings = get_settings()

    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-32s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("celery").setLevel(logging.WARNING)

    return logging.getLogger("staff_console")


def get_logger(name: str) -> logging.Logger:
    """
    Get a named logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
