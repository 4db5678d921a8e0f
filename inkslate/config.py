"""
Configuration module for InkSlate.

Provides centralized configuration for storage, trash retention and the
periodic expiry sweep.
"""

from datetime import timedelta
from enum import Enum
from typing import Any, Dict, Optional, Union, get_args, get_origin

from pydantic import BaseModel, Field, field_validator


class LogLevel(str, Enum):
    """Supported logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class SlateConfig(BaseModel):
    """Central configuration for the InkSlate data layer.

    Configuration Sources (in order of precedence):
        1. Programmatic settings (highest priority)
        2. Environment variables (SLATE_ prefix)
        3. Default values (lowest priority)

    Example:
        >>> config = SlateConfig(
        ...     database_url="sqlite:///notes.db",
        ...     trash_retention_days=30,
        ... )

        Loading from environment:

        >>> import os
        >>> os.environ['SLATE_TRASH_RETENTION_DAYS'] = '14'
        >>> config = SlateConfig.from_env()

    Environment Variables:
        - SLATE_APPLICATION_NAME
        - SLATE_DATABASE_URL
        - SLATE_TRASH_RETENTION_DAYS
        - SLATE_SWEEP_INTERVAL_HOURS
        - SLATE_SWEEP_ON_STARTUP
        - SLATE_LOG_LEVEL
    """

    # General settings
    application_name: str = Field("InkSlate", description="Name of the application")
    environment: str = Field(
        "production", description="Environment (development, staging, production)"
    )
    log_level: LogLevel = Field(LogLevel.INFO, description="Default logging level")

    # Storage settings
    database_url: str = Field(
        "sqlite:///inkslate.db", description="SQLAlchemy database URL"
    )
    echo_sql: bool = Field(False, description="Log every SQL statement")

    # Trash settings
    trash_retention_days: int = Field(
        30, description="Days a deleted record stays in the trash", gt=0
    )
    expiry_warning_days: int = Field(
        3, description="Days before expiry at which trash items are flagged", ge=0
    )
    sweep_interval_hours: int = Field(
        24, description="Hours between automatic expiry sweeps", gt=0
    )
    sweep_on_startup: bool = Field(
        True, description="Run an expiry sweep when the application starts"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is valid."""
        valid_environments = {"development", "staging", "production", "test"}
        if v.lower() not in valid_environments:
            raise ValueError(
                f"Environment must be one of: {', '.join(sorted(valid_environments))}"
            )
        return v.lower()

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Require a SQLAlchemy style URL."""
        if "://" not in v:
            raise ValueError(
                "Database URL must look like 'dialect://...', "
                "e.g. sqlite:///inkslate.db"
            )
        return v

    @property
    def retention_period(self) -> timedelta:
        return timedelta(days=self.trash_retention_days)

    @property
    def sweep_interval(self) -> timedelta:
        return timedelta(hours=self.sweep_interval_hours)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return self.model_dump(mode="json")

    @classmethod
    def from_env(cls, prefix: str = "SLATE_") -> "SlateConfig":
        """
        Load configuration from environment variables.

        Args:
            prefix: Prefix for environment variables

        Returns:
            Configuration instance
        """
        import os

        config_dict: Dict[str, Any] = {}

        for field_name, field_info in cls.model_fields.items():
            env_var = f"{prefix}{field_name.upper()}"
            if env_var in os.environ:
                value = os.environ[env_var]

                field_type = field_info.annotation

                # Handle Optional types
                if get_origin(field_type) is Union:
                    args = get_args(field_type)
                    field_type = next(
                        (arg for arg in args if arg is not type(None)), str
                    )

                try:
                    if field_type == bool:
                        config_dict[field_name] = value.lower() in (
                            "true",
                            "1",
                            "yes",
                            "on",
                        )
                    elif field_type == int:
                        config_dict[field_name] = int(value)
                    elif isinstance(field_type, type) and issubclass(field_type, Enum):
                        config_dict[field_name] = field_type(value.upper())
                    else:
                        config_dict[field_name] = value
                except (ValueError, TypeError):
                    # Let model validation report the bad value
                    config_dict[field_name] = value

        return cls.model_validate(config_dict)


# Process-wide default configuration
_config: Optional[SlateConfig] = None


def get_config() -> SlateConfig:
    """
    Get the default configuration instance.

    Returns:
        Configuration loaded from the environment on first use
    """
    global _config

    if _config is None:
        _config = SlateConfig.from_env()

    return _config


def set_config(config: SlateConfig) -> None:
    """
    Set the default configuration instance.

    Args:
        config: Configuration to set
    """
    global _config
    _config = config


def configure(**kwargs: Any) -> SlateConfig:
    """
    Configure InkSlate with keyword arguments.

    Args:
        **kwargs: Configuration parameters

    Returns:
        Updated configuration
    """
    global _config

    if _config is None:
        _config = SlateConfig(**kwargs)
    else:
        config_dict = _config.to_dict()
        config_dict.update(kwargs)
        _config = SlateConfig(**config_dict)

    return _config
