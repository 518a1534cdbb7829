# src/conduit/core/config.py
"""
Configuration schema and loading for conduit.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field


class LoggingSettings(BaseModel):
    """Log output configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Root log level",
    )
    json_output: bool = Field(
        default=False,
        description="Emit JSON lines instead of human-readable console output",
    )


class ConcurrencySettings(BaseModel):
    """Thread pool configuration for task adapters."""

    model_config = {"frozen": True, "extra": "forbid"}

    max_workers: int = Field(
        default=4,
        gt=0,
        description="Maximum tasks running at once on a TaskPool",
    )


class ConduitSettings(BaseModel):
    """Top-level settings.

    Example YAML:
        logging:
          level: DEBUG
          json_output: true
        concurrency:
          max_workers: 16
    """

    model_config = {"frozen": True}

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    concurrency: ConcurrencySettings = Field(default_factory=ConcurrencySettings)


def _lowercase_keys(value: object) -> object:
    if isinstance(value, dict):
        return {str(k).lower(): _lowercase_keys(v) for k, v in value.items()}
    return value


def load_settings(config_path: Path) -> ConduitSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (CONDUIT_*) - highest priority
    2. Config file
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: CONDUIT_LOGGING__LEVEL for nested keys.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated ConduitSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="CONDUIT",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; Pydantic fields are lowercase.
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): _lowercase_keys(v) for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}

    return ConduitSettings(**raw_config)
