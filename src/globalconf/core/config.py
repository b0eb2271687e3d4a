"""
Configuration schema and loading for globalconf.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class DatabaseSettings(BaseModel):
    """Where the intent, state and worker tables are persisted.

    Example YAML:
        database:
          url: sqlite:///./state/globalconf.db
    """

    model_config = {"frozen": True}

    url: str = Field(
        default="sqlite:///./state/globalconf.db",
        description="SQLAlchemy connection URL",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if "://" not in v:
            raise ValueError(f"database url must be a SQLAlchemy URL (dialect://...), got {v!r}")
        return v


class VersionSettings(BaseModel):
    """Inputs to the control-plane build signature (northd_internal_version).

    Any change here makes the next full run rewrite the signature and report
    internal_version_changed.
    """

    model_config = {"frozen": True}

    package_version: str = Field(default="24.03.90", description="Control plane package version")
    schema_version: str = Field(default="20.33.0", description="State store schema version")
    action_count: int = Field(default=53, ge=0, description="Number of logical actions understood")
    minor_version: int = Field(default=3, ge=0, description="Internal minor version")


class LoggingSettings(BaseModel):
    """Log output shape. CLI flags override these."""

    model_config = {"frozen": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    json_output: bool = Field(default=False, description="Emit JSON lines instead of console output")


class GlobalConfSettings(BaseModel):
    """Top-level settings.

    Example YAML:
        database:
          url: sqlite:///./state/globalconf.db
        version:
          package_version: "24.03.90"
        logging:
          level: DEBUG
    """

    model_config = {"frozen": True}

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    version: VersionSettings = Field(default_factory=VersionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_settings(config_path: Path) -> GlobalConfSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (GLOBALCONF_*) - highest priority
    2. Config file
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: GLOBALCONF_DATABASE__URL for nested keys.

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="GLOBALCONF",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; Pydantic fields are lowercase
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {
        k.lower(): _lowercase_keys(v) for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys
    }

    return GlobalConfSettings(**raw_config)


def _lowercase_keys(value: object) -> object:
    """Recursively lowercase mapping keys (env overrides arrive uppercased)."""
    if isinstance(value, dict):
        return {str(k).lower(): _lowercase_keys(v) for k, v in value.items()}
    return value
