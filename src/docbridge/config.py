"""Configuration management for docbridge using Pydantic.

This module provides type-safe configuration models for the source catalog,
the target document store, the import engine, retries and logging.
"""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DUPLICATE_NAME_ERROR_CODE = "DuplicateNameLimitExceeded"


class SourceConfig(BaseModel):
    """Configuration for the source catalog database."""

    database_url: str = Field(..., description="SQLAlchemy URL of the source catalog")
    echo: bool = Field(default=False, description="Log SQL statements")
    pool_size: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Number of connections to maintain in the pool (non-SQLite only)",
    )
    max_overflow: int = Field(
        default=10,
        ge=0,
        le=100,
        description="Maximum number of connections to create beyond pool_size",
    )
    pool_timeout: int = Field(
        default=30,
        ge=1,
        le=300,
        description="Timeout in seconds for getting a connection from the pool",
    )
    pool_recycle: int = Field(
        default=3600,
        ge=60,
        le=28800,
        description="Recycle connections after this many seconds",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Accept full URLs or bare SQLite file paths."""
        if not v or v.strip() == "":
            raise ValueError("Database URL cannot be empty")
        if "://" not in v:
            return f"sqlite:///{v}"
        return v


class TargetConfig(BaseModel):
    """Configuration for the target document store."""

    url: str = Field(..., description="Document store API base URL")
    token: str = Field(..., description="API authentication token")
    site_url: str = Field(..., description="Target site location recorded on imported items")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    timeout: int = Field(default=120, ge=1, le=1200, description="Request timeout in seconds")

    @field_validator("url", "site_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate and normalize URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        """Validate token is not empty."""
        if not v or v.strip() == "":
            raise ValueError("Token cannot be empty")
        return v


class ImportConfig(BaseModel):
    """Import engine tuning."""

    buffer_size: int = Field(
        default=1000, ge=1, description="Pending items fetched per range (one worker each)"
    )
    block_size: int = Field(
        default=50, ge=1, le=1000, description="Documents committed per store call"
    )
    max_to_process: int = Field(
        default=100000, ge=0, description="Cap on pending items processed in one run"
    )
    thread_count: int = Field(
        default=4, ge=1, le=64, description="Maximum range workers running concurrently"
    )
    duplicate_name_error_code: str = Field(
        default=DEFAULT_DUPLICATE_NAME_ERROR_CODE,
        description="Store error code that marks a retriable duplicate file name",
    )
    max_rename_attempts: int = Field(
        default=25,
        ge=1,
        le=1000,
        description="Commit attempts per block before duplicate-name retries give up",
    )
    shared_name_registry: bool = Field(
        default=False,
        description="Share one file-name registry across all workers (global uniqueness)",
    )

    @field_validator("duplicate_name_error_code", mode="before")
    @classmethod
    def coerce_error_code(cls, v: object) -> str:
        """Store error codes may be numeric in YAML; compare them as text."""
        return str(v)

    @model_validator(mode="after")
    def validate_block_fits_buffer(self) -> "ImportConfig":
        """A block larger than a range can never be filled."""
        if self.block_size > self.buffer_size:
            raise ValueError(
                f"block_size ({self.block_size}) must not exceed buffer_size ({self.buffer_size})"
            )
        return self


class RetryConfig(BaseModel):
    """Retry policy for individual document store calls."""

    attempts: int = Field(default=3, ge=1, le=10, description="Attempts per store call")
    backoff_min: float = Field(default=1.0, ge=0.0, le=60.0, description="Minimum backoff (s)")
    backoff_max: float = Field(default=30.0, ge=0.0, le=300.0, description="Maximum backoff (s)")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default="WARNING",
        description="Console log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    file_level: str = Field(
        default="DEBUG",
        description="File log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    format: str = Field(default="json", description="Log format (json or console)")
    file: str | None = Field(default="logs/import.log", description="Log file path")
    disable_progress: bool = Field(
        default=False, description="Disable the progress bar (useful for CI/logging)"
    )

    @field_validator("level", "file_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = ["json", "console"]
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Log format must be one of: {', '.join(valid_formats)}")
        return v_lower


class MigrationConfig(BaseSettings):
    """Main docbridge configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DOCBRIDGE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    source: SourceConfig = Field(..., description="Source catalog configuration")
    target: TargetConfig = Field(..., description="Target document store configuration")
    importer: ImportConfig = Field(
        default_factory=ImportConfig, description="Import engine configuration"
    )
    retry: RetryConfig = Field(default_factory=RetryConfig, description="Store retry policy")
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )


def load_config_from_yaml(config_path: str | Path) -> MigrationConfig:
    """Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        MigrationConfig: Loaded configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is empty or invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        config_data = yaml.safe_load(f)

    if not config_data:
        raise ValueError(f"Empty configuration file: {config_path}")

    config_data = _expand_env_vars(config_data)

    return MigrationConfig(**config_data)


def _expand_env_vars(data):
    """Recursively expand environment variables in config data.

    Supports ${VAR_NAME} syntax for whole-value substitution.
    """
    if isinstance(data, dict):
        return {k: _expand_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        if data.startswith("${") and data.endswith("}"):
            var_name = data[2:-1]
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(
                    f"Environment variable '{var_name}' not found. "
                    f"Please set it in your environment or .env file."
                )
            return env_value
        return data
    else:
        return data


def save_config_to_yaml(config: MigrationConfig, output_path: str | Path) -> None:
    """Save configuration to YAML file with the store token redacted.

    Args:
        config: Configuration to save
        output_path: Path to output YAML file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = config.model_dump()
    config_dict["target"]["token"] = "${DOCBRIDGE_TARGET_TOKEN}"

    with open(output_path, "w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)
