"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

import re

from eth_utils import to_checksum_address
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from carbonseal.utils.exceptions import ConfigurationError


ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")

# Dialects with an INSERT ... ON CONFLICT implementation in the repositories
SUPPORTED_DIALECTS = {"postgresql", "sqlite"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Blockchain
    rpc_url: str = Field(..., min_length=1)
    registry_address: str
    token_address: str
    oracle_address: str

    # Application
    environment: str = "production"
    log_level: str = "INFO"
    health_check_port: int = Field(
        default=8080, ge=1, le=65535, description="Health check HTTP server port"
    )

    # Indexer
    reconcile_interval_seconds: int = Field(
        default=300, ge=1, description="Backstop full reconciliation interval"
    )
    recent_readings_limit: int = Field(
        default=50, ge=1, description="Readings pulled per farm on full resync"
    )
    skip_missing_ids: bool = Field(
        default=True,
        description="Skip farm/credit ids that come back as not found",
    )
    event_poll_interval: int = Field(
        default=3, ge=1, description="Event log polling interval in seconds"
    )
    event_block_chunk: int = Field(
        default=2000, ge=1, description="Max blocks per get_logs request"
    )
    chain_executor_workers: int = Field(default=4, ge=1)
    shutdown_timeout_seconds: int = Field(default=10, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("registry_address", "token_address", "oracle_address")
    @classmethod
    def validate_contract_address(cls, v: str) -> str:
        """Validate contract address format and checksum it."""
        if not ADDRESS_PATTERN.match(v):
            raise ValueError(f"Invalid contract address: {v}")
        return to_checksum_address(v)

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Require a supported dialect with an async driver."""
        scheme = v.split("://", 1)[0]
        dialect, _, driver = scheme.partition("+")
        if not driver:
            raise ValueError(
                "DATABASE_URL must name an async driver, "
                "e.g. postgresql+asyncpg://"
            )
        if dialect not in SUPPORTED_DIALECTS:
            raise ValueError(
                f"Unsupported database dialect: {dialect} "
                f"(expected one of {sorted(SUPPORTED_DIALECTS)})"
            )
        return v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment name."""
        allowed = {"development", "production", "test"}
        if v not in allowed:
            raise ValueError(f"ENVIRONMENT must be one of {sorted(allowed)}")
        return v


def load_settings() -> Settings:
    """
    Load settings from the environment.

    Raises:
        ConfigurationError: If the environment is invalid
    """
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
