"""
Configuration management for the ledger indexer service.

Loads configuration from YAML with ZERO defaults.
Every value must be explicitly specified or startup fails.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError


class ConfigurationError(Exception):
    """Raised when the configuration file is missing or invalid."""


class ServiceConfig(BaseModel):
    """Service identity configuration."""

    model_config = ConfigDict(extra="forbid")
    name: str
    version: str


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    model_config = ConfigDict(extra="forbid")
    host: str
    port: int
    log_level: str


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(extra="forbid")
    level: str
    directory: str


class LedgerConfig(BaseModel):
    """Ledger read API connection configuration."""

    model_config = ConfigDict(extra="forbid")
    base_url: str
    deployer: str
    sender: str
    timeout_seconds: int
    page_size: int = Field(gt=0)


class ContractsConfig(BaseModel):
    """Contract names deployed under the configured deployer."""

    model_config = ConfigDict(extra="forbid")
    registry: str
    vault: str
    task_board: str
    reputation: str
    launchpad: str


class CacheConfig(BaseModel):
    """Projection cache configuration."""

    model_config = ConfigDict(extra="forbid")
    ttl_seconds: int = Field(ge=0)


class LaunchpadConfig(BaseModel):
    """Bonding-curve parameters shared by every launched curve."""

    model_config = ConfigDict(extra="forbid")
    total_supply: int = Field(gt=0)
    virtual_stx: int = Field(gt=0)
    graduation_stx: int = Field(ge=0)
    fee_bps: int = Field(ge=0, le=500)


class Settings(BaseModel):
    """
    Root configuration container.

    All fields are REQUIRED. No defaults exist.
    Missing fields cause immediate startup failure.
    """

    model_config = ConfigDict(extra="forbid")
    service: ServiceConfig
    server: ServerConfig
    logging: LoggingConfig
    ledger: LedgerConfig
    contracts: ContractsConfig
    cache: CacheConfig
    launchpad: LaunchpadConfig


def get_config_path() -> Path:
    """Determine configuration file path."""
    env_path = os.environ.get("CONFIG_PATH")
    if env_path:
        return Path(env_path)
    return Path.cwd() / "config.yaml"


def load_settings(config_path: Path) -> Settings:
    """
    Load and validate settings from a YAML file.

    Raises:
        ConfigurationError: If the file cannot be read, is not a mapping,
            or fails validation.
    """
    try:
        raw = yaml.safe_load(config_path.read_text())
    except (OSError, yaml.YAMLError) as exc:
        msg = f"Cannot load config file {config_path}: {exc}"
        raise ConfigurationError(msg) from exc

    if not isinstance(raw, dict):
        msg = f"Invalid config file: {config_path}"
        raise ConfigurationError(msg)

    try:
        return Settings(**raw)
    except ValidationError as exc:
        msg = f"Invalid configuration in {config_path}: {exc}"
        raise ConfigurationError(msg) from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process."""
    return load_settings(get_config_path())


def clear_settings_cache() -> None:
    """Forget loaded settings. Used in testing."""
    get_settings.cache_clear()
