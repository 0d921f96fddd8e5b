"""
Engine configuration.

The configuration file is optional: every field has a default, and a missing
file yields the defaults.
"""
import os
import sys
import logging
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from plantscope.errors import ConfigError

log = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PLANTSCOPE_CONFIG"

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LoggingConfig(BaseModel):
    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LEVELS:
            raise ValueError(f"Unknown log level {v}, expected one of {', '.join(_LEVELS)}")
        return level


class FoldingConfig(BaseModel):
    auto_fold_enabled: bool = True
    auto_fold_threshold: int = Field(default=10, ge=0, description="Fold a type once it has more nodes than this")


class HopConfig(BaseModel):
    max_via_names: int = Field(default=3, ge=1, description="Hidden node names listed in a hop label")


class DisplayConfig(BaseModel):
    metric_decimals: int = Field(default=1, ge=0, le=6)


class EngineConfig(BaseModel):
    logging: LoggingConfig = LoggingConfig()
    folding: FoldingConfig = FoldingConfig()
    hops: HopConfig = HopConfig()
    display: DisplayConfig = DisplayConfig()


def resolve_config_path(cli_path: Optional[str] = None) -> Path:
    """
    Resolve config path with the following precedence:
    1) explicit path argument
    2) ENV: PLANTSCOPE_CONFIG=/path/to/config.yaml
    3) Default: <project_root>/config.yaml  (parent of the 'plantscope' package dir)
    """
    if cli_path:
        return Path(cli_path).expanduser().resolve()

    env = os.getenv(CONFIG_ENV_VAR)
    if env:
        return Path(env).expanduser().resolve()

    return Path(__file__).resolve().parents[1] / "config.yaml"


def load_config(path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """
    Load engine configuration from a YAML file.

    Args:
        path: Config file path; resolved with ``resolve_config_path`` when None

    Returns:
        EngineConfig (defaults when the file does not exist)

    Raises:
        ConfigError: If the file cannot be read, is not valid YAML or does not match the schema
    """
    config_path = resolve_config_path(str(path) if path else None)

    if not config_path.exists():
        log.info(f"No configuration file at {config_path}, using defaults")
        return EngineConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration in {config_path} must be a mapping")

    try:
        config = EngineConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e

    log.info(f"Configuration loaded from {config_path}")
    return config


def configure_logging(log_config: LoggingConfig) -> None:
    """Configure root and package loggers from config settings."""
    root_logger = logging.getLogger()
    log_level = getattr(logging, log_config.level.upper())
    root_logger.setLevel(log_level)

    if not root_logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(logging.Formatter(log_config.format))
        root_logger.addHandler(console_handler)

    logging.getLogger("plantscope").setLevel(log_level)
