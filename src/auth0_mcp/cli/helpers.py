"""Shared CLI helpers: config loading and logger setup."""

from __future__ import annotations

__all__ = [
    "load_config_or_exit",
    "setup_cli_logging",
    "split_patterns",
]

import click

from auth0_mcp.config import AppConfig, get_config_path
from auth0_mcp.telemetry.system.system_logger import (
    configure_system_logger_file,
    set_system_log_level,
)


def load_config_or_exit() -> AppConfig:
    """Load config.json, falling back to defaults when it does not exist.

    Raises:
        click.ClickException: If the file exists but is invalid.
    """
    config_path = get_config_path()
    try:
        return AppConfig.load_or_default(config_path)
    except (OSError, ValueError) as e:
        raise click.ClickException(f"Failed to load configuration: {e}") from e


def setup_cli_logging(config: AppConfig) -> None:
    """Apply the configured log level and attach the JSONL file handler."""
    set_system_log_level(config.logging.log_level)
    configure_system_logger_file(config.system_log_path)


def split_patterns(value: str | None) -> list[str]:
    """Split a comma-separated option value, dropping blanks."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]
