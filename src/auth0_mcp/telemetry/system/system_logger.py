"""System logger for operational events.

This module provides a singleton system logger for everything the broker does
that an operator may need to see: device flow progress, refresh outcomes,
keychain failures, authorization denials.

Logging strategy:
- Console (stderr): INFO and above, DEBUG when AUTH0_MCP_DEBUG=true.
  stdout is never used because the stdio MCP transport owns it.
- File (system.jsonl): WARNING and above, added once the log directory from
  config is known.

Messages are dicts with at least "event" and "message" keys. Raw tokens must
never be placed in a message; use redact_token() instead.
"""

from __future__ import annotations

__all__ = [
    "ConsoleFormatter",
    "configure_system_logger_file",
    "get_system_logger",
    "is_debug_enabled",
    "set_system_log_level",
]

import logging
import os
import sys
from pathlib import Path

from auth0_mcp.constants import APP_NAME, DEBUG_ENV_VAR
from auth0_mcp.utils.logging.iso_formatter import ISO8601Formatter


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for console output.

    Extracts 'message' or 'event' field from dict messages for cleaner stderr output.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for human-readable console output.

        Args:
            record: The log record to format.

        Returns:
            str: Formatted log message with level prefix.
        """
        if isinstance(record.msg, dict):
            msg = record.msg.get("message") or record.msg.get("event", "")
            return f"{record.levelname}: {msg}"
        return f"{record.levelname}: {record.getMessage()}"


# Module-level singleton logger
_system_logger: logging.Logger | None = None
_file_handler_configured: bool = False


def is_debug_enabled() -> bool:
    """Return True when the debug environment switch is set to "true"."""
    return os.environ.get(DEBUG_ENV_VAR, "").strip().lower() == "true"


def get_system_logger() -> logging.Logger:
    """Get the singleton system logger instance.

    Creates the logger on first call with a stderr handler only.
    File handler is added later via configure_system_logger_file().

    Returns:
        logging.Logger: Configured system logger instance.

    Example:
        >>> logger = get_system_logger()
        >>> logger.warning({"event": "keychain_write_failed", "slot": "AUTH0_TOKEN"})
    """
    global _system_logger

    if _system_logger is not None:
        return _system_logger

    level = logging.DEBUG if is_debug_enabled() else logging.INFO

    _system_logger = logging.getLogger(f"{APP_NAME}.system")
    _system_logger.setLevel(level)
    _system_logger.propagate = False

    # Close and remove any existing handlers to avoid duplicates
    for handler in _system_logger.handlers:
        handler.close()
    _system_logger.handlers.clear()

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(level)
    stderr_handler.setFormatter(ConsoleFormatter())
    _system_logger.addHandler(stderr_handler)

    return _system_logger


def set_system_log_level(level: str) -> None:
    """Apply the configured log level to the logger and its console handler.

    The debug environment switch wins over the configured level.

    Args:
        level: "DEBUG" or "INFO".
    """
    logger = get_system_logger()
    resolved = logging.DEBUG if is_debug_enabled() else logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO

    logger.setLevel(resolved)
    for handler in logger.handlers:
        if not isinstance(handler, logging.FileHandler):
            handler.setLevel(resolved)


def configure_system_logger_file(log_path: Path) -> None:
    """Add the JSONL file handler to the system logger.

    Should be called once after config is loaded. The file handler logs
    WARNING, ERROR, CRITICAL only.

    Args:
        log_path: Path to the system log file (see AppConfig.system_log_path).
    """
    global _file_handler_configured

    if _file_handler_configured:
        return

    logger = get_system_logger()

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        if sys.platform != "win32":
            try:
                log_path.parent.chmod(0o700)
            except OSError:
                pass  # Permission changes might fail on some systems
    except OSError as e:
        # stderr still works without the file
        logger.warning(
            {
                "event": "log_dir_unavailable",
                "message": f"Could not create log directory {log_path.parent}: {e}",
            }
        )
        return

    file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    file_handler.setLevel(logging.WARNING)
    file_handler.setFormatter(ISO8601Formatter())
    logger.addHandler(file_handler)

    _file_handler_configured = True
