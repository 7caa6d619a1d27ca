"""
Process-wide logging setup for the todosync CLI and scheduler.

Library code (the reconciler, accessors) never calls these functions; it
logs through the logger it was given.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path

from .formatters import ConsoleFormatter, JSONFormatter

# Third-party loggers that are chatty at DEBUG/INFO during a sync
NOISY_LOGGERS = ("aiohttp", "apscheduler", "urllib3", "opentelemetry")

FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _file_handler(log_file: str, max_bytes: int, backup_count: int) -> logging.Handler:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    console_output: bool = True,
    json_format: bool = False,
    app_name: str = "todosync",
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """
    Replace the root logger's handlers

    Args:
        level: Log level name; unknown names fall back to INFO
        log_file: Rotating log file path (disabled when None)
        console_output: Log to stderr
        json_format: JSON lines on every handler instead of text
        app_name: ``app`` field in JSON output
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files to keep
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(numeric_level)

    handlers: list[logging.Handler] = []
    if console_output:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(
            JSONFormatter(app_name=app_name) if json_format else ConsoleFormatter()
        )
        handlers.append(console)

    if log_file:
        file_handler = _file_handler(log_file, max_bytes, backup_count)
        file_handler.setFormatter(
            JSONFormatter(app_name=app_name)
            if json_format
            else logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(numeric_level)
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    logging.getLogger(__name__).debug(
        f"Logging configured: level={logging.getLevelName(numeric_level)}, "
        f"file={log_file or '-'}, json={json_format}"
    )


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def configure_from_env(
    level: str | None = None,
    log_file: str | None = None,
    json_format: bool | None = None,
) -> None:
    """
    Configure logging from command-line values with environment fallbacks

    Environment variables:
        LOG_LEVEL: Log level (default: INFO)
        LOG_FILE: Log file path (default: none)
        LOG_JSON: JSON output (default: false)
        LOG_CONSOLE: Console output (default: true)
    """
    setup_logging(
        level=level or os.getenv("LOG_LEVEL", "INFO"),
        log_file=log_file or os.getenv("LOG_FILE"),
        console_output=_env_flag("LOG_CONSOLE", True),
        json_format=json_format if json_format is not None else _env_flag("LOG_JSON", False),
    )
