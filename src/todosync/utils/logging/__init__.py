"""
Structured logging configuration for todosync

Provides console or JSON logging with contextual fields.

Usage:
    from todosync.utils.logging import setup_logging, ContextLogger

    # Setup logging (call once at application startup)
    setup_logging(level="INFO", log_file="logs/todosync.log")

    # Bind replica names to every message
    logger = ContextLogger(__name__, side_a="local", side_b="deployed")
    logger.info("Listing replicas")
"""

from .config import configure_from_env, setup_logging
from .formatters import ConsoleFormatter, JSONFormatter
from .handlers import ContextLogger

__all__ = [
    "setup_logging",
    "configure_from_env",
    "JSONFormatter",
    "ConsoleFormatter",
    "ContextLogger",
]
