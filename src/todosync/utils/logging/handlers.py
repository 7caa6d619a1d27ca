"""
Logger wrapper that carries sync context.

ContextLogger is what the reconciler receives by injection: it stamps
every message with the replica names (and anything else bound to it) so the
reconciler never touches process-wide logging state.
"""

import logging
from typing import Any


class ContextLogger:
    """
    Logger wrapper that adds contextual information to all log messages

    Usage:
        logger = ContextLogger("todosync.reconciler", side_a="local", side_b="deployed")
        logger.info("Creating record", record_id="todo-1")
        # Output carries side_a, side_b and record_id
    """

    def __init__(self, name: str | logging.Logger, **context):
        """
        Initialize context logger

        Args:
            name: Logger name, or an existing logger to wrap
            **context: Contextual key-value pairs to include in all logs
        """
        self.logger = name if isinstance(name, logging.Logger) else logging.getLogger(name)
        self.context = context

    def _log(self, level: int, msg: str, *args, exc_info=None, **kwargs) -> None:
        extra = {**self.context, **kwargs}
        self.logger.log(level, msg, *args, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, exc_info=None, **kwargs) -> None:
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **kwargs)

    def bind(self, **context) -> "ContextLogger":
        """
        Return a new logger with extra context layered on top of this one

        Args:
            **context: Additional key-value pairs
        """
        return ContextLogger(self.logger, **{**self.context, **context})

    def get_context(self) -> dict[str, Any]:
        return self.context.copy()
