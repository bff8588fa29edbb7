"""
Rich console logging with Discord server and broadcaster prefixes.

``get_logger(__name__)`` returns a ContextLogger; every line it writes is
prefixed with ``[T:<server>][B:<broadcaster>]`` taken from the current
request context, when those are set.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from twitch_notifier.core.config.settings import settings

from .context import get_current_broadcaster_context, get_current_tenant_context

_PACKAGE_PREFIX = "twitch_notifier."

_console = Console(
    theme=Theme(
        {
            "info": "cyan",
            "warning": "yellow",
            "error": "bold red",
            "debug": "dim white",
        }
    )
)


class CompactFormatter(logging.Formatter):
    """Keeps the last two parts of package logger names: ``webhooks.dispatcher``."""

    def format(self, record):
        if record.name.startswith(_PACKAGE_PREFIX):
            record.name = ".".join(record.name.split(".")[-2:])
        return super().format(record)


class ContextLogger:
    """
    Thin wrapper over ``logging.Logger`` that adds the context prefix.

    The context is read on every call, so a logger created at import time
    still picks up the server and broadcaster of the task that uses it.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    @staticmethod
    def _prefix() -> str:
        prefix = ""
        tenant_id = get_current_tenant_context()
        broadcaster_id = get_current_broadcaster_context()
        if tenant_id:
            prefix += f"[T:{tenant_id}]"
        if broadcaster_id:
            prefix += f"[B:{broadcaster_id}]"
        return prefix

    def _format_message(self, message: str) -> str:
        prefix = self._prefix()
        return f"{prefix} {message}" if prefix else message

    def debug(self, message: str, *args, **kwargs) -> None:
        self.logger.debug(self._format_message(message), *args, **kwargs)

    def info(self, message: str, *args, **kwargs) -> None:
        self.logger.info(self._format_message(message), *args, **kwargs)

    def warning(self, message: str, *args, **kwargs) -> None:
        self.logger.warning(self._format_message(message), *args, **kwargs)

    def error(self, message: str, *args, **kwargs) -> None:
        self.logger.error(self._format_message(message), *args, **kwargs)

    def exception(self, message: str, *args, **kwargs) -> None:
        self.logger.exception(self._format_message(message), *args, **kwargs)


def setup_logging(
    *,
    level: str = "INFO",
    log_dir: str | None = None,
) -> None:
    """
    Configure the root logger.

    Args:
        level: DEBUG, INFO, WARNING or ERROR; anything else means INFO
        log_dir: When given, also write ``twitch_notifier_YYYYMMDD.log`` there
    """
    level = level.upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        level = "INFO"

    rich_handler = RichHandler(
        console=_console,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
        show_time=True,
        show_level=True,
        markup=False,
    )
    rich_handler.setFormatter(CompactFormatter("[%(name)s] %(message)s"))
    handlers: list[logging.Handler] = [rich_handler]

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        logfile = os.path.join(log_dir, f"twitch_notifier_{datetime.now():%Y%m%d}.log")
        file_handler = logging.FileHandler(logfile, encoding="utf-8")
        file_handler.setFormatter(
            CompactFormatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    logging.getLogger("twitch_notifier.logging").info(
        f"Logging initialized ({level}, file: {logfile if log_dir else 'off'})"
    )


def setup_app_logging() -> None:
    """Configure logging from settings; DEV also logs to files under LOG_DIR."""
    setup_logging(
        level=settings.log_level,
        log_dir=settings.log_dir if settings.is_development else None,
    )


def get_logger(name: str) -> ContextLogger:
    return ContextLogger(logging.getLogger(name))


def get_app_logger() -> ContextLogger:
    """Logger for startup, shutdown and other app-level events."""
    return get_logger("twitch_notifier.app")
