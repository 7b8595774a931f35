"""
Logging setup for the ledger.

structlog renders through the standard library so aiosqlite, httpx and
tenacity records end up in the same stream. Everything goes to stderr:
the CLI keeps stdout for its JSON results.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from ranch_inventory.config.settings import get_settings

QUIET_LOGGERS = ("httpx", "httpcore", "aiosqlite")


def stringify_decimals(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Render Decimal quantities and costs exactly."""
    for key, value in event_dict.items():
        if isinstance(value, Decimal):
            event_dict[key] = str(value)
    return event_dict


def add_service_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    settings = get_settings()
    event_dict.setdefault("service", settings.app_name)
    event_dict.setdefault("version", settings.app_version)
    event_dict.setdefault("environment", settings.environment)
    return event_dict


def build_processors(json_output: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        stringify_decimals,
        add_service_context,
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return processors


def configure_logging(json_output: bool | None = None) -> None:
    """
    Configure structlog and the root logger.

    Args:
        json_output: Force JSON (True) or console (False) rendering.
            Defaults to console in development and JSON elsewhere.
    """
    settings = get_settings()
    if json_output is None:
        json_output = settings.environment != "development"

    structlog.configure(
        processors=build_processors(json_output),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, settings.log_level),
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """
    Attach fields to every log event emitted inside the block.

    Usage:
        with log_context(command="move", user_id="maria"):
            await ledger.apply_movement(...)
    """
    with structlog.contextvars.bound_contextvars(**fields):
        yield


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
