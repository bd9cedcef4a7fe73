"""Structured logging for the Tormenta RPG rules engine.

Engine modules log through structlog with key/value context (actor names,
item names, localization keys). Hosts embedding the engine call
``configure_logging`` once; the level defaults to the one in settings.
Workflows that touch one actor bind its identity for the duration of the
call, so every entry they emit names the actor.

Example:
    >>> from trpg_rules.core.logging import actor_context, get_logger
    >>> logger = get_logger(__name__)
    >>> with actor_context(actor_id="valeria", actor_name="Valeria"):
    ...     logger.info("Long rest completed", dhp=5)
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger

    from trpg_rules.core.config import Settings


_STDLIB_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def add_rules_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Tag entries with the engine name so hosts can filter them."""
    event_dict.setdefault("system", "trpg")
    return event_dict


def configure_logging(
    settings: Settings | None = None,
    *,
    json_format: bool = False,
    log_file: str | None = None,
) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        settings: Settings providing ``log_level`` and ``debug``; defaults
            to the cached settings. Debug mode forces ``DEBUG``.
        json_format: Render JSON lines instead of console output.
        log_file: Also write standard library records to this file.
    """
    if settings is None:
        from trpg_rules.core.config import get_settings

        settings = get_settings()

    level_name = "DEBUG" if settings.debug else settings.log_level
    log_level = getattr(logging, level_name, logging.INFO)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_rules_context,
        structlog.processors.StackInfoRenderer(),
    ]
    if json_format:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    # d20 and the host may log through the standard library
    logging.basicConfig(format=_STDLIB_FORMAT, level=log_level, stream=sys.stdout, force=True)
    if log_file:
        handler = logging.FileHandler(log_file)
        handler.setLevel(log_level)
        handler.setFormatter(logging.Formatter(_STDLIB_FORMAT))
        logging.getLogger().addHandler(handler)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structlog logger, usually named after the calling module."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables included in every later entry.

    Args:
        **kwargs: Key-value pairs to bind.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


@contextmanager
def actor_context(*, actor_id: str, actor_name: str) -> Iterator[None]:
    """Bind an actor's identity while a workflow runs.

    Values bound before entering are restored on exit, so nested
    workflows (a rest that re-prepares the actor) log correctly.

    Args:
        actor_id: Document id of the actor.
        actor_name: Display name of the actor.
    """
    with structlog.contextvars.bound_contextvars(actor_id=actor_id, actor_name=actor_name):
        yield


__all__ = [
    "add_rules_context",
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "actor_context",
]
