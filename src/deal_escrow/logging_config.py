"""Structured logging configuration using structlog.

JSON lines in staging and production, colored console output in development.
Entries made while serving a request carry the request_id bound by
RequestIDMiddleware; entries about one deal carry its deal_id.

Usage:
    from deal_escrow.logging_config import setup_logging, get_deal_logger
    setup_logging(log_level="INFO", json_logs=True)
    get_deal_logger(0, caller=buyer).info("deal.payment_received", amount=10**18)
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

# Largest integer a JavaScript JSON reader represents exactly.
MAX_SAFE_JSON_INT = 2**53 - 1

_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "httpx")


def stringify_wei_amounts(
    logger: Any, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """Render integers too large for JSON consumers as decimal strings."""
    for key, value in event_dict.items():
        if isinstance(value, int) and not isinstance(value, bool) and abs(value) > MAX_SAFE_JSON_INT:
            event_dict[key] = str(value)
    return event_dict


def setup_logging(log_level: str = "DEBUG", json_logs: bool = False) -> None:
    """Route structlog and stdlib logging through one stdout handler.

    Args:
        log_level: Root level name (DEBUG, INFO, WARNING, ...).
        json_logs: JSON lines when True, colored console otherwise.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_logs:
        shared_processors.append(stringify_wei_amounts)
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.DEBUG))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def get_deal_logger(deal_id: int, **context: Any) -> structlog.stdlib.BoundLogger:
    """Logger bound to one deal, plus any extra context such as the caller."""
    return structlog.get_logger("deal_escrow.deal").bind(deal_id=deal_id, **context)
