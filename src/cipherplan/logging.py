"""Structured logging configuration using structlog with async context propagation.

Session code binds ``computation_id`` through ``structlog.contextvars`` so every
event emitted while a computation is in flight carries it. Private input
fields never reach a renderer: ``redact_private_fields`` masks them in every
event dict before formatting.
"""

import logging
import os
from collections.abc import MutableMapping
from typing import Any

import structlog

#: Event keys that carry confidential user inputs (preferences and history).
PRIVATE_FIELDS: frozenset[str] = frozenset(
    {
        "desired_size",
        "slippage_tolerance_bps",
        "risk_appetite",
        "preferred_hold_time_sec",
        "privacy_priority",
        "recent_pnl",
        "win_rate_bps",
        "avg_hold_time_sec",
        "total_trades",
        "max_drawdown_bps",
        "client_secret_key",
    }
)

_REDACTED = "***"


def redact_private_fields(
    _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor masking confidential input values."""
    for key in PRIVATE_FIELDS.intersection(event_dict):
        event_dict[key] = _REDACTED
    return event_dict


#: Third-party loggers that are chatty at DEBUG and carry no session context.
_QUIET_LOGGERS = ("aiosqlite", "asyncio")


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=log_format != "plain")


def setup_logging(log_level: str = "INFO", log_format: str | None = None) -> None:
    """Route structlog and stdlib records through one redacting formatter.

    Uses structlog.contextvars for async context propagation (NOT threadlocal),
    so concurrent sessions keep their own ``computation_id`` binding.

    Args:
        log_level: Root level name; unknown names fall back to INFO.
        log_format: "json", "console" or "plain" (console without colour).
            Defaults to the LOG_FORMAT environment variable, then "console".
    """
    if log_format is None:
        log_format = os.environ.get("LOG_FORMAT", "console")

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        redact_private_fields,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format.lower()),
            ],
        )
    )

    level = logging.getLevelName(log_level.upper())
    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(level if isinstance(level, int) else logging.INFO)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(root_logger.level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
