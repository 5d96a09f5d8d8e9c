"""
Structured Logging with Structlog.

The library only emits events through get_logger(); it never configures
logging on import. Host applications that have no structlog setup of their
own can call setup_logging() once at startup.

Events emitted by receipt_validator:
    apple_transaction_parsed (debug)       - transaction_id, product_id, environment
    apple_transaction_payload_rejected (warning) - payload_type
    apple_transaction_environment_overridden (info) - transaction_id, environment
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from receipt_validator.config import Settings, get_settings

LIBRARY_LOGGER_PREFIX = "receipt_validator"


def library_context(config: Settings) -> Processor:
    """Build a processor tagging this library's events with its name and version."""

    def add_library_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        if str(event_dict.get("logger", "")).startswith(LIBRARY_LOGGER_PREFIX):
            event_dict["library"] = config.service_name
            event_dict["library_version"] = config.version
        return event_dict

    return add_library_context


def setup_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """
    Configure structured logging with structlog.

    Args:
        log_level: Overrides RECEIPT_VALIDATOR_LOG_LEVEL
        log_format: Overrides RECEIPT_VALIDATOR_LOG_FORMAT ("json" or "console")

    A parsed transaction logged as JSON looks like:
    {
        "event": "apple_transaction_parsed",
        "level": "debug",
        "timestamp": "2025-01-08T12:00:00.123456Z",
        "logger": "receipt_validator.models.apple_storekit",
        "library": "receipt-validator",
        "library_version": "0.1.0",
        "transaction_id": "2000000456789012",
        "product_id": "pro_monthly",
        "environment": "Production"
    }
    """
    config = get_settings()
    level = (log_level or config.log_level).upper()
    fmt = (log_format or config.log_format).lower()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level),
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        library_context(config),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.debug("apple_transaction_parsed", transaction_id=transaction_id)
    """
    return structlog.get_logger(name)  # type: ignore[no-any-return]


class log_context:
    """
    Bind key/values to every event logged inside the block.

    Usage:
        with log_context(notification_uuid="abc-123"):
            record = TransactionRecord.from_raw_data(payload)
            # apple_transaction_parsed now carries notification_uuid
    """

    def __init__(self, **kwargs: Any) -> None:
        self.context = kwargs

    def __enter__(self) -> None:
        structlog.contextvars.bind_contextvars(**self.context)

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        structlog.contextvars.unbind_contextvars(*self.context.keys())
