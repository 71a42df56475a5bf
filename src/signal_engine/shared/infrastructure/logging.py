"""
Structured Logging
==================

JSON-structured logging with run and correlation ID tracking.

Provides:
- Structured JSON logs (parseable by log aggregators)
- Run ID for tracing one classification/grouping run end to end
- Correlation ID for HTTP request tracing
- Performance timing utilities

Usage:
    from signal_engine.shared.infrastructure.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Batch embedded", extra={"entity_type": "issue", "count": 50})
"""

import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

from pythonjsonlogger import jsonlogger

_SENSITIVE_KEYS = ("password", "api_key", "secret")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    Custom JSON formatter with additional fields.

    Adds:
    - timestamp in ISO format
    - run_id / correlation_id when available
    - Environment info
    """

    def __init__(self, *args: Any, environment: str = "unknown", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._environment = environment

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat()

        for key in ("run_id", "correlation_id"):
            if hasattr(record, key):
                log_record[key] = getattr(record, key)

        log_record["environment"] = getattr(record, "environment", self._environment)

        # Redact anything that looks like a credential
        for key, value in list(log_record.items()):
            if not isinstance(value, str):
                continue
            lowered = key.lower()
            if any(s in lowered for s in _SENSITIVE_KEYS):
                log_record[key] = "***REDACTED***"
            elif "token" in lowered and "tokens_used" not in lowered:
                log_record[key] = "***REDACTED***"


def setup_logging(
    level: str = "INFO",
    environment: str = "development",
) -> None:
    """
    Configure structured JSON logging for the engine.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        environment: Environment name for log context
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))
    handler.setFormatter(
        CustomJsonFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
            environment=environment,
        )
    )
    root_logger.addHandler(handler)

    # Silence noisy loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)


def get_run_logger(name: str, run_id: str | None = None) -> logging.Logger | logging.LoggerAdapter:
    """
    Get a logger that stamps every record with the run ID.

    Args:
        name: Logger name
        run_id: Identifier of the current classification/grouping run

    Returns:
        Logger, or a LoggerAdapter carrying run_id in extra
    """
    logger = get_logger(name)
    if run_id:
        return logging.LoggerAdapter(logger, {"run_id": run_id})
    return logger


@contextmanager
def log_latency(logger: logging.Logger | logging.LoggerAdapter, operation: str, **extra_context: Any):
    """
    Context manager for measuring and logging operation latency.

    Usage:
        with log_latency(logger, "group_signals", signals=len(signals)):
            result = grouper.group(signals)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        latency_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{operation} completed",
            extra={
                "operation": operation,
                "latency_ms": round(latency_ms, 2),
                **extra_context,
            },
        )
