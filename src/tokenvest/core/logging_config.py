"""
Structured JSON logging for the vesting ledger.

Every record is emitted as one JSON object carrying the ``event`` name and
any ``extra`` fields passed by the caller, plus the environment, the service
name and the source location. Records go to stderr and, optionally, to a
rotating log file.

Usage:
    from tokenvest.core.logging_config import setup_logging

    setup_logging(name="tokenvest", level="INFO")
    logging.getLogger("tokenvest.vesting.timelock").info(
        "Grant added", extra={"event": "timelock.grant_added"}
    )
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pythonjsonlogger import jsonlogger

DEFAULT_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that stamps environment, service and source on every record."""

    def __init__(
        self,
        fmt: str = DEFAULT_FORMAT,
        environment: str | None = None,
        service_name: str = "tokenvest",
    ):
        super().__init__(fmt=fmt)
        self.environment = environment or "development"
        self.service_name = service_name

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = log_record.get("timestamp") or datetime.fromtimestamp(
            record.created, tz=timezone.utc
        ).isoformat()
        log_record["level"] = log_record.get("level") or record.levelname.lower()
        log_record.update(
            environment=self.environment,
            service=self.service_name,
            source={
                "module": record.module,
                "function": record.funcName,
                "line": record.lineno,
            },
        )


def _resolve_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"unknown log level {level!r}")
    return resolved


def setup_logging(
    name: str = "tokenvest",
    log_file: str | None = None,
    level: str | int = "INFO",
    environment: str = "development",
    enable_console: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure JSON logging for ``name`` and its child loggers.

    Args:
        name: Logger name (typically the package name)
        log_file: Optional path of a rotating JSON log file
        level: Level name or number
        environment: Environment tag written on every record
        enable_console: Whether to log to stderr
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files to keep

    Returns:
        The configured logger
    """
    numeric_level = _resolve_level(level)
    formatter = CustomJsonFormatter(environment=environment, service_name=name.split(".")[0])

    handlers: list[logging.Handler] = []
    if enable_console:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                log_file, maxBytes=max_bytes, backupCount=backup_count
            )
        )

    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)
    # Reconfiguring replaces handlers rather than stacking them
    logger.handlers = []
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name: str, level: str | int = "INFO") -> logging.Logger:
    """Return ``name``'s logger, configuring it on first use."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    return setup_logging(name=name, level=level)
