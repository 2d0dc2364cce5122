"""
nftsale - Structured Logging

Every module logs through ``logging.getLogger(__name__)`` with an ``event``
name and its context in ``extra``::

    logger.info("Token minted", extra={"event": "sale.minted", "token_id": "0"})

``setup_logging`` attaches JSON handlers to the ``nftsale`` logger so those
fields land at the top level of one JSON object per line. Defaults come from
``nftsale.core.config``.
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from nftsale.core import config

DEFAULT_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that stamps each record with node and source context."""

    def __init__(self, environment: Optional[str] = None, service_name: str = "nftsale"):
        super().__init__(fmt=DEFAULT_FORMAT)
        self.environment = environment or config.ENVIRONMENT
        self.service_name = service_name

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        # fmt placeholders arrive as None when the record has no such attribute
        log_record["timestamp"] = log_record.get("timestamp") or datetime.fromtimestamp(
            record.created, tz=timezone.utc
        ).isoformat()
        log_record["level"] = log_record.get("level") or record.levelname.lower()
        log_record["environment"] = self.environment
        log_record["service"] = self.service_name
        log_record["source"] = {
            "function": record.funcName,
            "module": record.module,
            "line": record.lineno,
        }


def _rotating_file_handler(
    log_file: str, max_bytes: int, backup_count: int
) -> Optional[logging.Handler]:
    try:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        return logging.handlers.RotatingFileHandler(
            filename=log_file, maxBytes=max_bytes, backupCount=backup_count
        )
    except OSError as exc:
        logging.getLogger(__name__).warning(
            "Could not open log file, continuing without it",
            extra={"event": "logging.file_handler_failed", "log_file": log_file, "error": str(exc)},
        )
        return None


def setup_logging(
    name: str = "nftsale",
    log_file: Optional[str] = None,
    level: Optional[str] = None,
    environment: Optional[str] = None,
    enable_console: bool = True,
    max_bytes: int = 50 * 1024 * 1024,  # 50MB
    backup_count: int = 10,
) -> logging.Logger:
    """
    Attach JSON handlers to the ``name`` logger, replacing any it already has.

    Args:
        name: Logger name; module loggers below it (``nftsale.core.host``) inherit the handlers
        log_file: Rotating JSON log file, if any
        level: Logging level name (default: ``NFTSALE_LOG_LEVEL``)
        environment: Environment tag on every record (default: ``NFTSALE_ENVIRONMENT``)
        enable_console: Whether to also write to stdout
        max_bytes: File size that triggers rotation
        backup_count: Rotated files to keep

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel((level or config.LOG_LEVEL).upper())

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = CustomJsonFormatter(environment=environment, service_name=name.split(".")[0])
    handlers = []
    if enable_console:
        handlers.append(logging.StreamHandler(sys.stdout))
    if log_file:
        file_handler = _rotating_file_handler(log_file, max_bytes, backup_count)
        if file_handler is not None:
            handlers.append(file_handler)

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
