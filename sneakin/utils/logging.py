"""
Logging setup for the import service.

Console output is human-readable by default. Set LOG_FORMAT=json (or
ENVIRONMENT=production) for one JSON object per line, which is what the
hosted function logs are searched with.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional


class StructuredFormatter(logging.Formatter):
    """JSON formatter: level, service, message and the optional `data` payload."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": record.name,
            "message": record.getMessage(),
        }

        data = getattr(record, "data", None)
        if data:
            log_data["data"] = data

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Plain formatter that appends the `data` payload as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        data = getattr(record, "data", None)
        if data:
            line += " | " + " ".join(f"{key}={value}" for key, value in data.items())
        return line


def _use_json() -> bool:
    if os.getenv("LOG_FORMAT", "").lower() == "json":
        return True
    return os.getenv("ENVIRONMENT", "development").lower() == "production"


def get_logger(service_name: str, log_level: Optional[str] = None) -> logging.Logger:
    """
    Get a configured logger for a service component.

    Args:
        service_name: Logger name (e.g., 'sneakin.importer')
        log_level: DEBUG, INFO, WARNING, ERROR; defaults to $LOG_LEVEL or INFO

    Usage:
        logger = get_logger('sneakin.importer')
        logger.info('Listing inserted', extra={'data': {'listing_id': 42}})
    """
    level_name = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(service_name)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        if _use_json():
            handler.setFormatter(StructuredFormatter())
        else:
            handler.setFormatter(ConsoleFormatter(
                fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            ))
        logger.addHandler(handler)

    # Prevent duplicate lines when uvicorn configures the root logger
    logger.propagate = False

    return logger
