"""Centralized logging setup for the form builder."""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import IO, Any, Optional

_RESERVED = set(
    logging.LogRecord("name", logging.INFO, "path", 1, "msg", None, None).__dict__
) | {"message", "asctime", "stack_info", "taskName"}


class JsonFormatter(logging.Formatter):
    """Formats each record as one JSON object per line.

    Besides the envelope (timestamp, level, logger, message) the object
    carries the keys of an ``extra_fields`` dict and any other attribute
    passed through ``extra=``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED:
                continue
            if key == "extra_fields" and isinstance(value, dict):
                entry.update(value)
            else:
                entry[key] = value

        return json.dumps(entry, default=str)


def setup_logging(
    level: Optional[str] = None, stream: Optional[IO[str]] = None
) -> logging.Logger:
    """Installs the JSON formatter on the package logger.

    Args:
        level: Log level name. Defaults to ``FORM_BUILDER_LOG_LEVEL``, then
            ``LOG_LEVEL``, then INFO.
        stream: Destination stream. Defaults to stdout.

    Returns:
        The configured ``gradio_form_builder`` logger.
    """
    log_level = (
        level
        or os.environ.get("FORM_BUILDER_LOG_LEVEL")
        or os.environ.get("LOG_LEVEL", "INFO")
    ).upper()

    logger = logging.getLogger("gradio_form_builder")
    logger.setLevel(log_level)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter())

    for existing in logger.handlers[:]:
        logger.removeHandler(existing)
    logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Retrieves a logger with the given name.

    Args:
        name: The name of the logger (typically __name__).

    Returns:
        A logging.Logger instance.
    """
    return logging.getLogger(name)
