"""
Library Logger

Logging helpers for xfetch. The package never installs handlers on import;
applications call configure_logger() when they want xfetch output.

Entry creation and early expiration verdicts attach their parameters to the
log record through log_extra(), so JsonFormatter emits them as fields:

    {"message": "Early expiration ...", "expires_in": 0.42, "window": 0.61, ...}
"""

import os
import sys
import json
import logging
import datetime
from typing import Any, Dict, Optional, TextIO, Union

DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-14s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LIBRARY_LOGGER_NAME = "xfetch"

__all__ = [
    'configure_logger',
    'log_extra',
    'JsonFormatter',
    'LIBRARY_LOGGER_NAME',
]


def log_extra(**fields: Any) -> Dict[str, Any]:
    """
    Build the ``extra`` mapping for a log call.

    Durations are reported in seconds and floats are rounded to microseconds.

    Returns:
        Mapping to pass as ``extra=`` to a logger method
    """
    data = {}
    for key, value in fields.items():
        if isinstance(value, datetime.timedelta):
            value = value.total_seconds()
        if isinstance(value, float):
            value = round(value, 6)
        data[key] = value
    return {"data": data}


class JsonFormatter(logging.Formatter):
    """
    Formatter that outputs one JSON object per log record.

    Fields attached with log_extra() are merged into the object.
    """

    def __init__(self, *, indent: Optional[int] = None):
        super().__init__()
        self.indent = indent

    def format(self, record: logging.LogRecord) -> str:
        log_object = {
            "timestamp": datetime.datetime.fromtimestamp(
                record.created, tz=datetime.timezone.utc
            ).isoformat(),
            "logger": record.name,
            "level": record.levelname,
            "message": record.getMessage(),
        }

        data = getattr(record, "data", None)
        if isinstance(data, dict):
            log_object.update(data)

        if record.exc_info:
            log_object["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info)
            }

        return json.dumps(log_object, indent=self.indent, default=str)


def configure_logger(
    level: Union[str, int] = logging.INFO,
    use_json: bool = False,
    log_file: Optional[str] = None,
    stream: Optional[TextIO] = None,
    name: str = LIBRARY_LOGGER_NAME
) -> logging.Logger:
    """
    Attach handlers to the xfetch logger.

    Args:
        level: Log level; DEBUG shows entry creation and early expirations
        use_json: Whether to emit JSON lines instead of plain text
        log_file: Optional path of a file to log to
        stream: Console stream (default: stdout); ignored when log_file is set
        name: Logger to configure

    Returns:
        The configured logger
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    logger = logging.getLogger(name)
    logger.setLevel(level)
    # Replaces the NullHandler attached on import
    logger.handlers = []

    if use_json:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(DEFAULT_LOG_FORMAT, DEFAULT_DATE_FORMAT)

    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger
