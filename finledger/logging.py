"""Logging setup for the ledger and its scripts.

Services log through ``logging.getLogger(__name__)``. Transfers attach
their entity ids and amounts with ``extra=ledger_event(...)``; the JSON
formatter flattens those fields into the emitted object, the standard
formatter ignores them.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

from finledger.serialization import serialize_value

STANDARD_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers kept at WARNING regardless of the configured level
QUIET_LOGGERS = ("psycopg", "psycopg.pool", "faker")


def setup_logging(
    level: str = "INFO",
    format_type: str = "standard",
    stream: TextIO | None = None,
) -> None:
    """Route all log output to a single console handler.

    Parameters
    ----------
    level : str
        Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL). Unknown
        names fall back to INFO.
    format_type : str
        ``"json"`` for one JSON object per line, anything else for the
        human readable format.
    stream : TextIO | None
        Destination stream, stdout by default.
    """
    log_level = getattr(logging, level.upper(), None)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(fmt=STANDARD_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logging.getLogger("finledger").setLevel(log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def ledger_event(**fields: Any) -> dict[str, Any]:
    """Build the ``extra`` mapping for a log call carrying ledger fields."""
    return {"extra": fields}


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with ledger event fields merged in."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        fields = getattr(record, "extra", None)
        if isinstance(fields, dict):
            log_data.update(serialize_value(fields))

        return json.dumps(log_data)


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name``, usually the caller's ``__name__``."""
    return logging.getLogger(name)
