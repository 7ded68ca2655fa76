"""Spectrum Sync Logging Configuration.

Every handler installed here carries ``TokenRedactionFilter`` so bearer
tokens and invite-link tokens never reach log output, whatever a caller
happens to interpolate into a message.
"""

import json
import logging
import re
import sys
from typing import Literal

# Human-readable format for development
DEV_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

REDACTED = "[redacted]"

_TOKEN_PATTERNS = (
    re.compile(r"(Bearer\s+)[A-Za-z0-9\-_.=]+"),
    re.compile(r"([?&]token=)[^&\s\"']+"),
)


def redact_tokens(message: str) -> str:
    """Replace bearer and invite-link tokens in ``message``."""
    for pattern in _TOKEN_PATTERNS:
        message = pattern.sub(rf"\g<1>{REDACTED}", message)
    return message


class TokenRedactionFilter(logging.Filter):
    """Rewrite the record's message with tokens redacted."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_tokens(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per log line.

    Fields are serialised with json.dumps so quotes, backslashes and
    newlines inside messages never break the line format.
    """

    def __init__(self):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = redact_tokens(self.formatException(record.exc_info))
        return json.dumps(log_entry, default=str)


def setup_logging(
    level: str = "INFO",
    format_type: Literal["structured", "dev"] = "dev",
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Log format - 'structured' for JSON, 'dev' for readable
    """
    handler = logging.StreamHandler(sys.stdout)
    if format_type == "structured":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(DEV_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    handler.addFilter(TokenRedactionFilter())
    logging.root.handlers = [handler]
    logging.root.setLevel(getattr(logging, level.upper()))

    # Request logging is done by our own middleware
    for logger_name in ["uvicorn", "uvicorn.error", "uvicorn.access"]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.DEBUG if level.upper() == "DEBUG" else logging.WARNING
    )

    logging.getLogger("spectrum").info(f"Logging configured: level={level}, format={format_type}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the spectrum prefix."""
    return logging.getLogger(f"spectrum.{name}")
