"""Logging utilities with structured output for the comp search backend."""

from __future__ import annotations

import logging
import os
import re
from typing import Optional

_LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# key=value pairs and auth headers that must never reach the log stream.
_HEADER_RE = re.compile(r"(?i)\b(cookie|authorization)(\s*[=:]\s*)[^\r\n]+")
_SECRET_RE = re.compile(r"(?i)\b(password|passwd|api_key|key)(\s*[=:]\s*)[^\s,;&]+")


def redact(text: str) -> str:
    text = _HEADER_RE.sub(lambda m: f"{m.group(1)}{m.group(2)}***", text)
    return _SECRET_RE.sub(lambda m: f"{m.group(1)}{m.group(2)}***", text)


class RedactingFilter(logging.Filter):
    """Masks credentials, cookies and API keys in the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = ()
        return True


def configure_logging(namespace: str = "compsearch") -> logging.Logger:
    """Return a namespaced logger configured for structured output.

    Records are printed as single lines with ``event key=value`` pairs so that
    protocol round trips (login, search, getobject, logout) can be followed in
    aggregated logs. Secrets are masked by ``RedactingFilter`` on the handler.
    """

    logger = logging.getLogger(namespace)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    handler.addFilter(RedactingFilter())

    logger.addHandler(handler)
    logger.setLevel(_LOG_LEVEL)
    logger.propagate = False
    return logger


def get_logger(child: Optional[str] = None) -> logging.Logger:
    """Helper to retrieve a child logger."""

    base = configure_logging()
    if child:
        return base.getChild(child)
    return base
