"""Logging for the Pantry Recipe Service.

One stdout handler per logger, formatted as coloured text (local runs) or
one JSON object per line (log shippers). Environment:
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_TYPE: text, json (default: text)

Pipeline code logs through request_logger() so every line of one request
carries the same request_id.
"""

import json
import logging
import os
import sys
from typing import Any, Optional


# Record attributes copied into output when a LoggerAdapter or `extra=` sets them
CONTEXT_FIELDS = ("request_id",)


def _context(record: logging.LogRecord) -> dict[str, Any]:
    return {field: getattr(record, field) for field in CONTEXT_FIELDS if getattr(record, field, None)}


class JSONFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message, context, exception."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_context(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


class RichTextFormatter(logging.Formatter):
    """Coloured single-line text with a level icon and optional [request_id] tag."""

    RESET = "\033[0m"
    # level -> (ANSI colour, icon)
    LEVEL_STYLES = {
        "DEBUG": ("\033[36m", "🔍"),
        "INFO": ("\033[32m", "ℹ️"),
        "WARNING": ("\033[33m", "⚠️"),
        "ERROR": ("\033[31m", "❌"),
        "CRITICAL": ("\033[31m", "❌"),
    }

    def format(self, record: logging.LogRecord) -> str:
        color, icon = self.LEVEL_STYLES.get(record.levelname, (self.RESET, ""))
        context = _context(record)
        tag = f"[{context['request_id']}] " if "request_id" in context else ""

        line = (
            f"{color}{icon} {self.formatTime(record, '%Y-%m-%d %H:%M:%S')} "
            f"{record.levelname:<8} {record.name:<20} {tag}{record.getMessage()}{self.RESET}"
        )
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _build_formatter(log_type: str) -> logging.Formatter:
    return JSONFormatter() if log_type == "json" else RichTextFormatter()


def get_logger(name: str) -> logging.Logger:
    """Return the named logger with a stdout handler attached once.

    Level and format come from LOG_LEVEL / LOG_TYPE at first configuration;
    an unknown level falls back to INFO.
    """
    configured = logging.getLogger(name)
    if configured.handlers:
        return configured

    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(_build_formatter(os.getenv("LOG_TYPE", "text").lower()))

    configured.setLevel(level)
    configured.addHandler(handler)
    return configured


def request_logger(request_id: Optional[str] = None) -> logging.LoggerAdapter:
    """Wrap the service logger so each record carries request_id.

    Args:
        request_id: Correlation id for one pipeline run. None renders no tag.

    Returns:
        LoggerAdapter around the module-level logger.
    """
    return logging.LoggerAdapter(logger, {"request_id": request_id})


logger = get_logger("pantry_recipes")

# Third-party clients log every request at INFO
for _noisy in ("google.genai", "aiohttp", "httpx"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
