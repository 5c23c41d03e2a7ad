import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """
    JSON formatter for Lambda logs.
    One JSON object per line, with any `extra=` fields merged in at the top level.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S,%f%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_") and key != "fields":
                payload[key] = value

        # Fields from log() may share names with LogRecord attributes, so they
        # travel nested and never replace the keys above.
        fields = getattr(record, "fields", None)
        if isinstance(fields, dict):
            for key, value in fields.items():
                payload.setdefault(key, value)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def get_logger(name: str = "sms_relay") -> logging.Logger:
    """
    Returns a singleton JSON-logging logger for the given name.
    Safe to call many times; it will only configure the logger once.
    """
    logger = logging.getLogger(name)

    if getattr(logger, "_configured", False):
        return logger

    level = getattr(logging, LOG_LEVEL, logging.INFO)
    logger.setLevel(level)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    # We emit JSON ourselves; the Lambda root handler would wrap it again.
    logger.propagate = False

    logger._configured = True  # type: ignore[attr-defined]

    return logger


_base_logger = get_logger("sms_relay")


def log(message: str, **fields: Any) -> None:
    """
    Convenience function for quick logs without manually grabbing a logger.
    Example:
        log("health.check", path="/healthz", sms_configured=True)
    """
    if fields:
        _base_logger.info(message, extra={"fields": fields})
    else:
        _base_logger.info(message)
