"""
Structured logging configuration.

The banking core does not log. Only the API layer and the
application entry point write log records, through loggers
under the "simple_bank" namespace.
"""

import json
import logging
from datetime import datetime, timezone


class JSONFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "username": getattr(record, "username", None),
            "action": getattr(record, "action", None),
            "resource": getattr(record, "resource", None),
        }

        # Remove None values
        log_entry = {k: v for k, v in log_entry.items() if v is not None}

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", logger_name: str = "simple_bank") -> logging.Logger:
    """
    Attach a JSON console handler to the application logger.

    Calling this more than once replaces the handler instead of
    stacking duplicates.
    """
    logger = logging.getLogger(logger_name)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False

    return logger
