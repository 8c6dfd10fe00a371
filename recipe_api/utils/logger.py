"""Structured logging configuration"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

# Extra attributes copied from the log record into the JSON payload
_EXTRA_FIELDS = ("request_id", "username", "recipe_id", "action", "backend", "count")


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in _EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """Setup structured JSON logging"""
    logger = logging.getLogger("recipe_api")
    logger.setLevel(log_level)

    # Remove existing handlers
    logger.handlers = []

    # Create console handler with JSON formatter
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)

    return logger


def token_prefix(token: str) -> str:
    """Short, non-secret form of a bearer token for log lines"""
    return f"{token[:8]}..." if token else ""


# Global logger instance
logger = setup_logging()
