"""
Structured logging utilities.
"""

import logging
import json
from datetime import datetime, timezone


def mask_token(token: str) -> str:
    """
    Mask a secret for logging.

    Args:
        token: Access token or secret

    Returns:
        Asterisks followed by the last four characters
    """
    if not token:
        return ''
    return '****' + token[-4:]


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%f') + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage()
        }

        # Add extra fields if provided
        if hasattr(record, 'extra_data'):
            log_data.update(record.extra_data)

        return json.dumps(log_data, default=str)


def get_logger(name: str) -> logging.Logger:
    """
    Get configured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger with JSON formatting
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        from shopify_app.config import Config

        logger.setLevel(getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO))

        # Console handler
        console = logging.StreamHandler()
        console.setFormatter(JSONFormatter())
        logger.addHandler(console)

        # File handler
        if Config.LOG_FILE:
            file_handler = logging.FileHandler(Config.LOG_FILE)
            file_handler.setFormatter(JSONFormatter())
            logger.addHandler(file_handler)

        # Handled here; parent package loggers would repeat the line
        logger.propagate = False

    return logger


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context
) -> None:
    """
    Log message with structured context.

    Args:
        logger: Logger instance
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        message: Log message
        **context: Additional context fields
    """
    log_method = getattr(logger, level.lower())
    extra = {"extra_data": context}
    log_method(message, extra=extra)
