"""
Logging configuration and utilities.
"""

import inspect
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pubsub_subscriptions.config import Config


class CloudLoggingJSONFormatter(logging.Formatter):
    """
    Formatter that emits a JSON line when the message carries structured data.
    Cloud Logging parses JSON from the stream if the line starts with '{'.
    """

    def format(self, record):
        message = record.getMessage()
        if message.strip().startswith("{"):
            try:
                parsed = json.loads(message)
                log_entry = {
                    "severity": record.levelname,
                    "message": parsed.get("message", str(message)),
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "service": record.name,
                }
                for key, value in parsed.items():
                    if key != "message":
                        log_entry[key] = value
                if record.exc_info:
                    log_entry["exception"] = self.formatException(record.exc_info)
                return json.dumps(log_entry)
            except (json.JSONDecodeError, ValueError, TypeError, AttributeError):
                pass

        return super().format(record)


class StderrHandler(logging.StreamHandler):
    """Stream handler bound to whatever sys.stderr is when a record is emitted."""

    def __init__(self, level=logging.NOTSET):
        logging.Handler.__init__(self, level)

    @property
    def stream(self):
        return sys.stderr


def setup_logger(
    service_name: Optional[str] = None, log_level: Optional[str] = None
) -> logging.Logger:
    """Setup and configure logger for the tool.

    Records go to stderr; stdout is reserved for the run's progress output.
    """
    name = service_name or Config.SERVICE_NAME
    level = getattr(logging, (log_level or Config.LOG_LEVEL).upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    formatter = CloudLoggingJSONFormatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = next(
        (
            h
            for h in root_logger.handlers
            if isinstance(h.formatter, CloudLoggingJSONFormatter)
        ),
        None,
    )
    if console_handler is None:
        console_handler = StderrHandler()
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)
    console_handler.setLevel(level)

    return logging.getLogger(name)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name, setting up the root logger if needed."""
    if not logging.getLogger().handlers:
        setup_logger()
    return logging.getLogger(name)


class StructuredLogger:
    """
    Wrapper around logger that attaches structured fields (topic, subscription,
    message_index, ...) so they can be filtered on in Cloud Logging.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _format_structured_message(self, message: str, **fields) -> str:
        fields = {key: value for key, value in fields.items() if value is not None}
        if not fields:
            return message
        structured_data: Dict[str, Any] = {"message": message}
        structured_data.update(fields)
        return json.dumps(structured_data, default=str)

    def debug(self, message: str, **fields):
        self.logger.debug(self._format_structured_message(message, **fields))

    def info(self, message: str, **fields):
        self.logger.info(self._format_structured_message(message, **fields))

    def warning(self, message: str, exc_info: bool = False, **fields):
        self.logger.warning(
            self._format_structured_message(message, **fields), exc_info=exc_info
        )

    def error(self, message: str, exc_info: bool = False, **fields):
        self.logger.error(
            self._format_structured_message(message, **fields), exc_info=exc_info
        )

    def __getattr__(self, name: str):
        """Delegate other attributes to the underlying logger."""
        return getattr(self.logger, name)


def get_structured_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger.

    Usage:
        logger = get_structured_logger(__name__)
        logger.info("Created topic", topic="example-topic")
    """
    return StructuredLogger(get_logger(name))


def _caller_logger(logger_name: Optional[str]) -> StructuredLogger:
    # Two frames up: past this helper and the log_* wrapper.
    if logger_name is None:
        frame = inspect.currentframe()
        try:
            caller_frame = frame.f_back.f_back
            logger_name = caller_frame.f_globals.get("__name__", "root")
        finally:
            del frame
    return get_structured_logger(logger_name)


def log_debug(message: str, logger_name: Optional[str] = None, **fields):
    """Log a debug message with optional structured fields."""
    _caller_logger(logger_name).debug(message, **fields)


def log_info(message: str, logger_name: Optional[str] = None, **fields):
    """
    Log an info message with optional structured fields.

    Args:
        message: The log message
        logger_name: Optional logger name (defaults to caller's module name)
        **fields: Structured fields to include in the log (e.g., topic)
    """
    _caller_logger(logger_name).info(message, **fields)


def log_warning(
    message: str, logger_name: Optional[str] = None, exc_info: bool = False, **fields
):
    """Log a warning message with optional structured fields."""
    _caller_logger(logger_name).warning(message, exc_info=exc_info, **fields)


def log_error(
    message: str, logger_name: Optional[str] = None, exc_info: bool = False, **fields
):
    """Log an error message with optional structured fields."""
    _caller_logger(logger_name).error(message, exc_info=exc_info, **fields)
