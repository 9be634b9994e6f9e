"""
Logging utilities for the Drip API client

Structured logging with request context carried across async calls.
Console output is human-readable; the optional file handler writes JSON lines.
"""
import contextvars
import json
import logging
import time
import uuid
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Dict, Any, Optional, Union

from config import get_config

# Context variable for request tracking across async calls
log_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar('log_context', default={})

LOGGER_NAME = 'drip_client'

JSONValue = Union[
    str,
    int,
    float,
    bool,
    None,
    dict[str, Any],
    list[Any]
]

# LogRecord attributes that are not user-supplied extras
_RECORD_ATTRIBUTES = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'taskName', 'message', 'exc_info',
    'exc_text', 'stack_info'
}


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured file logging."""

    def format(self, record) -> str:
        """Format log record as a single JSON line including the active context."""
        log_obj: dict[str, JSONValue] = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_obj['exception'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else 'Unknown',
                'message': str(record.exc_info[1]) if record.exc_info[1] else 'No message',
                'traceback': self.formatException(record.exc_info)
            }

        context = log_context.get({})
        if context:
            log_obj['context'] = context.copy()
            if 'trace_id' in context:
                log_obj['trace_id'] = context['trace_id']

        extra_data = {}
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRIBUTES:
                continue
            try:
                json.dumps(value)
                extra_data[key] = value
            except (TypeError, ValueError):
                extra_data[key] = str(value)

        if extra_data:
            log_obj['extra'] = extra_data

        return json.dumps(log_obj, ensure_ascii=False)


class ContextualLogger:
    """
    Logger wrapper that attaches keyword context to every record.

    Keyword arguments passed to the log methods end up as ``extra`` fields,
    so they appear in the JSON output without being formatted into the message.
    """

    def __init__(self, logger_name: str):
        self.logger = logging.getLogger(logger_name)
        self._start_time: Optional[float] = None

    def start_operation(self, operation_name: Optional[str] = None) -> str:
        """
        Start timing an operation and generate a trace ID.

        Args:
            operation_name: Optional name for the operation being tracked

        Returns:
            Generated trace ID for this operation
        """
        self._start_time = time.time()
        trace_id = str(uuid.uuid4())[:8]

        current_context = log_context.get({}).copy()
        current_context['trace_id'] = trace_id
        if operation_name:
            current_context['operation'] = operation_name
        log_context.set(current_context)

        return trace_id

    def end_operation(self, trace_id: str, operation_result: str = "completed") -> None:
        """
        End an operation, log its duration and drop its context.

        Args:
            trace_id: The trace ID returned by start_operation
            operation_result: Result status (e.g., "completed", "failed")
        """
        if self._start_time is None:
            self.warning("end_operation called without corresponding start_operation")
            return

        duration_ms = int((time.time() - self._start_time) * 1000)
        self._start_time = None

        self.debug(f"Operation {operation_result}",
                   trace_id=trace_id,
                   final_duration_ms=duration_ms,
                   operation_result=operation_result)

        current_context = log_context.get({}).copy()
        current_context.pop('operation', None)
        if current_context.get('trace_id') == trace_id:
            current_context.pop('trace_id', None)
        log_context.set(current_context)

    def _with_duration(self, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        if self._start_time is not None:
            kwargs['duration_ms'] = int((time.time() - self._start_time) * 1000)
        return kwargs

    def debug(self, message: str, **kwargs):
        """Log debug message with context."""
        self.logger.debug(message, extra=self._with_duration(kwargs))

    def warning(self, message: str, **kwargs):
        """Log warning message with context."""
        self.logger.warning(message, extra=self._with_duration(kwargs))


def clear_context():
    """Clear the current logging context."""
    log_context.set({})


def get_contextual_logger(logger_name: str) -> ContextualLogger:
    """
    Get a contextual logger instance.

    Args:
        logger_name: Name for the logger (typically __name__)

    Returns:
        ContextualLogger instance
    """
    return ContextualLogger(logger_name)


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure console logging plus an optional rotating JSON file.

    Intended for host applications and scripts; the library itself never
    installs handlers on import. Arguments override DRIP_LOG_LEVEL / DRIP_LOG_FILE.

    Returns:
        The package logger the handlers were attached to
    """
    config = get_config()
    level_name = (level or config.log_level).upper()
    log_file = log_file if log_file is not None else config.log_file

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level_name))

    # Avoid duplicate handlers when called more than once
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    logger.addHandler(console_handler)

    if log_file:
        json_handler = RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=5
        )
        json_handler.setFormatter(JSONFormatter())
        logger.addHandler(json_handler)

    logger.propagate = False
    return logger
