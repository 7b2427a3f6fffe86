"""
Centralized logging configuration with request_id context support using loguru.

This module configures loguru to intercept all standard logging calls and provides
automatic request_id propagation using contextvars.
"""

import json
import logging
import sys
from contextvars import ContextVar
from types import FrameType
import traceback
from typing import Optional

from loguru import logger

from rules_service.core.config import settings

# Thread-safe and async-safe context variable for the current request
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class InterceptHandler(logging.Handler):
    """
    Handler that intercepts standard logging calls and redirects them to loguru.

    This keeps every logging.getLogger() call in the codebase flowing into the
    same loguru sinks.
    """

    def emit(self, record: logging.LogRecord):
        """Intercept standard logging record and pass to loguru."""
        # Get corresponding Loguru level if it exists
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where the logging call originated
        frame: Optional[FrameType] = sys._getframe(settings.LOGGING_FRAME_DEPTH)
        depth: int = settings.LOGGING_FRAME_DEPTH

        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def context_filter(record):
    """
    Filter that adds request_id from contextvars to log records.

    All logs within a request automatically include the request_id without
    binding the logger everywhere.
    """
    request_id = request_id_var.get()
    if request_id and request_id != "-":
        record["extra"]["request_id"] = request_id

    return record


def build_simplified_json_record(record):
    """
    Build a simplified JSON log record from a loguru record.

    Only includes essential fields:
    - timestamp
    - level
    - message
    - logger name
    - request_id (if present)
    - exception (if present)
    """
    log_record = {
        "timestamp": record["time"].strftime("%Y-%m-%d %H:%M:%S"),
        "level": record["level"].name,
        "message": record["message"],
        "logger": record["name"],
    }

    if "request_id" in record["extra"]:
        log_record["request_id"] = record["extra"]["request_id"]

    if record["exception"]:
        traceback_text = None
        if record["exception"].traceback:
            traceback_text = "".join(
                traceback.format_exception(
                    record["exception"].type,
                    record["exception"].value,
                    record["exception"].traceback,
                )
            ).strip()

        log_record["exception"] = {
            "type": (
                record["exception"].type.__name__ if record["exception"].type else None
            ),
            "value": (
                str(record["exception"].value) if record["exception"].value else None
            ),
            "traceback": traceback_text,
        }
    else:
        log_record["exception"] = None

    return log_record


def custom_json_sink(message):
    """
    Custom sink that wraps sys.stderr and formats logs as simplified JSON.
    """
    record = message.record
    log_record = build_simplified_json_record(record)
    sys.stderr.write(json.dumps(log_record, default=str) + "\n")


def configure_logging():
    """
    Configure logging for the application using loguru.

    This function:
    1. Removes default loguru handler
    2. Adds custom JSON sink (console)
    3. Configures context filter to inject request_id from contextvars
    4. Intercepts all standard logging calls to redirect to loguru
    5. Configures log level from settings
    """
    logger.remove()

    # Required - will fail at settings load if not set in environment
    log_level = settings.LOG_LEVEL

    logger.add(
        custom_json_sink,
        level=log_level,
        backtrace=True,
        diagnose=False,
        filter=context_filter,
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    # Set logging level for commonly verbose libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logger.info("Logging configured successfully with loguru")


def set_request_id(request_id: str):
    """
    Set the request_id for the current context.

    Called at the beginning of each request (in middleware).
    """
    request_id_var.set(request_id)


def clear_request_id():
    """Clear the request_id from the current context."""
    request_id_var.set("-")


def get_request_id() -> str:
    """Get the current request_id from context."""
    return request_id_var.get()
