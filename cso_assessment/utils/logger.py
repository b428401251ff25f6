"""
Logging setup for the assessment engine and CLI.

Provides:
- Millisecond timestamps with aligned log levels
- One stdout handler on the root logger (library modules just use getLogger)
- A timing context manager with key=value structured fields
"""

import logging
import sys
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(filename)s:%(lineno)d | %(message)s"


class MillisecondsFormatter(logging.Formatter):
    """Formatter that includes milliseconds and aligns log levels."""

    def formatTime(self, record, datefmt=None):  # noqa: N802 - must match parent class method name
        ct = datetime.fromtimestamp(record.created)
        if datefmt and "%f" in datefmt:
            s = ct.strftime(datefmt.replace(",%f", ""))
            return s + f",{int(record.msecs):03d}"
        elif datefmt:
            return ct.strftime(datefmt)
        else:
            return ct.strftime("%Y-%m-%d %H:%M:%S") + f",{int(record.msecs):03d}"


def format_fields(message: str, **fields) -> str:
    """Append structured fields as `[key=value ...]`."""
    if not fields:
        return message
    formatted_data = " ".join(f"{k}={v}" for k, v in fields.items())
    return f"{message} [{formatted_data}]"


def configure_global_logging(log_level: str = "INFO", quiet_libraries: Optional[list[str]] = None):
    """
    Configure the root logger with the unified format.

    Call this once at CLI startup. Library code never calls it.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        quiet_libraries: Logger names raised to WARNING regardless of log_level
    """
    level = getattr(logging, log_level.upper())
    formatter = MillisecondsFormatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S,%f")

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    root_handler = logging.StreamHandler(sys.stdout)
    root_handler.setLevel(level)
    root_handler.setFormatter(formatter)
    root_logger.addHandler(root_handler)

    for lib_name in quiet_libraries or ["pymysql"]:
        lib_logger = logging.getLogger(lib_name)
        lib_logger.handlers.clear()
        lib_logger.propagate = True
        lib_logger.setLevel(max(level, logging.WARNING))


@contextmanager
def timed_operation(logger: logging.Logger, operation: str, **fields):
    """
    Time and log one operation.

    Args:
        logger: Logger to write to
        operation: Description (e.g., "suggestion generation")
        **fields: Structured context, rendered as key=value

    Usage:
        with timed_operation(logger, "suggestion generation", assessment_id=aid):
            ...
    """
    start_time = datetime.now()
    logger.debug(format_fields(f"Starting {operation}", **fields), stacklevel=3)
    try:
        yield
    except Exception as e:
        duration = (datetime.now() - start_time).total_seconds()
        logger.error(
            format_fields(f"Failed {operation} | Exception: {e}", duration_seconds=round(duration, 3), **fields),
            stacklevel=3,
        )
        raise
    duration = (datetime.now() - start_time).total_seconds()
    logger.info(
        format_fields(f"Completed {operation}", duration_seconds=round(duration, 3), **fields),
        stacklevel=3,
    )
