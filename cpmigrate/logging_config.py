"""
Logging configuration for cpmigrate.

Environment Variables:
    CPMIGRATE_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR) - default: INFO
    CPMIGRATE_LOG_FORMAT: Log format (json, text) - default: text

Logs go to stderr; stdout is reserved for test-run checkpoint output.

Usage:
    from cpmigrate.logging_config import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__, job="page-views")
    logger.info("Validating topic")
"""

import logging
import os
import sys
from typing import Optional

from pythonjsonlogger import jsonlogger

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class JobFilter(logging.Filter):
    """
    Logging filter that adds job to all log records.

    Ensures all records have a job field, even if not logged via get_logger().
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "job"):
            record.job = "N/A"  # type: ignore
        return True


def setup_logging(verbose: bool = False, stream=None) -> None:
    """
    Configure root logger.

    Reads configuration from environment variables:
    - CPMIGRATE_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    - CPMIGRATE_LOG_FORMAT: json, text (default: text)

    Args:
        verbose: Force DEBUG level (overrides CPMIGRATE_LOG_LEVEL)
        stream: Output stream (default: sys.stderr)
    """
    log_level = os.getenv("CPMIGRATE_LOG_LEVEL", "INFO").upper()
    log_format = os.getenv("CPMIGRATE_LOG_FORMAT", "text").lower()

    level = logging.DEBUG if verbose else LEVELS.get(log_level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.addFilter(JobFilter())

    if log_format == "json":
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s %(job)s",
            rename_fields={
                "asctime": "timestamp",
                "name": "logger",
                "levelname": "level",
            },
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s [job=%(job)s]",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # librdkafka debug output only with --verbose
    logging.getLogger("cpmigrate.kafka").setLevel(logging.DEBUG if verbose else logging.WARNING)


def get_logger(name: str, job: Optional[str] = None) -> logging.LoggerAdapter:
    """
    Get a logger tagging every record with the job name.

    Args:
        name: Logger name (typically __name__)
        job: Stream job being migrated

    Returns:
        LoggerAdapter with job in extra fields
    """
    logger = logging.getLogger(name)
    return logging.LoggerAdapter(logger, {"job": job or "N/A"})
