"""Logging setup for the design inspector.

Engine modules only obtain loggers under the ``design_inspector``
namespace; handlers are installed by the CLI through `setup_logging`.
Timing and pipeline counters travel as record extras and are kept by the
JSON file format.
"""

import json
import logging
import logging.config
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

LOGGER_NAME = "design_inspector"

# Rotation limits for --log-file
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 3


class LogCategory(Enum):
    """Child loggers of the package logger, one per pipeline stage."""

    DETECTION = "detection"
    GROUPING = "grouping"
    CONFIG = "config"
    CLI = "cli"
    PERFORMANCE = "performance"


class JSONFormatter(logging.Formatter):
    """One JSON object per record, including inspector extras."""

    EXTRA_FIELDS = ("duration_ms", "operation", "node_count", "group_count")

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        for field in self.EXTRA_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


def setup_logging(
    level: str = "INFO",
    quiet: bool = False,
    verbose: bool = False,
    log_file: Path | None = None,
    log_format: str = "text",
) -> logging.Logger:
    """Install console and file handlers on the package logger.

    Args:
        level: Console level when neither quiet nor verbose is set.
        quiet: Drop the console handler; the log file keeps ERROR and above.
        verbose: Log DEBUG to the console.
        log_file: Optional rotating log file; parent directories are created.
        log_format: File format, "text" or "json".

    Returns:
        The package logger.
    """
    if quiet:
        effective_level = "ERROR"
    elif verbose:
        effective_level = "DEBUG"
    else:
        effective_level = level.upper()

    handlers: dict[str, dict] = {}
    if not quiet:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "formatter": "simple",
            "level": effective_level,
            "stream": "ext://sys.stderr",
        }
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "json" if log_format == "json" else "detailed",
            "level": effective_level if quiet else "DEBUG",
            "filename": str(log_file),
            "maxBytes": LOG_FILE_MAX_BYTES,
            "backupCount": LOG_FILE_BACKUPS,
        }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "detailed": {
                    "format": "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
                "simple": {"format": "%(levelname)s | %(message)s"},
                "json": {"()": JSONFormatter},
            },
            "handlers": handlers,
            "loggers": {
                LOGGER_NAME: {
                    "handlers": list(handlers),
                    "level": "DEBUG",
                    "propagate": False,
                }
            },
        }
    )
    return logging.getLogger(LOGGER_NAME)


def get_logger() -> logging.Logger:
    """Package-level logger."""
    return logging.getLogger(LOGGER_NAME)


def get_category_logger(category: LogCategory) -> logging.Logger:
    """Logger for one pipeline stage, e.g. ``design_inspector.detection``."""
    return logging.getLogger(f"{LOGGER_NAME}.{category.value}")
