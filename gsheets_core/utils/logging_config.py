"""
Logging configuration for the spreadsheet core.
JSON records that carry the SheetsError kind, console output on stderr,
optional rotating files.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from gsheets_core.utils.exceptions import SheetsError

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("googleapiclient.discovery", "googleapiclient.discovery_cache", "google.auth")

MAX_LOG_BYTES = 10 * 1024 * 1024  # 10MB
LOG_BACKUP_COUNT = 30


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
            error = record.exc_info[1]
            if isinstance(error, SheetsError):
                log_data["error_kind"] = error.kind.value
                if error.retry_after is not None:
                    log_data["retry_after"] = error.retry_after

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        return json.dumps(log_data, default=str)


def _file_handler(path: Path, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUP_COUNT)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = False
) -> None:
    """
    Setup logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for app.log and errors.log
        enable_file_logging: Whether to enable file logging
    """
    level = getattr(logging, log_level.upper())
    formatter = JSONFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    # stdout stays free for callers that speak a protocol over it
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if enable_file_logging:
        log_dir = Path(log_dir or "logs")
        log_dir.mkdir(parents=True, exist_ok=True)
        root_logger.addHandler(_file_handler(log_dir / "app.log", logging.INFO, formatter))
        root_logger.addHandler(_file_handler(log_dir / "errors.log", logging.ERROR, formatter))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def configure_logging(config) -> None:
    """Apply the logging section of SheetsConfig."""
    setup_logging(
        config.log_level,
        log_dir=config.log_dir,
        enable_file_logging=config.log_to_file
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
