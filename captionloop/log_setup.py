"""Logging configuration for CaptionLoop."""

import logging
import sys
from logging.handlers import RotatingFileHandler
import os
from typing import Optional
from .utils import ensure_dir_exists

DEFAULT_LOG_FORMAT = '%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def setup_logging(
    log_level: int = logging.INFO,
    log_dir: Optional[str] = "logs",
    log_file: str = "captionloop.log",
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    max_bytes: int = 10 * 1024 * 1024, # 10 MB
    backup_count: int = 5,
    stream=None
) -> None:
    """
    Configures logging for the application.

    Sets up logging to the console and, when log_dir is given, to a rotating file.

    Args:
        log_level: The minimum logging level (e.g., logging.INFO, logging.DEBUG).
        log_dir: The directory to store log files. None disables file logging.
        log_file: The name of the log file.
        log_format: The format string for log messages.
        date_format: The format string for timestamps in logs.
        max_bytes: Maximum size of a log file before rotation.
        backup_count: Number of backup log files to keep.
        stream: Console stream, stdout by default. The CLI passes stderr when
                the transcript itself is written to stdout.
    """
    logger = logging.getLogger() # Get root logger
    if logger.hasHandlers():
        # Re-configuration replaces the previous handlers
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            handler.close()

    logger.setLevel(log_level)
    formatter = logging.Formatter(log_format, datefmt=date_format)

    stream_handler = logging.StreamHandler(stream or sys.stdout)
    stream_handler.setFormatter(formatter)
    stream_handler.setLevel(log_level)
    logger.addHandler(stream_handler)

    if log_dir:
        try:
            ensure_dir_exists(log_dir)
            log_path = os.path.join(log_dir, log_file)
            file_handler = RotatingFileHandler(
                log_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding='utf-8'
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
            logger.info(f"Logging initialized. Log file: {log_path}")
        except Exception as e:
            # Log to console if file handler fails
            logger.error(f"Failed to set up file logging handler at {log_dir}/{log_file}: {e}", exc_info=True)

    # Connection pool chatter is not useful at INFO
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
