"""Logging setup shared by the library and the dashboard.

Library modules only ask for loggers; importing them never reads config.
The entry point attaches handlers:

    from budget.logs import configure_from, get_logger
    configure_from(get_config())
    logger = get_logger(__name__)
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

ROOT_LOGGER = "budget"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def setup_logging(level: str = "INFO", log_file: Optional[str] = None,
                  max_bytes: int = 10 * 1024 * 1024, backup_count: int = 5) -> logging.Logger:
    """Attach handlers to the package logger. Safe to call more than once."""
    global _configured

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    _configured = True
    return logger


def configure_from(config) -> logging.Logger:
    """Set up logging from a Config once; later calls return the configured logger."""
    if _configured:
        return logging.getLogger(ROOT_LOGGER)
    return setup_logging(config.log_level, config.log_file, config.log_max_bytes, config.log_backup_count)


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Return a child of the package logger. Handlers are attached by the entry point."""
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
