import logging
import sys

from balance_ledger.core.config import settings

PACKAGE_LOGGER = "balance_ledger"


def configure_logging(level: str = None) -> logging.Logger:
    """Configure the package logger with a single stderr handler."""

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel((level or settings.LOG_LEVEL).upper())
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(fmt=settings.LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    )
    logger.addHandler(handler)
    return logger
