"""
Logging configuration for the coupon system.

One package logger writes to stdout; modules get children of it via
``get_logger(__name__)``.
"""
import logging
import sys

from coupon_system.core.config import settings

LOGGER_NAME = "coupon_system"

logger = logging.getLogger(LOGGER_NAME)
logger.setLevel(settings.LOG_LEVEL.upper())

if not logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(settings.LOG_LEVEL.upper())

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    console_handler.setFormatter(formatter)

    logger.addHandler(console_handler)

# Avoid duplicate lines through the root logger
logger.propagate = False


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Module name; a leading ``coupon_system.`` is not repeated.

    Returns:
        Logger instance under the package logger
    """
    if not name:
        return logger
    if name == LOGGER_NAME or name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
