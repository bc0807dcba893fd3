"""
Logging for the engine: one stdout handler on the package logger, shared by
every module logger below it.
"""

import logging
import sys
from typing import Optional

from impact_engine.config import Config

PACKAGE_LOGGER = "impact_engine"


def setup_logger(
    level: Optional[str] = None,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the package logger once.

    Level and format default to Config.LOG_LEVEL / Config.LOG_FORMAT. Calling
    again with explicit values updates the level and formatter in place
    instead of stacking handlers.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    level_name = (level or Config.LOG_LEVEL).upper()
    formatter = logging.Formatter(format_string or Config.LOG_FORMAT)

    logger.setLevel(getattr(logging, level_name, logging.INFO))
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        logger.addHandler(handler)
    for handler in logger.handlers:
        handler.setFormatter(formatter)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Module logger under the package logger, configuring the latter on first use."""
    package = logging.getLogger(PACKAGE_LOGGER)
    if not package.handlers:
        setup_logger()
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
