"""
Logging setup for the schedule_hub logger tree.

Every module logs through a named child logger, e.g.
``logging.getLogger("schedule_hub.services.calendar_manager")``.
Hosts that already configure logging can skip ``configure_logging``;
records then propagate to their root handlers.
"""

import logging
import sys
from typing import Optional

from schedule_hub.core.config import settings


ROOT_LOGGER_NAME = "schedule_hub"

LOG_FORMAT = "[%(asctime)s] %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Attach a stderr handler to the schedule_hub logger.

    stdout is left to command output (credential JSON, event lines).

    Safe to call more than once: the handler is only added the first time,
    later calls just update the level.

    Args:
        level: Log level name (defaults to settings.LOG_LEVEL)

    Returns:
        The configured "schedule_hub" logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel((level or settings.LOG_LEVEL).upper())

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    return logger
