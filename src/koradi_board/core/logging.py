"""Logging setup for the service process."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a timestamped stream handler on the package logger.

    Calling this more than once only updates the level.

    Args:
        level: Log level name; unknown names fall back to INFO.
    """
    package_logger = logging.getLogger("koradi_board")
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)
