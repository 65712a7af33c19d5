"""Logging configuration for applications embedding the client.

Only the `oapi_client` logger namespace is configured. The root logger and any
handlers the host application installed are left untouched; records still
propagate to them.
"""

import logging
from typing import Optional

from oapi_client.settings import Settings

PACKAGE_LOGGER_NAME = "oapi_client"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

DEFAULT_LOG_LEVEL = "INFO"


def _resolve_level(level_name: str) -> Optional[int]:
    level = logging.getLevelName(level_name)
    return level if isinstance(level, int) else None


def setup_logging(settings: Optional[Settings] = None, handler: Optional[logging.Handler] = None) -> logging.Logger:
    """
    Sets the level of the client's loggers from LOG_LEVEL.

    Args:
        settings: Where LOG_LEVEL is read from. Defaults to a fresh `Settings`.
        handler: Optional handler attached to the package logger, for hosts that
            want the client's records somewhere of their own. It gets
            `LOG_FORMAT` unless it already has a formatter. Attaching the same
            handler twice is a no-op.

    Returns:
        The package logger.
    """
    settings = settings or Settings()
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)

    level_name = settings.get_log_level(default=DEFAULT_LOG_LEVEL)
    level = _resolve_level(level_name)
    if level is None:
        package_logger.setLevel(DEFAULT_LOG_LEVEL)
        package_logger.warning(f"Invalid LOG_LEVEL '{level_name}', using {DEFAULT_LOG_LEVEL}")
    else:
        package_logger.setLevel(level)

    if handler is not None and handler not in package_logger.handlers:
        if handler.formatter is None:
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)

    package_logger.debug(f"Client logging configured with level {logging.getLevelName(package_logger.level)}")
    return package_logger
