"""
Logging setup for the backend.

Configures loguru on import and routes records from the standard ``logging``
module (used by core/) into it, so everything ends up in one sink. The app
calls setup_logging again once settings are loaded, so the ``logLevel``
option of config.yaml applies as well as the LOG_LEVEL variable.
"""

import logging
import os
import sys

from loguru import logger

LOG_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{line} - {message}"


class InterceptHandler(logging.Handler):
    """Forward stdlib log records to loguru."""

    def emit(self, record: logging.LogRecord):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller outside the logging module
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str, sink=sys.stderr) -> int:
    """Replace the loguru sink and intercept stdlib logging.

    Args:
        level: Minimum level name, case-insensitive
        sink: Where records go (stderr by default)

    Returns:
        The loguru handler id
    """
    logger.remove()
    handler_id = logger.add(sink, level=level.upper(), format=LOG_FORMAT)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers = [InterceptHandler()]

    return handler_id


setup_logging(os.environ.get("LOG_LEVEL", "INFO"))
