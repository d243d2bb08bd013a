"""Logging setup."""

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from healthwatch.core.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
HANDLER_NAME = "healthwatch"


def setup_logging(settings: Settings) -> logging.Handler:
    """Install the stdout handler on the root logger.

    Calling it again replaces the handler instead of adding a second one.
    """
    root_logger = logging.getLogger()

    for handler in list(root_logger.handlers):
        if handler.get_name() == HANDLER_NAME:
            root_logger.removeHandler(handler)

    log_handler = logging.StreamHandler(sys.stdout)
    log_handler.set_name(HANDLER_NAME)

    if settings.log_format == "json":
        formatter: logging.Formatter = JsonFormatter(LOG_FORMAT)
    else:
        formatter = logging.Formatter(LOG_FORMAT)

    log_handler.setFormatter(formatter)

    root_logger.setLevel(settings.log_level.upper())
    root_logger.addHandler(log_handler)
    return log_handler
