"""Logging setup for the vendorpatch command line."""

import logging
import os
import sys

LOGGER_NAME = "vendorpatch"
LOG_LEVEL_ENV_VAR = "VENDORPATCH_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _default_level() -> int:
    name = os.getenv(LOG_LEVEL_ENV_VAR, "").strip().upper()
    level = logging.getLevelName(name) if name else logging.INFO
    return level if isinstance(level, int) else logging.INFO


def setup_logging(level: int | None = None) -> logging.Logger:
    """
    Attach a stderr handler to the ``vendorpatch`` logger.

    Handlers installed by an earlier call are replaced, so repeated calls
    (one per CLI invocation) never duplicate output.
    """

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_vendorpatch_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._vendorpatch_handler = True
    logger.addHandler(handler)

    logger.setLevel(level if level is not None else _default_level())
    logger.propagate = False
    return logger
