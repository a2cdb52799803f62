import logging
import os
import sys

LOG_LEVEL_ENV = "MARKETWATCHER_LOG_LEVEL"


def configure_logging(level=logging.INFO):
    """
    Send all log records to stderr so stdout stays reserved for JSON output.
    MARKETWATCHER_LOG_LEVEL (e.g. DEBUG) wins over the level argument.
    """
    env_level = os.environ.get(LOG_LEVEL_ENV)
    if env_level:
        level = logging.getLevelName(env_level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    formatter = logging.Formatter('[%(levelname)s] %(name)s: %(message)s')
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    if root_logger.handlers:
        root_logger.handlers.clear()

    root_logger.addHandler(handler)
