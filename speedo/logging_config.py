"""
Logging configuration for the SpeedoTransfer API.

Logs go to stderr in a single uniform format so they are picked up by
whatever process manager runs uvicorn (systemd, Docker, Kubernetes).
"""

import logging

from speedo.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging() -> None:
    """
    Configure the root logger and the `speedo` service logger.

    Safe to call more than once — existing handlers on the service logger
    are replaced rather than duplicated.
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    service_logger = logging.getLogger("speedo")
    service_logger.setLevel(level)
    service_logger.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    service_logger.addHandler(console_handler)
    service_logger.propagate = False

    # SQL echo is controlled by DEBUG; keep the engine logger quiet otherwise
    if not settings.DEBUG:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Convenience wrapper to get a named logger."""
    return logging.getLogger(name)
