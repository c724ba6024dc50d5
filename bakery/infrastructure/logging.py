"""
Logging infrastructure.

Provides logging utilities for the infrastructure layer.
"""
import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Attach the console handler to the package logger.

    Args:
        level: Log level for the ``bakery`` logger tree

    Returns:
        The configured package logger
    """
    root = logging.getLogger("bakery")
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)
    # Engine chatter is only wanted with DB_ECHO_SQL
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance.

    Args:
        name: Logger name (usually module name)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
