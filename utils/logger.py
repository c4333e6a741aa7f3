"""
Shared logger utility for the competitive intelligence engine.
Library modules only call ``logging.getLogger(__name__)``; entry points such
as the demo use ``get_logger`` to attach a console handler.
"""

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def get_logger(name: str | None = None, level: int = logging.INFO) -> logging.Logger:
    """
    Returns a logger with the specified name, configured with a standard format.
    If no name is provided, returns the root logger.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger
