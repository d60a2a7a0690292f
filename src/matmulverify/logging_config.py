"""
Logging Configuration
Routes the records of every matmulverify module (kernels, collectives,
verification suite) to the console and, optionally, to a log file.
"""
import logging
import sys
from typing import Optional

PACKAGE_LOGGER = "matmulverify"


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    """
    Attach handlers to the package logger; library modules only emit records.

    Calling it again replaces the previous handlers.

    Args:
        level: Threshold for the logger and its handlers (e.g. logging.DEBUG).
        log_file: Optional path of a log file, truncated on each call.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    if logger.hasHandlers():
        logger.handlers.clear()

    # threadName tells ranks of a LocalCluster and pool workers apart
    formatter = logging.Formatter(
        '%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug("Logging to %d handler(s) at level %s.", len(handlers), logging.getLevelName(level))
