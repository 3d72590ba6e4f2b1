"""
Logging configuration for the Logpush adapter
"""

import logging
import os
import sys
from typing import Optional

SERVICE_LOGGER = 'logpush-loki'


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Set up logging configuration for the adapter

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured logger instance
    """
    if level is None:
        level = os.environ.get('LOG_LEVEL', 'INFO')
    level = level.upper()

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stdout
    )

    logger = logging.getLogger(SERVICE_LOGGER)
    logger.setLevel(getattr(logging, level, logging.INFO))

    # Module loggers live under the package name
    logging.getLogger('logpush_loki').setLevel(getattr(logging, level, logging.INFO))

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance, defaulting to the service logger"""
    return logging.getLogger(name or SERVICE_LOGGER)
