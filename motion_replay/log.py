"""Logging setup for the motion_replay package.

Modules log through ``logging.getLogger(__name__)``; this module only
configures handlers and the package-wide level.
"""

import logging
from pathlib import Path
from typing import Optional, Union

PACKAGE_LOGGER = "motion_replay"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(
    level: int = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """Send log records to the console and, optionally, a file."""
    handlers = [logging.StreamHandler()]
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(log_file), mode='a'))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    if log_file is not None:
        logger.info(f"Logging to console and file: {log_file}")
    return logger


def set_debug_logging(enabled: bool) -> None:
    """Switch the package logger between DEBUG and INFO."""
    logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG if enabled else logging.INFO)
