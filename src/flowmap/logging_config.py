"""
Logging Configuration
Sets up the 'flowmap' logger for the desktop application and scripts.
"""
import logging
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%H:%M:%S'


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    tick_debug: bool = False
) -> logging.Logger:
    """
    Configures the logger for the 'flowmap' namespace.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file.
        tick_debug: Playback ticks fire every few milliseconds and flood DEBUG
            output. They stay at INFO unless this is set.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger("flowmap")
    logger.setLevel(level)

    # Re-running setup (e.g. after a restart from the shell) must not duplicate output
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if not tick_debug:
        logging.getLogger("flowmap.controller.playback").setLevel(max(level, logging.INFO))

    logger.info("Logging initialized.")
    return logger
