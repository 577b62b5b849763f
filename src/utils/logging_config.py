import logging
import os
import sys
from typing import Union

LOG_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def resolve_level(level: Union[int, str, None]) -> int:
    """Maps a level name ("debug", "WARN") or number to a logging level; unknown names give INFO."""
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, int):
        return level
    return LOG_LEVELS.get(level.strip().upper(), logging.INFO)


def setup_logging(name: str = "grocery_reconciler", level: Union[int, str, None] = None) -> logging.Logger:
    """
    Sets up the project logger.
    
    Args:
        name: Name of the logger.
        level: Logging level or level name. When omitted, LOG_LEVEL from
            the environment is used (default: INFO). Passing a level to an
            already configured logger only changes its level.
        
    Returns:
        logging.Logger: Configured logger instance.
    """
    logger = logging.getLogger(name)
    
    # Avoid duplicate handlers if already configured
    if logger.handlers:
        if level is not None:
            logger.setLevel(resolve_level(level))
        return logger

    logger.setLevel(resolve_level(level))
    
    # Formatter
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    
    # Console Handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    
    return logger

# Default logger for the project
logger = setup_logging()
