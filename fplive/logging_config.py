"""Logging for the live engine and the ticker CLI.

Every module logs through a child of the 'fplive' logger ('fplive.ticker',
'fplive.engine', 'fplive.cli', ...), so one call to `setup_logging` routes
bonus flips, auto-subs, scheduler transitions and upstream failures to the
same handlers. A one-off poll usually logs to the console only; `--watch`
runs for hours across kickoff windows and also writes a timestamped file.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Union


def setup_logging(
    log_dir: Optional[Path] = None,
    level: Union[int, str] = logging.INFO,
    log_to_file: bool = True,
    log_to_console: bool = True,
) -> logging.Logger:
    """
    Attach handlers to the 'fplive' logger, replacing any from an earlier call.

    Args:
        log_dir: Directory for fplive_<timestamp>.log files (default: ./logs)
        level: Number or name as given to --log-level; unknown names mean INFO
        log_to_file: Write the detailed format to a log file
        log_to_console: Write the short format to stdout

    Returns:
        The 'fplive' logger

    Example:
        logger = setup_logging(level='DEBUG', log_to_file=False)
        logger.info("Polling gameweek 10")
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger('fplive')
    logger.setLevel(level)
    logger.handlers = []

    if log_to_file:
        log_dir = log_dir or Path('logs')
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f'fplive_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log'
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter(
                '%(asctime)s %(levelname)s %(name)s [%(filename)s:%(lineno)d] %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S',
            )
        )
        logger.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter('%(levelname)s %(name)s: %(message)s'))
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str = 'fplive') -> logging.Logger:
    """Logger under the 'fplive' tree; unconfigured until setup_logging() runs."""
    return logging.getLogger(name)
