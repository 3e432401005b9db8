"""Logging setup with Rich console output and an optional log file"""

import logging
import os
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

import settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(
    level: Union[str, int, None] = None,
    log_file: Optional[str] = None,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Configure the root logger

    Existing handlers are removed first so repeated calls do not duplicate
    output.

    Args:
        level: Log level name or number (defaults to settings.LOG_LEVEL)
        log_file: File to append log records to (defaults to settings.LOG_FILE,
            empty disables the file)
        console: Rich console for terminal output (creates one on stderr if None)

    Returns:
        The configured root logger
    """
    if level is None:
        level = settings.LOG_LEVEL
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    if log_file is None:
        log_file = settings.LOG_FILE

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = os.path.abspath(log_file)
        file_handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(file_handler)
        root_logger.debug(f"Logging to {log_path}")

    return root_logger
