"""
Logging setup for vCloud Director Client.
The client logs to the ``vcloud-client`` logger; applications may attach a
rotating log file and a console stream to it through ``Logger.initialize``.
"""

import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional


LOGGER_NAME = 'vcloud-client'

FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
CONSOLE_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def _file_handler(log_file: Path, max_size_mb: int, backup_count: int) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding='utf-8'
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    return handler


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))
    return handler


class Logger:
    """
    Process-wide handler setup for the client's logger.
    Only the first initialization takes effect until ``reset()``.
    """

    _instance: Optional['Logger'] = None
    _logger: Optional[logging.Logger] = None

    def __init__(self, log_file: Optional[Path] = None, log_level: str = 'INFO',
                 max_size_mb: int = 10, backup_count: int = 5):
        """
        Attach handlers to the client's logger.

        Args:
            log_file: Rotating log file; console output only when None
            log_level: Level name for the logger and the console
            max_size_mb: Size at which the log file rotates
            backup_count: Rotated files kept on disk
        """
        if Logger._instance is not None and Logger._logger is not None:
            return

        Logger._instance = self

        level = getattr(logging, log_level.upper(), logging.INFO)
        logger = logging.getLogger(LOGGER_NAME)
        logger.setLevel(level)
        logger.handlers.clear()

        if log_file is not None:
            logger.addHandler(_file_handler(Path(log_file), max_size_mb, backup_count))
        logger.addHandler(_console_handler(level))

        Logger._logger = logger

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Return the client's logger, configured or not."""
        if cls._instance is None or cls._logger is None:
            return logging.getLogger(LOGGER_NAME)
        return cls._logger

    @classmethod
    def initialize(cls, log_file: Optional[Path] = None, log_level: str = 'INFO',
                   max_size_mb: int = 10, backup_count: int = 5) -> 'Logger':
        """Configure the client's logger once and return the Logger doing it."""
        if cls._instance is not None:
            return cls._instance

        instance = cls(log_file, log_level, max_size_mb, backup_count)
        cls._instance = instance
        return instance

    @classmethod
    def reset(cls):
        """Drop handlers and forget the configured instance."""
        if cls._logger is not None:
            for handler in list(cls._logger.handlers):
                handler.close()
            cls._logger.handlers.clear()
            cls._logger.setLevel(logging.NOTSET)
            cls._logger.addHandler(logging.NullHandler())
        cls._instance = None
        cls._logger = None


def get_logger() -> logging.Logger:
    return Logger.get_logger()


logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())
