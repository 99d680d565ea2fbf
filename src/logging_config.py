"""
Centralized logging configuration for obclient.
Logs to stderr and to a rotating file; stdout is reserved for book summaries.
"""
import logging
import logging.handlers
import os
from datetime import datetime
from pathlib import Path
from typing import Optional


class LogConfig:
    """Centralized logging configuration."""

    LOG_DIR = Path(os.getenv("OB_LOG_DIR", "./logs"))

    # Log levels
    CONSOLE_LEVEL = logging.INFO
    FILE_LEVEL = logging.DEBUG

    # Log formats
    DETAILED_FORMAT = '%(asctime)s | %(name)-30s | %(levelname)-8s | %(message)s'
    SIMPLE_FORMAT = '%(levelname)-8s | %(message)s'
    DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

    @classmethod
    def _console_handler(cls, level: int) -> logging.Handler:
        handler = logging.StreamHandler()  # stderr
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(cls.SIMPLE_FORMAT, datefmt=cls.DATE_FORMAT))
        return handler

    @classmethod
    def _file_handler(cls, log_file: str) -> logging.Handler:
        cls.LOG_DIR.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            cls.LOG_DIR / log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB per file
            backupCount=10,
        )
        handler.setLevel(cls.FILE_LEVEL)
        handler.setFormatter(logging.Formatter(cls.DETAILED_FORMAT, datefmt=cls.DATE_FORMAT))
        return handler

    @classmethod
    def configure(cls, level: str = "INFO", log_dir: Optional[str] = None,
                  log_file: str = "obclient.log", to_file: bool = True) -> logging.Logger:
        """
        Configure the root logger once for the whole process.

        Args:
            level: Console level name (DEBUG, INFO, ...)
            log_dir: Directory for the rotating log file. Defaults to LOG_DIR.
            log_file: File name inside log_dir.
            to_file: Set False to log to the console only.

        Returns:
            The root logger
        """
        if log_dir is not None:
            cls.LOG_DIR = Path(log_dir)
        cls.CONSOLE_LEVEL = logging.getLevelName(level.upper())
        if not isinstance(cls.CONSOLE_LEVEL, int):
            raise ValueError(f"unknown log level: {level}")

        root = logging.getLogger()
        root.handlers = []
        root.setLevel(logging.DEBUG)  # Capture everything; handlers filter
        root.addHandler(cls._console_handler(cls.CONSOLE_LEVEL))
        if to_file:
            root.addHandler(cls._file_handler(log_file))
        return root

    @classmethod
    def setup_session_logger(cls) -> logging.Logger:
        """
        Session-wide logger. Records go to a timestamped session file and
        propagate to the root handlers.
        """
        session_logger = logging.getLogger("SESSION")
        if session_logger.handlers:
            return session_logger

        session_name = datetime.now().strftime("%Y%m%d_%H%M%S")
        cls.LOG_DIR.mkdir(parents=True, exist_ok=True)
        session_handler = logging.FileHandler(cls.LOG_DIR / f"session_{session_name}.log")
        session_handler.setLevel(logging.DEBUG)
        session_handler.setFormatter(logging.Formatter(cls.DETAILED_FORMAT, datefmt=cls.DATE_FORMAT))
        session_logger.addHandler(session_handler)
        session_logger.setLevel(logging.DEBUG)

        session_logger.info(f"=== SESSION STARTED: {session_name} ===")
        return session_logger


# Convenience functions
def configure_logging(level: str = "INFO", log_dir: Optional[str] = None, to_file: bool = True) -> logging.Logger:
    return LogConfig.configure(level=level, log_dir=log_dir, to_file=to_file)


def setup_session_logger() -> logging.Logger:
    """Set up session-wide logging."""
    return LogConfig.setup_session_logger()
