"""
Session wrapper that logs a whole feed session.
Use as a (async) context manager.
"""
import asyncio
import logging
import time
from typing import List, Optional

from logging_config import setup_session_logger


class WorkflowSession:
    """
    Context manager for wrapping a workflow with logging.
    Captures start/end times, errors, and an execution summary.
    """

    def __init__(self, name: str = "Workflow", logger: Optional[logging.Logger] = None):
        self.name = name
        self.session_logger = logger or setup_session_logger()
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.errors: List[str] = []
        self.warnings: List[str] = []

    @property
    def duration(self) -> float:
        if self.start_time is None:
            return 0.0
        return (self.end_time or time.time()) - self.start_time

    def _start(self, suffix: str = "") -> None:
        self.start_time = time.time()
        self.session_logger.info(f">>> {self.name} started{suffix}")

    def _finish(self, exc_type, exc_val, exc_tb) -> None:
        self.end_time = time.time()
        duration = self.end_time - self.start_time

        if exc_type is not None and not issubclass(exc_type, (asyncio.CancelledError, KeyboardInterrupt, GeneratorExit)):
            self.errors.append(f"{exc_type.__name__}: {exc_val}")
            self.session_logger.error(
                f"!!! {self.name} FAILED after {duration:.2f}s: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb)
            )
        else:
            self.session_logger.info(f"<<< {self.name} completed in {duration:.2f}s")

        self._log_summary()

    def __enter__(self):
        self._start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._finish(exc_type, exc_val, exc_tb)
        return False  # Re-raise exceptions

    def log_event(self, message: str, level: str = "info"):
        """Log an event during the session."""
        method = getattr(self.session_logger, level.lower(), self.session_logger.info)
        method(f"  - {message}")

        if level.lower() == "error":
            self.errors.append(message)
        elif level.lower() == "warning":
            self.warnings.append(message)

    def _log_summary(self):
        if self.errors or self.warnings:
            self.session_logger.warning(
                f"Session Summary: {len(self.errors)} errors, {len(self.warnings)} warnings"
            )
            for err in self.errors:
                self.session_logger.warning(f"  ERROR: {err}")
            for warn in self.warnings:
                self.session_logger.warning(f"  WARNING: {warn}")


class AsyncWorkflowSession(WorkflowSession):
    """Async version of WorkflowSession for the feed loop."""

    async def __aenter__(self):
        self._start(" (async)")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self._finish(exc_type, exc_val, exc_tb)
        return False
