"""Logging utilities for the benchmark harness."""

import logging
import sys
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# Global logger registry
_loggers: dict[str, logging.Logger] = {}


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """Set up logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to log file.
        format_string: Optional custom format string.

    Returns:
        Configured root logger.
    """
    if format_string is None:
        format_string = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(format_string, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get or create a logger with the given name.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Logger instance.
    """
    if name not in _loggers:
        _loggers[name] = logging.getLogger(name)
    return _loggers[name]


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string with a trailing Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class RunLog:
    """Append-only audit trail for a single bench run.

    The file starts with ``RUN_ID:`` and ``STARTED:`` lines, holds one
    ``<timestamp> [CATEGORY] message`` line per event and ends with a
    ``FINISHED:`` line once :meth:`finish` is called.
    """

    FILE_NAME = "run.log"

    def __init__(self, run_root: Path, run_id: str):
        """Create the run directory and write the header lines.

        Args:
            run_root: Directory holding this run's log and report.
            run_id: Unique run identifier.
        """
        self.run_root = Path(run_root)
        self.run_root.mkdir(parents=True, exist_ok=True)
        self.run_id = run_id
        self.path = self.run_root / self.FILE_NAME
        self.logger = get_logger(f"run.{run_id}")
        self._lock = threading.Lock()
        self._finished = False

        with open(self.path, "w", encoding="utf-8") as f:
            f.write(f"RUN_ID: {run_id}\n")
            f.write(f"STARTED: {utc_timestamp()}\n")

    def log(self, category: str, message: str) -> None:
        """Append one event line. Ignored after :meth:`finish`."""
        with self._lock:
            if self._finished:
                return
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(f"{utc_timestamp()} [{category.upper()}] {message}\n")
        self.logger.debug(f"[{category.upper()}] {message}")

    def log_block(self, category: str, title: str, text: str) -> None:
        """Append a multi-line block (such as captured process output)."""
        with self._lock:
            if self._finished:
                return
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(f"{utc_timestamp()} [{category.upper()}] {title}\n")
                f.write(text)
                if text and not text.endswith("\n"):
                    f.write("\n")

    def finish(self) -> None:
        """Write the FINISHED line. Later calls are no-ops."""
        with self._lock:
            if self._finished:
                return
            self._finished = True
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(f"FINISHED: {utc_timestamp()}\n")

    @property
    def finished(self) -> bool:
        return self._finished
