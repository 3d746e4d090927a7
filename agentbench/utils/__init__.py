"""Utility modules for agentbench."""

from .logging_utils import RunLog, get_logger, setup_logging
from .process import ProcessResult, probe_version, run_process, shell_command

__all__ = [
    "ProcessResult",
    "RunLog",
    "get_logger",
    "probe_version",
    "run_process",
    "setup_logging",
    "shell_command",
]
