"""Isolated working directories for bench runs."""

import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from ..utils.logging_utils import get_logger

logger = get_logger(__name__)

WORKSPACE_PREFIX = "agentbench-ws-"


class WorkspaceState(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class Workspace:
    """A directory owned by exactly one run.

    ``close()`` removes the whole tree on a best-effort basis and may be
    called any number of times. Use it as a context manager to make
    cleanup unconditional.
    """

    def __init__(self, path: Union[str, Path]):
        self.dir = Path(path).resolve()
        self.state = WorkspaceState.OPEN

    @property
    def is_open(self) -> bool:
        return self.state == WorkspaceState.OPEN

    def close(self) -> None:
        """Delete the workspace tree, children before parents.

        Entries that cannot be removed are logged and skipped. Never raises.
        """
        if self.state == WorkspaceState.CLOSED:
            return
        self.state = WorkspaceState.CLOSED

        if not self.dir.exists():
            return

        failures = 0
        for root, dirs, files in os.walk(self.dir, topdown=False):
            for name in files:
                failures += _remove(os.path.join(root, name), os.unlink)
            for name in dirs:
                path = os.path.join(root, name)
                # Symlinked directories are listed as dirs but must be unlinked
                remover = os.unlink if os.path.islink(path) else os.rmdir
                failures += _remove(path, remover)
        failures += _remove(str(self.dir), os.rmdir)

        if failures:
            logger.warning(f"Workspace {self.dir} closed with {failures} undeletable entries")
        else:
            logger.debug(f"Workspace {self.dir} deleted")

    def __enter__(self) -> "Workspace":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Workspace({str(self.dir)!r}, {self.state.value})"


def _remove(path: str, remover) -> int:
    try:
        remover(path)
        return 0
    except FileNotFoundError:
        return 0
    except OSError as e:
        logger.warning(f"Could not delete {path}: {e}")
        return 1


def create_workspace(
    base_dir: Optional[Union[str, Path]] = None,
    prefix: str = WORKSPACE_PREFIX,
) -> Workspace:
    """Create a fresh, uniquely named, empty workspace.

    Args:
        base_dir: Parent directory (created if missing). System temp if None.
        prefix: Directory name prefix.

    Returns:
        An open Workspace.

    Raises:
        OSError: If the directory cannot be created.
    """
    if base_dir is not None:
        Path(base_dir).mkdir(parents=True, exist_ok=True)
    path = tempfile.mkdtemp(prefix=prefix, dir=str(base_dir) if base_dir is not None else None)
    logger.debug(f"Created workspace {path}")
    return Workspace(path)
