"""
Scratch workspace management.

Every invocation expands its repository into a uniquely named ephemeral
directory. ``scratch_workspace`` guarantees exactly one release per acquire
on every exit path; ``retain=True`` hands the directory over to a mount point
instead of deleting it.
"""
from __future__ import annotations

import logging
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Union

from .settings import Settings

__all__ = ["Workspace", "WORKSPACE_PREFIX", "acquire", "release", "scratch_workspace"]

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "baz-"


@dataclass(frozen=True)
class Workspace:
    """Handle to one scratch directory holding one expanded repository."""
    path: Path

    def __str__(self) -> str:
        return str(self.path)

    @property
    def repository(self) -> Path:
        """Repository location inside the workspace (the workspace itself)."""
        return self.path


def acquire(settings: Settings) -> Workspace:
    """
    Create a fresh, empty, uniquely named workspace directory.

    Uniqueness comes from ``tempfile.mkdtemp``.

    Args:
        settings: Settings supplying the optional workspace root

    Returns:
        Workspace handle
    """
    path = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=settings.workspace_root))
    logger.debug(f"Acquired workspace {path}")
    return Workspace(path=path)


def release(workspace: Union[Workspace, str, Path], retain: bool = False) -> None:
    """
    Remove a workspace directory recursively unless ``retain`` is set.

    Args:
        workspace: Workspace handle or path (e.g. recovered from a breadcrumb)
        retain: Keep the directory

    Raises:
        ValueError: If the path does not look like a workspace
    """
    path = workspace.path if isinstance(workspace, Workspace) else Path(workspace)
    if retain:
        logger.debug(f"Retaining workspace {path}")
        return
    if not path.name.startswith(WORKSPACE_PREFIX):
        raise ValueError(f"refusing to remove {path}: not a scratch workspace")
    shutil.rmtree(path, ignore_errors=True)
    logger.debug(f"Released workspace {path}")


@contextmanager
def scratch_workspace(settings: Settings, *, retain: bool = False) -> Iterator[Workspace]:
    """
    Scope a workspace to a ``with`` block.

    The workspace is released however the block exits, including
    KeyboardInterrupt and SystemExit, unless ``retain`` is set.

    Args:
        settings: Settings supplying the optional workspace root
        retain: Transfer ownership elsewhere instead of deleting

    Yields:
        Workspace handle
    """
    workspace = acquire(settings)
    try:
        yield workspace
    finally:
        release(workspace, retain=retain)
