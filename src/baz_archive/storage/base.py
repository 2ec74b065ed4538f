"""
Storage interfaces for baz-archive.

This protocol defines the boundary between the lifecycle orchestrator and the
external versioned-repository tool, enabling clean dependency injection and
testing with fakes. Every call operates on a repository living inside a
scratch workspace.
"""
from __future__ import annotations

from pathlib import Path
from typing import Iterator, Optional, Protocol, Sequence, runtime_checkable

from ..models import EncryptionMode, RestoreMode, SnapshotInfo
from ..workspace import Workspace

__all__ = ["RepositoryStore"]


@runtime_checkable
class RepositoryStore(Protocol):
    """Protocol for versioned-repository operations."""

    def init(self, workspace: Workspace, encryption_mode: EncryptionMode,
             extra_options: Sequence[str] = ()) -> None:
        """
        Create a new, empty repository in the workspace.

        Args:
            workspace: Scratch workspace to initialize
            encryption_mode: Repository encryption mode
            extra_options: Tool-specific options, passed through uninterpreted

        Raises:
            RepositoryToolError: If the tool fails
        """
        ...

    def snapshot(self, workspace: Workspace, tag: str, source_dir: Path) -> None:
        """
        Create one immutable snapshot named ``tag`` from ``source_dir``.

        Raises:
            RepositoryToolError: If the tool fails, including when the tag exists
        """
        ...

    def list_snapshots(self, workspace: Workspace) -> Iterator[SnapshotInfo]:
        """
        Enumerate snapshots ordered by creation time.

        Returns:
            Lazy, finite, non-restartable iterator of snapshots
        """
        ...

    def restore(self, workspace: Workspace, tag: Optional[str], destination: Path,
                mode: RestoreMode) -> None:
        """
        Bring a snapshot out of the repository.

        Args:
            workspace: Workspace holding the repository
            tag: Snapshot tag, or None for the most recently created one
            destination: Existing directory to extract into or mount onto
            mode: EXTRACT materializes files; MOUNT exposes a live read-only
                view that stays valid only while the workspace exists

        Raises:
            NoSnapshotsError: If tag is None and the repository is empty
            RepositoryToolError: If the tool fails
        """
        ...

    def unmount(self, mount_dir: Path) -> None:
        """
        Tear down a read-only view created by ``restore(..., MOUNT)``.

        Raises:
            RepositoryToolError: If the tool fails
        """
        ...
