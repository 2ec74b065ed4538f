"""
Borg Backup repository adapter.

Implements the RepositoryStore protocol by running the ``borg`` executable.
Every call receives its child environment from Settings, which carries the
relocated-repository permission: each decode puts the repository at a fresh
path, so the path borg recorded never matches.
"""
from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from pydantic import ValidationError

from ..models import EncryptionMode, RestoreMode, SnapshotInfo, SnapshotListing
from ..settings import Settings
from ..workspace import Workspace
from .base import RepositoryStore
from .errors import NoSnapshotsError, RepositoryToolError, SnapshotNotFound

__all__ = ["BorgRepository"]

logger = logging.getLogger(__name__)


class BorgRepository(RepositoryStore):
    """
    RepositoryStore adapter backed by Borg Backup.

    The adapter performs no retries; a non-zero exit status surfaces as
    RepositoryToolError carrying borg's stderr.
    """

    def __init__(self, *, settings: Settings) -> None:
        """
        Initialize the adapter.

        Args:
            settings: Settings with the borg binary and environment policy
        """
        self._settings = settings

    def init(self, workspace: Workspace, encryption_mode: EncryptionMode,
             extra_options: Sequence[str] = ()) -> None:
        self._run([
            "init", "--encryption", EncryptionMode(encryption_mode).value,
            *extra_options, str(workspace.repository),
        ])

    def snapshot(self, workspace: Workspace, tag: str, source_dir: Path) -> None:
        source = Path(source_dir).resolve()
        # Run from the parent so the snapshot holds the directory under its own name
        self._run(
            ["create", *self._progress(), f"{workspace.repository}::{tag}", source.name],
            cwd=source.parent,
        )

    def list_snapshots(self, workspace: Workspace) -> Iterator[SnapshotInfo]:
        result = self._run(["list", "--json", str(workspace.repository)], capture_stdout=True)
        try:
            listing = SnapshotListing.model_validate_json(result.stdout)
        except ValidationError as e:
            raise RepositoryToolError(f"Unexpected output from borg list: {e}") from e
        yield from listing.archives

    def restore(self, workspace: Workspace, tag: Optional[str], destination: Path,
                mode: RestoreMode) -> None:
        resolved = self._resolve_tag(workspace, tag)
        archive = f"{workspace.repository}::{resolved}"
        mode = RestoreMode(mode)
        if mode is RestoreMode.EXTRACT:
            # The snapshot wraps the source tree in its directory name; drop it
            self._run(
                ["extract", *self._progress(), "--strip-components", "1", archive],
                cwd=Path(destination),
            )
        else:
            self._run(["mount", archive, str(destination)])

    def unmount(self, mount_dir: Path) -> None:
        self._run(["umount", str(mount_dir)])

    def _resolve_tag(self, workspace: Workspace, tag: Optional[str]) -> str:
        """Return tag, or the most recent snapshot's tag when tag is None."""
        snapshots = list(self.list_snapshots(workspace))
        if tag is None:
            if not snapshots:
                raise NoSnapshotsError("This archive contains no snapshots.")
            latest = snapshots[-1].tag
            logger.debug(f"Defaulting to most recent snapshot {latest}")
            return latest
        if tag not in {s.tag for s in snapshots}:
            raise SnapshotNotFound(tag)
        return tag

    def _progress(self) -> List[str]:
        return ["--progress"] if self._settings.show_progress else []

    def _run(self, args: Sequence[str], *, cwd: Optional[Path] = None,
             capture_stdout: bool = False) -> subprocess.CompletedProcess:
        """
        Run one borg command.

        stderr is captured for diagnostics unless progress display is on.

        Raises:
            RepositoryToolError: If borg cannot be started or exits non-zero
        """
        command = [self._settings.borg_bin, *args]
        logger.debug(f"Running {' '.join(command)}" + (f" (cwd={cwd})" if cwd else ""))
        try:
            result = subprocess.run(
                command,
                cwd=str(cwd) if cwd is not None else None,
                env=self._settings.tool_env(),
                stdout=subprocess.PIPE if capture_stdout else None,
                stderr=None if self._settings.show_progress else subprocess.PIPE,
                text=True,
            )
        except OSError as e:
            raise RepositoryToolError(
                f"Cannot run {self._settings.borg_bin}: {e}", command=command
            ) from e

        if result.returncode != 0:
            raise RepositoryToolError(
                f"borg {args[0]} failed with exit status {result.returncode}",
                command=command,
                returncode=result.returncode,
                stderr=result.stderr or "",
            )
        return result
