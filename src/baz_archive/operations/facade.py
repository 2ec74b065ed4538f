"""
Operations Facade - Container lifecycle orchestration.

Sequences the codec, workspace, tag ledger and repository adapter into the
user-facing operations (create, update, list, extract, mount, unmount) while
keeping CLI commands thin and testable.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from .. import breadcrumb, container, ledger
from ..errors import (
    DestinationExistsError,
    MissingPathError,
    MountError,
    NotMountedError,
    OutputDirError,
    TagConflictError,
)
from ..models import EncryptionMode, RestoreMode, SnapshotInfo, validate_tag
from ..settings import Settings
from ..storage.base import RepositoryStore
from ..storage.errors import RepositoryError, RepositoryToolError
from ..workspace import Workspace, release, scratch_workspace

__all__ = ["Operations", "CreateResult", "UpdateResult", "MountResult", "MOUNT_ERROR_NAME"]

logger = logging.getLogger(__name__)

# Diagnostic left in a workspace kept after a failed mount
MOUNT_ERROR_NAME = ".ba-error"


@dataclass(frozen=True)
class CreateResult:
    container: Path
    tag: str
    compression: str


@dataclass(frozen=True)
class UpdateResult:
    container: Path
    tag: str
    compression: str


@dataclass(frozen=True)
class MountResult:
    mount_dir: Path
    workspace: Path


def _working_path(container_path: Path) -> Path:
    """Temporary name the new container is built under during update."""
    return container_path.with_name(f".{container_path.name}.working")


class Operations:
    """
    Application service facade for the container lifecycle.

    Design Notes: ordering guarantees

    - create: ledger, init, first snapshot, encode. Nothing is written at
      the container path until the final encode succeeds.
    - update: the new container is built under a temporary name and renamed
      over the old one as the very last step. That rename is the commit
      point; any earlier failure leaves the previous container untouched.
    - mount: the workspace outlives the invocation. Its path is recorded in
      a breadcrumb inside the mount directory for unmount to reclaim.
    - unmount: the view is torn down before the breadcrumb is read, since
      the live overlay hides it.

    The facade holds no state beyond its injected settings and repository.
    """

    def __init__(self, settings: Settings, repository: RepositoryStore):
        """
        Initialize Operations facade.

        Args:
            settings: Configuration settings
            repository: Versioned-repository adapter
        """
        self.settings = settings
        self.repository = repository

    def create(self, container_path: str | Path, source_dir: str | Path, *,
               encryption_mode: EncryptionMode = EncryptionMode.NONE,
               extra_options: Sequence[str] = ()) -> CreateResult:
        """
        Create a new container holding a first snapshot of ``source_dir``.

        Args:
            container_path: Container file to write
            source_dir: Dataset directory to snapshot
            encryption_mode: Repository encryption mode
            extra_options: Options passed through to repository init

        Returns:
            CreateResult with the container path and initial tag
        """
        out = Path(container_path)
        source = self._require_dir(source_dir)
        if out.exists():
            logger.warning(f"Replacing existing archive {out}")

        tag = ledger.initialize(source)
        with scratch_workspace(self.settings) as ws:
            self.repository.init(ws, encryption_mode, extra_options)
            self.repository.snapshot(ws, tag, source)
            used = container.encode(ws.path, out, self.settings)

        logger.info(f"Created {out} with snapshot {tag}")
        return CreateResult(container=out, tag=tag, compression=used.name)

    def update(self, container_path: str | Path, source_dir: str | Path,
               tag: Optional[str] = None) -> UpdateResult:
        """
        Add a snapshot of ``source_dir`` to an existing container.

        Args:
            container_path: Existing container file
            source_dir: Dataset directory to snapshot
            tag: Snapshot tag (defaults to the ledger's next automatic tag)

        Returns:
            UpdateResult with the tag that was used

        Raises:
            TagConflictError: If the tag already names a snapshot
        """
        target = Path(container_path)
        source = self._require_dir(source_dir)

        resolved_tag = validate_tag(tag) if tag else ledger.next_auto_tag(source)
        ledger.append(source, resolved_tag)

        with scratch_workspace(self.settings) as ws:
            container.decode(target, ws.path)

            existing = {snap.tag for snap in self.repository.list_snapshots(ws)}
            if resolved_tag in existing:
                raise TagConflictError(resolved_tag)

            self.repository.snapshot(ws, resolved_tag, source)

            working = _working_path(target)
            try:
                used = container.encode(ws.path, working, self.settings)
                os.replace(working, target)
            except BaseException:
                working.unlink(missing_ok=True)
                raise

        logger.info(f"Updated {target} with snapshot {resolved_tag}")
        return UpdateResult(container=target, tag=resolved_tag, compression=used.name)

    def extract(self, container_path: str | Path, output_dir: str | Path,
                tag: Optional[str] = None, *, overwrite: bool = False) -> Path:
        """
        Extract a snapshot's files into ``output_dir``.

        Args:
            container_path: Container file
            output_dir: Destination directory (created if missing)
            tag: Snapshot tag (defaults to the most recent)
            overwrite: Proceed even if output_dir already exists

        Returns:
            The output directory

        Raises:
            DestinationExistsError: If output_dir exists and overwrite is False
            OutputDirError: If output_dir cannot be created
        """
        out = Path(output_dir)
        if out.exists() and not overwrite:
            raise DestinationExistsError(str(out))
        try:
            out.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputDirError(f"Cannot create output directory '{out}': {e}") from e

        with scratch_workspace(self.settings) as ws:
            container.decode(container_path, ws.path)
            self.repository.restore(ws, tag, out, RestoreMode.EXTRACT)

        logger.info(f"Extracted {container_path} to {out}")
        return out

    def list(self, container_path: str | Path) -> List[SnapshotInfo]:
        """
        List the snapshots stored in a container, oldest first.

        Args:
            container_path: Container file

        Returns:
            Snapshots as (tag, timestamp) records
        """
        with scratch_workspace(self.settings) as ws:
            container.decode(container_path, ws.path)
            return [snap for snap in self.repository.list_snapshots(ws)]

    def mount(self, container_path: str | Path, mount_dir: str | Path,
              tag: Optional[str] = None) -> MountResult:
        """
        Mount a snapshot read-only at ``mount_dir``.

        The workspace is retained: ownership passes to the mount point and
        is reclaimed by ``unmount``. When the repository tool fails, the
        workspace is also kept, with the diagnostic saved inside it.

        Args:
            container_path: Container file
            mount_dir: Mount point (created if missing)
            tag: Snapshot tag (defaults to the most recent)

        Returns:
            MountResult with the mount point and backing workspace

        Raises:
            MountError: If the mount directory cannot be created or mounting fails
        """
        mnt = Path(mount_dir)
        try:
            mnt.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise MountError(f"Cannot create mount directory '{mnt}'.", str(e)) from e

        with scratch_workspace(self.settings, retain=True) as ws:
            breadcrumb.write(mnt, ws.path)
            try:
                container.decode(container_path, ws.path)
            except BaseException:
                # Nothing to inspect yet; do not hand this workspace over
                breadcrumb.remove(mnt)
                release(ws)
                raise

            try:
                self.repository.restore(ws, tag, mnt, RestoreMode.MOUNT)
            except RepositoryError as e:
                self._keep_mount_diagnostic(ws, mnt, e)

        logger.info(f"Mounted {container_path} at {mnt} (workspace {ws.path})")
        return MountResult(mount_dir=mnt, workspace=ws.path)

    def unmount(self, mount_dir: str | Path) -> Path:
        """
        Unmount a view created by ``mount`` and reclaim its workspace.

        Two-step protocol: unmount first, then read the breadcrumb, which the
        live mount hides.

        Args:
            mount_dir: Mount point

        Returns:
            Path of the workspace that was released

        Raises:
            NotMountedError: If no breadcrumb is found after unmounting
        """
        mnt = Path(mount_dir)
        try:
            self.repository.unmount(mnt)
        except RepositoryToolError:
            # A visible breadcrumb means no overlay is live: the view is already gone
            if breadcrumb.read(mnt) is None:
                raise
            logger.warning(f"{mnt} was not mounted; reclaiming its stale workspace")

        workspace_path = breadcrumb.read(mnt)
        if workspace_path is None:
            raise NotMountedError(f"'{mnt}' was not mounted by this tool (no {breadcrumb.BREADCRUMB_NAME} found).")

        # Release first: a rejected path keeps the breadcrumb for inspection
        release(workspace_path)
        breadcrumb.remove(mnt)
        logger.info(f"Unmounted {mnt} and released {workspace_path}")
        return workspace_path

    def _require_dir(self, source_dir: str | Path) -> Path:
        source = Path(source_dir)
        if not source.is_dir():
            raise MissingPathError(f"Path to root of archive directory does not exist: {source_dir}")
        return source

    def _keep_mount_diagnostic(self, ws: Workspace, mnt: Path, error: RepositoryError) -> None:
        """Save the tool's diagnostic in the workspace and raise MountError."""
        diagnostic = (getattr(error, "stderr", "") or str(error)).strip()
        (ws.path / MOUNT_ERROR_NAME).write_text(diagnostic + "\n", encoding="utf-8")
        breadcrumb.remove(mnt)
        raise MountError("Failed to mount:", diagnostic, workspace=str(ws.path)) from error
