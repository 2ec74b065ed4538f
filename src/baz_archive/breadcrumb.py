"""
Mount breadcrumb.

A hidden file written into the mount directory before mounting, holding the
path of the workspace that backs the mount. While the read-only view is live
the file is masked by the overlay; it becomes visible again only after the
view is unmounted. Readers must therefore unmount first, then read.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

__all__ = ["BREADCRUMB_NAME", "write", "read", "remove"]

logger = logging.getLogger(__name__)

BREADCRUMB_NAME = ".borg-repo"


def _path(mount_dir: str | Path) -> Path:
    return Path(mount_dir) / BREADCRUMB_NAME


def write(mount_dir: str | Path, workspace_path: str | Path) -> None:
    """Record the workspace path inside the mount directory."""
    path = _path(mount_dir)
    path.write_text(f"{workspace_path}\n", encoding="utf-8")
    logger.debug(f"Wrote mount breadcrumb {path} -> {workspace_path}")


def read(mount_dir: str | Path) -> Optional[Path]:
    """
    Recover the workspace path, or None when no breadcrumb is visible.

    Only meaningful after the overlay has been unmounted.
    """
    path = _path(mount_dir)
    try:
        text = path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return None
    return Path(text) if text else None


def remove(mount_dir: str | Path) -> None:
    path = _path(mount_dir)
    path.unlink(missing_ok=True)
    logger.debug(f"Removed mount breadcrumb {path}")
