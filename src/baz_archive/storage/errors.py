"""
Repository tool error classes.

Provides a clear taxonomy of errors that can occur while driving the external
versioned-repository tool. Failures are surfaced with the tool's captured
diagnostic output and are never retried.
"""
from __future__ import annotations

from typing import Sequence


class RepositoryError(Exception):
    """
    Base class for all repository adapter errors.
    """
    pass


class RepositoryToolError(RepositoryError):
    """
    The repository tool exited abnormally.

    Raised when:
    - borg returns a non-zero exit status
    - the borg executable cannot be started
    """

    def __init__(self, message: str, *, command: Sequence[str] = (),
                 returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr

    def __str__(self) -> str:
        base = super().__str__()
        if self.stderr:
            return f"{base}\n{self.stderr.rstrip()}"
        return base


class NoSnapshotsError(RepositoryError):
    """
    The repository holds no snapshots.

    Raised when a default (most recent) tag is requested from an empty
    repository.
    """
    pass


class SnapshotNotFound(RepositoryError):
    """
    The requested tag does not name a snapshot in the repository.
    """

    def __init__(self, tag: str):
        super().__init__(f"No snapshot tagged '{tag}' in this archive.")
        self.tag = tag


__all__ = [
    "RepositoryError",
    "RepositoryToolError",
    "NoSnapshotsError",
    "SnapshotNotFound",
]
