"""
Error classes for baz-archive.

Provides the taxonomy of failures raised by the container lifecycle. The CLI
maps each class to a distinct exit code in ``operations.mappers``.
"""
from __future__ import annotations

from typing import Optional


class BazError(Exception):
    """Base class for all baz-archive errors."""
    pass


# Usage errors: detected before any side effect


class UsageError(BazError):
    """
    Missing or invalid command-line arguments.

    Raised before any work starts, so no cleanup is needed.
    """
    pass


class MissingActionError(UsageError):
    """No action given as the first argument."""
    pass


class UnknownActionError(UsageError):
    """The first argument is not a recognized action."""

    def __init__(self, action: str):
        super().__init__(
            "First argument must be create, extract, help, list, mount, umount, or update."
            f"  Saw '{action}'."
        )
        self.action = action


class MissingContainerError(UsageError):
    """Container file name not provided."""
    pass


class MissingPathError(UsageError):
    """Source or destination directory not provided."""
    pass


class MissingMountDirError(UsageError):
    """Mount directory not provided to ``mount``."""
    pass


class MissingUnmountTargetError(UsageError):
    """Mount directory not provided to ``umount``."""
    pass


# Preconditions


class DestinationExistsError(BazError):
    """
    Extraction target already exists and overwrite was not confirmed.

    The CLI turns this into an interactive confirmation prompt.
    """

    def __init__(self, path: str):
        super().__init__(f"{path} already exists.  Contents will be overwritten.")
        self.path = path


class OutputDirError(BazError):
    """Output directory could not be created."""
    pass


# Container codec


class ContainerError(BazError):
    """Container could not be encoded or decoded."""
    pass


class CodecUnavailableError(ContainerError):
    """None of the configured compression filters is available."""
    pass


# Tag ledger


class LedgerError(BazError):
    """Tag ledger is missing or unreadable."""
    pass


class TagConflictError(BazError):
    """The requested tag already names a snapshot in the container."""

    def __init__(self, tag: str):
        super().__init__(f"Tag '{tag}' already exists in this archive. Choose a different tag.")
        self.tag = tag


# Mounting


class MountError(BazError):
    """
    Mounting the repository failed.

    Carries the tool's diagnostic and the workspace kept for inspection.
    """

    def __init__(self, message: str, diagnostic: str = "", workspace: Optional[str] = None):
        super().__init__(message)
        self.diagnostic = diagnostic
        self.workspace = workspace


class NotMountedError(BazError):
    """Directory was not mounted by this tool (no breadcrumb after unmount)."""
    pass


__all__ = [
    "BazError",
    "UsageError",
    "MissingActionError",
    "UnknownActionError",
    "MissingContainerError",
    "MissingPathError",
    "MissingMountDirError",
    "MissingUnmountTargetError",
    "DestinationExistsError",
    "OutputDirError",
    "ContainerError",
    "CodecUnavailableError",
    "LedgerError",
    "TagConflictError",
    "MountError",
    "NotMountedError",
]
