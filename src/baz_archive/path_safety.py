"""
Path safety utilities for baz-archive.

This module provides shared validation for paths read out of container
archives to prevent directory traversal when a container is expanded.
"""
from __future__ import annotations

from pathlib import PurePosixPath
from typing import Optional


def safe_relpath(path: str) -> str:
    """
    Validate and normalize an archive member path to prevent traversal attacks.

    This function enforces the following safety rules:
    - No empty strings or "." (prevents root directory access)
    - No absolute paths (starting with '/')
    - No parent directory references ('..' components)
    - No backslashes or NUL bytes

    Args:
        path: Archive member path

    Returns:
        Normalized relative path safe for use

    Raises:
        ValueError: If path violates safety rules

    Examples:
        >>> safe_relpath("repo/data/0/1")
        'repo/data/0/1'

        >>> safe_relpath("../secrets.txt")
        ValueError: unsafe path: ../secrets.txt
    """
    rel = PurePosixPath(path)
    s = str(rel)
    if not s or s == ".":
        raise ValueError(f"unsafe path: {path}")
    if "\\" in s or "\x00" in s:
        raise ValueError(f"unsafe path: {path}")
    if rel.is_absolute() or ".." in rel.parts:
        raise ValueError(f"unsafe path: {path}")
    return s


def strip_wrapper(path: str) -> Optional[str]:
    """
    Remove the single top-level wrapper directory from an archive member path.

    The wrapper entry itself maps to None so callers can skip it.

    Args:
        path: Archive member path, e.g. "baz-abc123/config"

    Returns:
        Path relative to the wrapper ("config"), or None for the wrapper itself

    Raises:
        ValueError: If the path is unsafe

    Examples:
        >>> strip_wrapper("baz-abc123/data/0")
        'data/0'

        >>> strip_wrapper("baz-abc123") is None
        True
    """
    parts = PurePosixPath(safe_relpath(path)).parts
    if len(parts) == 1:
        return None
    return safe_relpath("/".join(parts[1:]))
