"""
Settings and configuration for baz-archive.

Centralizes configuration values and provides validation with fail-fast behavior.
Loads settings from environment variables at CLI context construction time.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

__all__ = ["Settings", "create_settings_from_env", "DEFAULT_COMPRESSION", "KNOWN_FILTERS"]

# Preference order: fastest/best-ratio first, universally available baseline last
DEFAULT_COMPRESSION: Tuple[str, ...] = ("zstd", "pigz", "gzip")
KNOWN_FILTERS = frozenset(DEFAULT_COMPRESSION)


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for baz-archive.

    Repository tool settings:
        borg_bin: Borg executable name or path
        allow_relocated_repo: Permit access to a repository found at a new path.
            Every decode expands the repository at a fresh location, so this
            is on by default.
        show_progress: Pass --progress to long-running borg commands

    Container codec settings:
        compression: Compression filters in preference order
        zstd_level: Zstandard compression level (1-22)
        gzip_level: gzip/pigz compression level (1-9)

    Workspace settings:
        workspace_root: Directory in which scratch workspaces are created
            (None uses the system temporary directory)
    """
    # Repository tool settings
    borg_bin: str = "borg"
    allow_relocated_repo: bool = True
    show_progress: bool = False

    # Container codec settings
    compression: Tuple[str, ...] = field(default=DEFAULT_COMPRESSION)
    zstd_level: int = 9
    gzip_level: int = 9

    # Workspace settings
    workspace_root: Optional[str] = None

    def __post_init__(self):
        """Validate settings on construction."""
        if not self.borg_bin:
            raise ValueError("borg_bin is required")

        if not self.compression:
            raise ValueError("compression must name at least one filter")
        unknown = [name for name in self.compression if name not in KNOWN_FILTERS]
        if unknown:
            raise ValueError(
                f"Unknown compression filter(s) {unknown}. Choose from: {', '.join(DEFAULT_COMPRESSION)}"
            )

        if not 1 <= self.zstd_level <= 22:
            raise ValueError(f"zstd_level must be between 1 and 22, got {self.zstd_level}")

        if not 1 <= self.gzip_level <= 9:
            raise ValueError(f"gzip_level must be between 1 and 9, got {self.gzip_level}")

        if self.workspace_root is not None and not os.path.isdir(self.workspace_root):
            raise ValueError(f"workspace_root is not a directory: {self.workspace_root}")

    def tool_env(self) -> dict[str, str]:
        """
        Build the child-process environment for repository tool calls.

        The relocation flag is applied to a copy of the current environment;
        the process environment itself is never modified.

        Returns:
            Environment mapping for subprocess calls
        """
        env = dict(os.environ)
        if self.allow_relocated_repo:
            env["BORG_RELOCATED_REPO_ACCESS_IS_OK"] = "yes"
        return env


# Settings loading functions (no caching)


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        - BAZ_BORG_BIN (default: borg)
        - BAZ_ALLOW_RELOCATED_REPO (default: true)
        - BAZ_PROGRESS (default: false)
        - BAZ_COMPRESSION (default: zstd,pigz,gzip)
        - BAZ_ZSTD_LEVEL (default: 9)
        - BAZ_GZIP_LEVEL (default: 9)
        - BAZ_TMPDIR (optional)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid

    Note:
        Creates a fresh Settings instance every time (no caching).
        This ensures test isolation and eliminates global state.
    """
    return _load_settings_impl()


def _load_settings_impl() -> Settings:
    """Internal implementation of settings loading."""
    # Helper to convert string to bool
    def str_to_bool(value: str) -> bool:
        return value.lower() in ('true', '1', 'yes', 'on')

    # Helper to get int from env
    def get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        if not value:
            return default
        try:
            return int(value)
        except ValueError:
            raise ValueError(f"{key} must be an integer, got {value!r}") from None

    compression_env = os.getenv("BAZ_COMPRESSION")
    if compression_env:
        compression = tuple(part.strip().lower() for part in compression_env.split(",") if part.strip())
    else:
        compression = DEFAULT_COMPRESSION

    return Settings(
        borg_bin=os.getenv("BAZ_BORG_BIN", "borg"),
        allow_relocated_repo=str_to_bool(os.getenv("BAZ_ALLOW_RELOCATED_REPO", "true")),
        show_progress=str_to_bool(os.getenv("BAZ_PROGRESS", "false")),
        compression=compression,
        zstd_level=get_int("BAZ_ZSTD_LEVEL", 9),
        gzip_level=get_int("BAZ_GZIP_LEVEL", 9),
        workspace_root=os.getenv("BAZ_TMPDIR") or None,
    )
