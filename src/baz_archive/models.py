"""
Data models for the container lifecycle.

These Pydantic models give type safety and validation to the values that
cross the repository adapter boundary, most importantly the snapshot listing
parsed from ``borg list --json``.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EncryptionMode(str, Enum):
    """Repository encryption modes understood by borg init."""
    NONE = "none"
    REPOKEY = "repokey"
    KEYFILE = "keyfile"
    AUTHENTICATED = "authenticated"
    REPOKEY_BLAKE2 = "repokey-blake2"
    KEYFILE_BLAKE2 = "keyfile-blake2"
    AUTHENTICATED_BLAKE2 = "authenticated-blake2"

    @classmethod
    def parse(cls, value: str) -> "EncryptionMode":
        """Parse a user-supplied mode, listing valid choices on failure."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(mode.value for mode in cls)
            raise ValueError(f"Unknown encryption mode '{value}'. Choose from: {choices}") from None


# Mode selected by the bare ``encryption`` keyword: key stored in the repository
DEFAULT_ENCRYPTED_MODE = EncryptionMode.REPOKEY


class RestoreMode(str, Enum):
    """How a snapshot is brought out of the repository."""
    EXTRACT = "extract"
    MOUNT = "mount"


class SnapshotInfo(BaseModel):
    """
    One snapshot in a repository, as reported by the repository tool.

    Accepts borg's JSON field names (``name``, ``time``) as well as the
    project's own (``tag``, ``timestamp``).
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    tag: str = Field(..., alias="name", description="Snapshot tag (borg archive name)")
    timestamp: datetime = Field(..., alias="time", description="Snapshot creation time")
    id: Optional[str] = Field(default=None, description="Repository-internal archive id")

    @field_validator("tag")
    @classmethod
    def validate_tag(cls, v: str) -> str:
        if not v:
            raise ValueError("snapshot tag must be non-empty")
        return v

    @property
    def display_time(self) -> str:
        """Timestamp rendered the way borg prints ``{time}``."""
        return self.timestamp.strftime("%a, %Y-%m-%d %H:%M:%S")


class SnapshotListing(BaseModel):
    """Top-level document printed by ``borg list --json``."""
    archives: List[SnapshotInfo] = Field(default_factory=list)


def validate_tag(tag: str) -> str:
    """
    Validate a user-supplied snapshot tag.

    Tags become borg archive names and ledger lines, so they must be a single
    non-empty line without the ``::`` repository separator or a path separator.

    Args:
        tag: Tag to validate

    Returns:
        The stripped tag

    Raises:
        ValueError: If the tag cannot be used
    """
    cleaned = tag.strip()
    if not cleaned:
        raise ValueError("tag must be non-empty")
    if "\n" in cleaned or "\r" in cleaned:
        raise ValueError(f"tag must be a single line: {tag!r}")
    if "::" in cleaned or "/" in cleaned:
        raise ValueError(f"tag must not contain '::' or '/': {tag!r}")
    return cleaned


__all__ = [
    "EncryptionMode",
    "DEFAULT_ENCRYPTED_MODE",
    "RestoreMode",
    "SnapshotInfo",
    "SnapshotListing",
    "validate_tag",
]
