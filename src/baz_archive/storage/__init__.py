"""
Storage package - the versioned-repository boundary.

Exposes the RepositoryStore protocol, its Borg implementation, and the
repository error taxonomy.
"""
from .base import RepositoryStore
from .borg import BorgRepository
from .errors import NoSnapshotsError, RepositoryError, RepositoryToolError, SnapshotNotFound

__all__ = [
    "RepositoryStore",
    "BorgRepository",
    "RepositoryError",
    "RepositoryToolError",
    "NoSnapshotsError",
    "SnapshotNotFound",
]
