"""
CLI Context for managing application dependencies.

Provides a clean way to manage CLI-level dependencies like settings and the
repository adapter, avoiding global state and enabling proper dependency
injection.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .operations import Operations
from .settings import Settings, create_settings_from_env
from .storage.base import RepositoryStore
from .storage.borg import BorgRepository


@dataclass
class CLIContext:
    """
    Shared context for CLI commands.

    Manages application-level dependencies (settings, repository adapter)
    that are initialized once and shared across a CLI command execution.
    """
    settings: Settings
    _repository: Optional[RepositoryStore] = None

    @classmethod
    def from_env(cls) -> CLIContext:
        """
        Create CLI context from environment variables.

        Returns:
            CLIContext with settings loaded from environment
        """
        settings = create_settings_from_env()
        return cls(settings=settings)

    @property
    def repository(self) -> RepositoryStore:
        """
        Get or create the repository adapter (lazy initialization).

        Returns:
            RepositoryStore instance, Borg-backed unless one was injected
        """
        if self._repository is None:
            self._repository = BorgRepository(settings=self.settings)
        return self._repository

    @property
    def operations(self) -> Operations:
        return Operations(settings=self.settings, repository=self.repository)
