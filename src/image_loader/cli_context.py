"""
CLI Context for managing application dependencies.

Provides a clean way to manage CLI-level dependencies like settings and the
image store, avoiding global state and enabling proper dependency injection.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .settings import Settings, create_settings_from_env
from .store.base import ImageStore
from .store.docker import DockerEngineStore


@dataclass
class CLIContext:
    """
    Shared context for CLI commands.

    Manages application-level dependencies (settings, store) that are
    initialized once and shared across a CLI command execution.
    """
    settings: Settings
    _store: Optional[ImageStore] = None

    @classmethod
    def from_env(cls) -> CLIContext:
        """
        Create CLI context from environment variables.

        Returns:
            CLIContext with settings loaded from environment
        """
        return cls(settings=create_settings_from_env())

    @property
    def store(self) -> ImageStore:
        """
        Get or create the Docker engine store (lazy initialization).

        Returns:
            ImageStore instance
        """
        if self._store is None:
            self._store = DockerEngineStore(self.settings)
        return self._store

    def close(self) -> None:
        if isinstance(self._store, DockerEngineStore):
            self._store.close()
        self._store = None
