# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import Protocol


class UserDirectory(Protocol):
    """Interface for the tenant user directory."""

    async def exists_user(self, user_id: uuid.UUID) -> bool:
        """Return True when the user exists."""
        ...


class InMemoryUserDirectory:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._user_ids: set[uuid.UUID] = set()

    def seed(self, user_id: uuid.UUID) -> None:
        """Seed a user for testing."""
        self._user_ids.add(user_id)

    async def exists_user(self, user_id: uuid.UUID) -> bool:
        """Return True when the user has been seeded."""
        return user_id in self._user_ids


_user_directory: UserDirectory = InMemoryUserDirectory()


def get_user_directory() -> UserDirectory:
    """Return the configured user directory."""
    return _user_directory


def set_user_directory(directory: UserDirectory) -> None:
    """Override the directory (for testing or production wiring)."""
    global _user_directory
    _user_directory = directory
