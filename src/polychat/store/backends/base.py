"""Abstract base class for store persistence backends.

This module defines the interface for persisting the store document.
The abstraction hides:
- Storage format (JSON file, SQLite row, etc.)
- Persistence mechanism (file, database, in-memory)
- Connection management

A document is a JSON-compatible dict ``{"version": int, "state": {...}}``
saved under a fixed storage name.
"""

from abc import ABC, abstractmethod
from typing import Any


class PersistenceBackend(ABC):
    """Abstract persistence backend for the conversation store."""

    @abstractmethod
    async def connect(self) -> None:
        """Initialize the backend."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the backend gracefully."""

    @abstractmethod
    async def load(self, name: str) -> dict[str, Any] | None:
        """Load the document saved under ``name``, or None if there is none."""

    @abstractmethod
    async def save(self, name: str, document: dict[str, Any]) -> None:
        """Persist a document under ``name``, replacing any previous one."""

    @abstractmethod
    async def delete(self, name: str) -> None:
        """Remove the document saved under ``name``."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""

    async def __aenter__(self) -> "PersistenceBackend":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.disconnect()
