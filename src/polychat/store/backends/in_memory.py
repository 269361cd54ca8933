"""In-memory persistence backend.

Simple dict-based storage for session-only use.
Data is lost when the application exits.
"""

import copy
from typing import Any

from .base import PersistenceBackend


class InMemoryBackend(PersistenceBackend):
    """In-memory persistence (session-only).

    Documents are deep-copied on the way in and out so callers never share
    mutable state with the backend. Suitable for testing.
    """

    def __init__(self) -> None:
        self._documents: dict[str, dict[str, Any]] = {}

    async def connect(self) -> None:
        """Initialize memory (no-op for in-memory)."""
        pass

    async def disconnect(self) -> None:
        """Close memory (no-op for in-memory)."""
        pass

    async def load(self, name: str) -> dict[str, Any] | None:
        document = self._documents.get(name)
        return copy.deepcopy(document) if document is not None else None

    async def save(self, name: str, document: dict[str, Any]) -> None:
        self._documents[name] = copy.deepcopy(document)

    async def delete(self, name: str) -> None:
        self._documents.pop(name, None)

    @property
    def backend_type(self) -> str:
        return "memory"
