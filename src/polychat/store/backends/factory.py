"""Factory for creating persistence backends."""

from typing import Any

from .base import PersistenceBackend


def create_persistence_backend(
    backend: str = "memory",
    **kwargs: Any
) -> PersistenceBackend:
    """Create a persistence backend.

    Args:
        backend: Backend type ("memory", "json" or "sqlite")
        **kwargs: Backend-specific configuration
            For json:
                - path: directory holding the documents
            For sqlite:
                - path: database file

    Returns:
        PersistenceBackend instance

    Raises:
        ValueError: If backend type is not supported
    """
    if backend == "memory":
        from .in_memory import InMemoryBackend
        return InMemoryBackend(**kwargs)

    elif backend == "json":
        from .json_file import JSONFileBackend
        return JSONFileBackend(**kwargs)

    elif backend == "sqlite":
        from .sqlite import SQLiteBackend
        return SQLiteBackend(**kwargs)

    raise ValueError(
        f"Unsupported persistence backend: {backend}. "
        f"Supported backends: memory, json, sqlite"
    )
