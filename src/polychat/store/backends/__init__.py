from .base import PersistenceBackend
from .factory import create_persistence_backend
from .in_memory import InMemoryBackend

__all__ = ["InMemoryBackend", "PersistenceBackend", "create_persistence_backend"]
