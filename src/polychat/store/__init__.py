"""Conversation store for polychat.

Holds conversations, messages and settings on the client side, and
persists them as one versioned document.
"""

from .backends import PersistenceBackend, create_persistence_backend
from .errors import (
    ConversationBusyError,
    ConversationNotFoundError,
    MessageFinalizedError,
    StoreError,
    StoreVersionError,
)
from .migrations import CURRENT_VERSION, migrate
from .models import AppConfig, Conversation, FileAttachment, Message, MessageState
from .store import STORAGE_NAME, ConversationStore

__all__ = [
    "AppConfig",
    "Conversation",
    "ConversationBusyError",
    "ConversationNotFoundError",
    "ConversationStore",
    "CURRENT_VERSION",
    "FileAttachment",
    "Message",
    "MessageFinalizedError",
    "MessageState",
    "PersistenceBackend",
    "STORAGE_NAME",
    "StoreError",
    "StoreVersionError",
    "create_persistence_backend",
    "migrate",
]
