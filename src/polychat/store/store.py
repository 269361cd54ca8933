"""Client-side conversation store.

The store is the sole owner of every conversation and message. Callers
receive references for reading, but all mutation goes through the store so
its invariants hold:
- message order is append-only, except for a full clear
- ``updated_at`` advances on every append or message mutation
- a finalized message never changes again
- the current conversation pointer references an existing conversation or is None

Mutations are synchronous and expected to run on a single event loop.
Persistence is explicit through ``load()`` and ``save()``.
"""

import logging
from datetime import datetime
from typing import Any

from .backends.base import PersistenceBackend
from .backends.in_memory import InMemoryBackend
from .errors import ConversationNotFoundError, MessageFinalizedError
from .migrations import CURRENT_VERSION, migrate
from .models import AppConfig, Conversation, Message

logger = logging.getLogger(__name__)

STORAGE_NAME = "polychat-storage"


def default_title(now: datetime | None = None) -> str:
    """Title for a new conversation, derived from its creation time."""
    return f"New chat {(now or datetime.now()).strftime('%H:%M:%S')}"


class ConversationStore:
    """Multi-conversation chat state with versioned persistence.

    Usage:
        store = ConversationStore(create_persistence_backend("json", path="~/.polychat"))
        await store.backend.connect()
        await store.load()
        conversation_id = store.create_conversation("gpt-4o")
        store.add_message(conversation_id, Message(role="user", content="Hello"))
        await store.save()
    """

    def __init__(
        self,
        backend: PersistenceBackend | None = None,
        storage_name: str = STORAGE_NAME,
    ):
        """Initialize an empty store.

        Args:
            backend: Persistence backend (in-memory when omitted)
            storage_name: Key the store document is saved under
        """
        self._backend = backend or InMemoryBackend()
        self._storage_name = storage_name
        self._conversations: list[Conversation] = []
        self._current_conversation_id: str | None = None
        self._config = AppConfig()

    @property
    def backend(self) -> PersistenceBackend:
        return self._backend

    @property
    def storage_name(self) -> str:
        return self._storage_name

    @property
    def conversations(self) -> list[Conversation]:
        """Conversations in creation order (a new list; the items are owned by the store)."""
        return list(self._conversations)

    @property
    def current_conversation_id(self) -> str | None:
        return self._current_conversation_id

    @property
    def config(self) -> AppConfig:
        return self._config

    # Conversations

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        for conversation in self._conversations:
            if conversation.id == conversation_id:
                return conversation
        return None

    def _require(self, conversation_id: str) -> Conversation:
        conversation = self.get_conversation(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation

    def create_conversation(self, model: str | None = None) -> str:
        """Create a conversation and make it current.

        Args:
            model: Model identifier (defaults to the configured default model)

        Returns:
            The new conversation's id
        """
        conversation = Conversation(
            title=default_title(),
            model=model or self._config.default_model,
        )
        self._conversations.append(conversation)
        self._current_conversation_id = conversation.id
        return conversation.id

    def switch_conversation(self, conversation_id: str) -> bool:
        """Make a conversation current.

        Returns:
            False (leaving state unchanged) when the id is unknown
        """
        if self.get_conversation(conversation_id) is None:
            logger.warning("Ignoring switch to unknown conversation %s", conversation_id)
            return False
        self._current_conversation_id = conversation_id
        return True

    def delete_conversation(self, conversation_id: str) -> bool:
        """Delete a conversation and release its attachments.

        If it was current, the first remaining conversation (or None) becomes current.
        """
        conversation = self.get_conversation(conversation_id)
        if conversation is None:
            return False

        self._conversations.remove(conversation)
        for message in conversation.messages:
            message.release_attachments()

        if self._current_conversation_id == conversation_id:
            self._current_conversation_id = (
                self._conversations[0].id if self._conversations else None
            )
        return True

    def clear_all_conversations(self) -> None:
        """Remove every conversation."""
        for conversation in self._conversations:
            for message in conversation.messages:
                message.release_attachments()
        self._conversations = []
        self._current_conversation_id = None

    def clear_conversation(self, conversation_id: str) -> bool:
        """Empty a conversation's messages, keeping the conversation."""
        conversation = self.get_conversation(conversation_id)
        if conversation is None:
            return False
        for message in conversation.messages:
            message.release_attachments()
        conversation.messages = []
        conversation.touch()
        return True

    def rename_conversation(self, conversation_id: str, title: str) -> bool:
        conversation = self.get_conversation(conversation_id)
        if conversation is None:
            return False
        conversation.title = title
        return True

    def get_current_conversation(self) -> Conversation | None:
        if self._current_conversation_id is None:
            return None
        return self.get_conversation(self._current_conversation_id)

    def get_current_messages(self) -> list[Message]:
        conversation = self.get_current_conversation()
        return list(conversation.messages) if conversation else []

    # Messages

    def add_message(self, conversation_id: str, message: Message) -> Message:
        """Append a message to a conversation.

        Raises:
            ConversationNotFoundError: If the conversation does not exist
        """
        conversation = self._require(conversation_id)
        conversation.messages.append(message)
        conversation.touch()
        return message

    def update_message(self, conversation_id: str, message_id: str, content: str) -> bool:
        """Replace a streaming message's content, keeping every other field.

        Returns:
            False when the conversation or message does not exist

        Raises:
            MessageFinalizedError: If the message is no longer streaming
        """
        conversation = self.get_conversation(conversation_id)
        message = conversation.find_message(message_id) if conversation else None
        if message is None:
            return False
        if not message.is_streaming:
            raise MessageFinalizedError(message_id)
        message.content = content
        conversation.touch()
        return True

    def set_message_streaming(self, conversation_id: str, message_id: str, is_streaming: bool) -> bool:
        """Flip a message's streaming flag.

        Clearing the flag finalizes the message; a finalized message cannot
        be reopened. Clearing it twice is a no-op.

        Returns:
            False when the conversation or message does not exist

        Raises:
            MessageFinalizedError: If reopening a finalized message
        """
        conversation = self.get_conversation(conversation_id)
        message = conversation.find_message(message_id) if conversation else None
        if message is None:
            return False
        if not message.is_streaming:
            if is_streaming:
                raise MessageFinalizedError(message_id)
            return True
        message.is_streaming = is_streaming
        conversation.touch()
        return True

    def remove_attachment(self, conversation_id: str, message_id: str, attachment_id: str) -> bool:
        """Detach and release one attachment."""
        conversation = self.get_conversation(conversation_id)
        message = conversation.find_message(message_id) if conversation else None
        if message is None:
            return False
        for attachment in message.attachments:
            if attachment.id == attachment_id:
                message.attachments.remove(attachment)
                attachment.release()
                conversation.touch()
                return True
        return False

    # Configuration

    def update_config(self, **changes: Any) -> AppConfig:
        """Update configuration fields (values are validated, temperature clamped)."""
        for field, value in changes.items():
            if field not in AppConfig.model_fields:
                raise ValueError(f"Unknown config field: {field}")
            setattr(self._config, field, value)
        return self._config

    def update_api_key(self, provider: str, key: str) -> None:
        self._config.api_keys = {**self._config.api_keys, provider: key}

    def set_default_model(self, model: str) -> None:
        self._config.default_model = model

    def set_temperature(self, temperature: float) -> None:
        self._config.temperature = temperature

    # Persistence

    def to_document(self) -> dict[str, Any]:
        """Serialize the whole store as one versioned, JSON-compatible document."""
        return {
            "version": CURRENT_VERSION,
            "state": {
                "conversations": [c.model_dump(mode="json") for c in self._conversations],
                "current_conversation_id": self._current_conversation_id,
                "config": self._config.model_dump(mode="json"),
            },
        }

    def load_document(self, document: dict[str, Any]) -> None:
        """Replace in-memory state with a persisted document.

        Older documents are migrated first. Messages persisted mid-stream
        cannot resume, so they are finalized with whatever content they had.
        Attachments of the replaced conversations are released once the new
        state has validated.

        Raises:
            StoreVersionError: If the document cannot be migrated
            pydantic.ValidationError: If the migrated state is malformed
        """
        version = int(document.get("version", 0))
        state = migrate(document.get("state") or {}, version)

        conversations = [Conversation.model_validate(c) for c in state.get("conversations") or []]
        config = AppConfig.model_validate(state.get("config") or {})

        for conversation in conversations:
            for message in conversation.messages:
                if message.is_streaming:
                    logger.warning("Finalizing message %s interrupted mid-stream", message.id)
                    message.is_streaming = False

        current = state.get("current_conversation_id")
        if current is not None and not any(c.id == current for c in conversations):
            current = None

        for conversation in self._conversations:
            for message in conversation.messages:
                message.release_attachments()

        self._conversations = conversations
        self._config = config
        self._current_conversation_id = current

    async def load(self) -> bool:
        """Restore state from the backend.

        Returns:
            False when nothing has been persisted yet
        """
        document = await self._backend.load(self._storage_name)
        if document is None:
            return False
        self.load_document(document)
        logger.debug(
            "Loaded %d conversations from %s backend", len(self._conversations), self._backend.backend_type
        )
        return True

    async def save(self) -> None:
        """Persist the whole store to the backend."""
        await self._backend.save(self._storage_name, self.to_document())
