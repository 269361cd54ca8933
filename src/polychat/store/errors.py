class StoreError(Exception):
    """Base class for conversation store errors."""


class ConversationNotFoundError(StoreError):
    """The conversation id does not exist in the store."""

    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation not found: {conversation_id}")
        self.conversation_id = conversation_id


class MessageFinalizedError(StoreError):
    """A finalized message cannot be mutated or reopened."""

    def __init__(self, message_id: str):
        super().__init__(f"Message {message_id} is finalized and can no longer change")
        self.message_id = message_id


class ConversationBusyError(StoreError):
    """A reply is already streaming into the conversation."""

    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation {conversation_id} already has a reply in flight")
        self.conversation_id = conversation_id


class StoreVersionError(StoreError):
    """The persisted document cannot be migrated to the running schema."""
