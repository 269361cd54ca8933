"""Data models for the conversation store.

These models define conversations, messages and application settings,
independent of the persistence backend used.
"""

import mimetypes
import tempfile
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..llm.models import DEFAULT_MAX_TOKENS, ChatMessage


def generate_id() -> str:
    """Generate an opaque identifier for conversations, messages and attachments."""
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(UTC)


class MessageState(str, Enum):
    """Lifecycle of a message.

    PENDING and STREAMING are both mutable; FINALIZED is terminal.
    """

    PENDING = "pending-stream"
    STREAMING = "streaming"
    FINALIZED = "finalized"


class FileAttachment(BaseModel):
    """A file attached to a message.

    ``local_path`` is a transient copy on local disk. It is never persisted
    and must be released when the attachment or its message is discarded.
    """

    id: str = Field(default_factory=generate_id)
    name: str
    mime_type: str = Field(default="application/octet-stream")
    size: int = Field(default=0, ge=0)
    local_path: Path | None = Field(default=None, exclude=True)

    @classmethod
    def from_bytes(cls, name: str, data: bytes, mime_type: str | None = None) -> "FileAttachment":
        """Create an attachment backed by a temporary copy of ``data``."""
        suffix = Path(name).suffix
        with tempfile.NamedTemporaryFile(prefix="polychat-", suffix=suffix, delete=False) as handle:
            handle.write(data)
        return cls(
            name=name,
            mime_type=mime_type or mimetypes.guess_type(name)[0] or "application/octet-stream",
            size=len(data),
            local_path=Path(handle.name),
        )

    @classmethod
    def from_path(cls, path: str | Path, mime_type: str | None = None) -> "FileAttachment":
        """Create an attachment from a file on disk (the file is copied)."""
        path = Path(path)
        return cls.from_bytes(path.name, path.read_bytes(), mime_type)

    @property
    def is_released(self) -> bool:
        return self.local_path is None

    def release(self) -> None:
        """Delete the transient local copy, if any."""
        if self.local_path is not None:
            self.local_path.unlink(missing_ok=True)
            self.local_path = None


class Message(BaseModel):
    """A single message within a conversation.

    ``content`` may only change while ``is_streaming`` is true. The store
    enforces this; the model itself stays a plain record.
    """

    id: str = Field(default_factory=generate_id)
    role: Literal["user", "assistant", "system"]
    content: str = ""
    timestamp: datetime = Field(default_factory=utcnow)
    is_streaming: bool = False
    attachments: list[FileAttachment] = Field(default_factory=list)

    @property
    def state(self) -> MessageState:
        if not self.is_streaming:
            return MessageState.FINALIZED
        return MessageState.STREAMING if self.content else MessageState.PENDING

    def to_chat_message(self) -> ChatMessage:
        return ChatMessage(role=self.role, content=self.content)

    def release_attachments(self) -> None:
        for attachment in self.attachments:
            attachment.release()


class Conversation(BaseModel):
    """An ordered list of messages bound to one model."""

    id: str = Field(default_factory=generate_id)
    title: str
    messages: list[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    model: str

    def find_message(self, message_id: str) -> Message | None:
        for message in self.messages:
            if message.id == message_id:
                return message
        return None

    def touch(self) -> None:
        self.updated_at = utcnow()

    @property
    def is_streaming(self) -> bool:
        """Whether an assistant reply is still being streamed into this conversation."""
        return any(message.is_streaming for message in self.messages)


class AppConfig(BaseModel):
    """Application settings persisted alongside conversations."""

    model_config = ConfigDict(validate_assignment=True)

    theme: Literal["light", "dark", "system"] = "system"
    default_model: str = "gpt-4o"
    temperature: float = 0.7
    max_tokens: int = DEFAULT_MAX_TOKENS
    api_keys: dict[str, str] = Field(default_factory=dict)

    @field_validator("temperature")
    @classmethod
    def _clamp_temperature(cls, value: float) -> float:
        return max(0.0, min(1.0, value))
