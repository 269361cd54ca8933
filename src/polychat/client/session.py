"""Chat session: sends the current conversation to the gateway and streams the
reply into the conversation store.

Each send runs a read -> decode -> store-mutate loop, applying deltas in
arrival order. A conversation accepts one in-flight reply at a time; a second
send into it is rejected with ``ConversationBusyError``.
"""

import json
import logging
from collections.abc import Callable
from typing import Any

import httpx

from ..llm.registry import resolve
from ..store.errors import ConversationBusyError
from ..store.models import Conversation, FileAttachment, Message
from ..store.store import ConversationStore

logger = logging.getLogger(__name__)

CHAT_ENDPOINT = "/api/chat"
TITLE_MAX_LENGTH = 30
SEND_FAILED_MESSAGE = "Sorry, the message could not be sent. Please try again later."

DeltaCallback = Callable[[str], None]


def truncate_text(text: str, max_length: int = 50) -> str:
    """Truncate text, marking the cut with an ellipsis."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def generate_conversation_title(messages: list[Message]) -> str | None:
    """Title a conversation after its first user message."""
    for message in messages:
        if message.role == "user" and message.content.strip():
            return truncate_text(message.content.strip(), TITLE_MAX_LENGTH)
    return None


class ChatSession:
    """Drives conversations against a gateway.

    Usage:
        async with httpx.AsyncClient(base_url="http://127.0.0.1:8000") as client:
            session = ChatSession(store, client)
            reply = await session.send_message("Hello")
    """

    def __init__(
        self,
        store: ConversationStore,
        client: httpx.AsyncClient,
        endpoint: str = CHAT_ENDPOINT,
        autosave: bool = True,
    ):
        """Initialize session.

        Args:
            store: Store owning the conversations
            client: HTTP client pointed at the gateway
            endpoint: Chat endpoint path
            autosave: Persist the store after every send
        """
        self._store = store
        self._client = client
        self._endpoint = endpoint
        self._autosave = autosave
        self._in_flight: set[str] = set()

    @property
    def store(self) -> ConversationStore:
        return self._store

    def is_busy(self, conversation_id: str) -> bool:
        return conversation_id in self._in_flight

    def _build_payload(self, conversation: Conversation) -> dict[str, Any]:
        config = self._store.config
        payload: dict[str, Any] = {
            "messages": [m.to_chat_message().model_dump() for m in conversation.messages],
            "model": conversation.model,
            "temperature": config.temperature,
            "maxTokens": config.max_tokens,
        }
        model_config = resolve(conversation.model)
        if model_config is not None:
            api_key = config.api_keys.get(model_config.provider.value)
            if api_key:
                payload["apiKey"] = api_key
        return payload

    async def send_message(
        self,
        content: str,
        attachments: list[FileAttachment] | None = None,
        on_delta: DeltaCallback | None = None,
    ) -> Message:
        """Send a user message into the current conversation.

        A conversation is created when none is current.

        Args:
            content: User message text
            attachments: Files to attach to the user message
            on_delta: Called with each delta as it is applied

        Returns:
            The finalized assistant message (an apology when the send failed)

        Raises:
            ConversationBusyError: If a reply is already streaming into the conversation
        """
        conversation = self._store.get_current_conversation()
        if conversation is None:
            conversation = self._store.get_conversation(self._store.create_conversation())

        if self.is_busy(conversation.id) or conversation.is_streaming:
            raise ConversationBusyError(conversation.id)

        self._in_flight.add(conversation.id)
        try:
            self._store.add_message(
                conversation.id,
                Message(role="user", content=content, attachments=attachments or []),
            )
            if sum(1 for m in conversation.messages if m.role == "user") == 1:
                title = generate_conversation_title(conversation.messages)
                if title:
                    self._store.rename_conversation(conversation.id, title)

            return await self._stream_reply(conversation, on_delta)
        finally:
            self._in_flight.discard(conversation.id)
            if self._autosave:
                try:
                    await self._store.save()
                except Exception:
                    logger.exception("Failed to save conversation %s", conversation.id)

    async def _stream_reply(self, conversation: Conversation, on_delta: DeltaCallback | None) -> Message:
        payload = self._build_payload(conversation)
        reply: Message | None = None

        try:
            async with self._client.stream("POST", self._endpoint, json=payload) as response:
                if response.status_code != httpx.codes.OK:
                    await response.aread()
                    error = _error_text(response)
                    logger.warning("Gateway rejected send (%d): %s", response.status_code, error)
                    return self._add_failure(conversation, error)

                reply = self._store.add_message(
                    conversation.id, Message(role="assistant", content="", is_streaming=True)
                )
                accumulated = ""
                async for text in response.aiter_text():
                    if not text:
                        continue
                    accumulated += text
                    self._store.update_message(conversation.id, reply.id, accumulated)
                    if on_delta is not None:
                        on_delta(text)
        except httpx.HTTPError as e:
            if reply is None:
                logger.error("Failed to send message: %s", e)
                return self._add_failure(conversation, str(e))
            logger.warning("Reply stream interrupted: %s", e)
        finally:
            if reply is not None:
                self._store.set_message_streaming(conversation.id, reply.id, False)

        return reply

    def _add_failure(self, conversation: Conversation, error: str | None) -> Message:
        content = SEND_FAILED_MESSAGE if not error else f"{SEND_FAILED_MESSAGE}\n\n{error}"
        return self._store.add_message(conversation.id, Message(role="assistant", content=content))


def _error_text(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return response.text or None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return None
