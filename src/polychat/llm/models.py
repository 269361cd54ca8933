from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MAX_TOKENS = 4000


class DeltaStream:
    """Lazy, finite, non-restartable stream of text deltas.

    Acts as an async iterator over the canonical delta sequence produced by a
    chat adapter, and stores token usage when the upstream reports it.

    Usage:
        stream = await adapter.stream_chat(request, credential)
        async for delta in stream:
            print(delta, end="")
        print(stream.usage)
    """

    def __init__(
        self,
        async_iter: AsyncIterator[str],
        on_close: Callable[[], Awaitable[None]] | None = None,
    ):
        """Initialize with an async iterator of text deltas.

        Args:
            async_iter: Async iterator (usually an async generator) yielding text
            on_close: Awaited once by ``aclose()``, even when iteration never
                started (an unstarted generator's ``finally`` does not run)
        """
        self._iter = async_iter
        self._on_close = on_close
        self._usage: dict[str, Any] | None = None
        self._closed = False

    @property
    def usage(self) -> dict[str, Any] | None:
        """Get token usage info (available after iteration completes)."""
        return self._usage

    @property
    def closed(self) -> bool:
        return self._closed

    def set_usage(self, usage: dict[str, Any]) -> None:
        """Set token usage info (called by the adapter at end of stream)."""
        self._usage = usage

    def __aiter__(self) -> "DeltaStream":
        return self

    async def __anext__(self) -> str:
        if self._closed:
            raise StopAsyncIteration
        try:
            return await self._iter.__anext__()
        except StopAsyncIteration:
            self._closed = True
            raise

    async def aclose(self) -> None:
        """Abandon the stream, closing the underlying upstream read."""
        if not self._closed:
            self._closed = True
            aclose = getattr(self._iter, "aclose", None)
            if aclose is not None:
                await aclose()

        on_close, self._on_close = self._on_close, None
        if on_close is not None:
            await on_close()


class ChatMessage(BaseModel):
    """A role-tagged message as exchanged with the gateway."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    role: Literal["user", "assistant", "system"] = Field(
        description="Role of the message sender: 'user', 'assistant', or 'system'"
    )
    content: str = Field(description="Content of the message")


class ChatRequest(BaseModel):
    """Provider-agnostic chat request.

    Field names follow Python conventions; the JSON wire format uses the
    camelCase aliases ``maxTokens`` and ``apiKey``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    messages: list[ChatMessage] = Field(default_factory=list)
    model: str = Field(default="", description="Model identifier")
    temperature: float = Field(default=0.7, description="Sampling temperature")
    max_tokens: int | None = Field(default=None, alias="maxTokens")
    api_key: str | None = Field(default=None, alias="apiKey")

    @property
    def effective_max_tokens(self) -> int:
        """Token ceiling to forward upstream; non-positive values use the default."""
        if self.max_tokens is None or self.max_tokens <= 0:
            return DEFAULT_MAX_TOKENS
        return self.max_tokens

    def last_user_message(self) -> ChatMessage | None:
        """Get the most recent user message, else the most recent message."""
        for message in reversed(self.messages):
            if message.role == "user":
                return message
        return self.messages[-1] if self.messages else None
