"""Anthropic Claude streaming adapter.

Uses the official Anthropic Python SDK for async streaming.
Reference: https://github.com/anthropics/anthropic-sdk-python
"""

import json
from collections.abc import AsyncIterator
from typing import Any

from anthropic import AsyncAnthropic

from ..base import ChatAdapter
from ..models import ChatMessage, ChatRequest, DeltaStream
from ..registry import ProviderKind


def split_system_message(messages: list[ChatMessage]) -> tuple[str | None, list[dict[str, str]]]:
    """Separate the system preamble from the conversational turns.

    Only the first system message is honored; later ones are dropped.

    Returns:
        Tuple of (system preamble or None, user/assistant turns)
    """
    system_message = None
    turns = []

    for msg in messages:
        if msg.role == "system":
            if system_message is None:
                system_message = msg.content
        else:
            turns.append({"role": msg.role, "content": msg.content})

    return system_message, turns


def delta_text(delta: Any) -> str:
    """Extract text from a ``content_block_delta`` event's delta.

    Text deltas carry ``text``. Structured deltas carry either parsed data
    (``json``), serialized canonically, or a pre-serialized ``partial_json``.
    """
    text = getattr(delta, "text", None)
    if text is not None:
        return text
    data = getattr(delta, "json", None)
    if data is not None and not callable(data):
        return json.dumps(data, ensure_ascii=False)
    partial = getattr(delta, "partial_json", None)
    if partial is not None:
        return partial
    return ""


class AnthropicAdapter(ChatAdapter):
    """Anthropic Claude streaming adapter.

    Hidden design decisions:
    - Anthropic API client initialization
    - Message format conversion (system message handling)
    - Raw stream event decoding
    - Authentication mechanism
    """

    kind = ProviderKind.ANTHROPIC

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize Anthropic adapter.

        Args:
            api_key: Anthropic API key
            base_url: Optional custom API base URL
            **client_kwargs: Additional kwargs for AsyncAnthropic client
        """
        self._client = AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
            **client_kwargs
        )

    async def stream_chat(self, request: ChatRequest, **kwargs: Any) -> DeltaStream:
        """Stream a message using Anthropic Claude.

        Args:
            request: Normalized chat request
            **kwargs: Additional Anthropic-specific parameters

        Returns:
            DeltaStream over content block deltas
        """
        system_message, turns = split_system_message(request.messages)

        request_params: dict[str, Any] = {
            "model": request.model,
            "messages": turns,
            "temperature": request.temperature,
            "max_tokens": request.effective_max_tokens,  # Anthropic requires max_tokens
            "stream": True,
            **kwargs
        }
        if system_message:
            request_params["system"] = system_message

        response = DeltaStream(self._stream_generator(request_params))
        self._current_stream_response = response
        return response

    async def _stream_generator(self, request_params: dict[str, Any]) -> AsyncIterator[str]:
        """Internal generator that yields text and captures usage from events."""
        input_tokens = 0
        output_tokens = 0

        stream = await self._client.messages.create(**request_params)
        try:
            async for event in stream:
                event_type = getattr(event, "type", None)
                # message_start contains input_tokens
                if event_type == "message_start":
                    usage = getattr(getattr(event, "message", None), "usage", None)
                    if usage is not None:
                        input_tokens = usage.input_tokens
                # message_delta contains output_tokens (cumulative)
                elif event_type == "message_delta":
                    usage = getattr(event, "usage", None)
                    if usage is not None:
                        output_tokens = usage.output_tokens
                elif event_type == "content_block_delta":
                    text = delta_text(getattr(event, "delta", None))
                    if text:
                        yield text
        finally:
            await stream.close()

        self._current_stream_response.set_usage({
            "prompt_tokens": input_tokens,
            "completion_tokens": output_tokens,
            "total_tokens": input_tokens + output_tokens,
        })

    async def close(self) -> None:
        """Close the Anthropic client."""
        await self._client.close()
