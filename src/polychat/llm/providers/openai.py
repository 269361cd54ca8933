from collections.abc import AsyncIterator
from typing import Any

from openai import AsyncOpenAI

from ..base import ChatAdapter
from ..models import ChatRequest, DeltaStream
from ..registry import ProviderKind


class OpenAIAdapter(ChatAdapter):
    """OpenAI Chat Completions streaming adapter.

    Hidden design decisions:
    - OpenAI API client initialization
    - Message format conversion (messages are forwarded verbatim)
    - Authentication mechanism
    - Endpoint root (substituted by OpenAI-compatible providers)
    """

    kind = ProviderKind.OPENAI

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        organization: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize OpenAI adapter.

        Args:
            api_key: OpenAI API key
            base_url: Optional custom API base URL
            organization: Optional organization ID
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
            **client_kwargs
        )

    async def stream_chat(self, request: ChatRequest, **kwargs: Any) -> DeltaStream:
        """Stream a chat completion.

        Args:
            request: Normalized chat request
            **kwargs: Additional Chat Completions parameters

        Returns:
            DeltaStream over the first choice's delta content
        """
        request_params: dict[str, Any] = {
            "model": request.model,
            "messages": [{"role": msg.role, "content": msg.content} for msg in request.messages],
            "temperature": request.temperature,
            "max_tokens": request.effective_max_tokens,
            "stream": True,
            "stream_options": {"include_usage": True},
            **kwargs,
        }
        response = DeltaStream(self._stream_generator(request_params))
        self._current_stream_response = response
        return response

    async def _stream_generator(self, request_params: dict[str, Any]) -> AsyncIterator[str]:
        """Internal generator that yields deltas and captures usage."""
        stream = await self._client.chat.completions.create(**request_params)
        try:
            async for chunk in stream:
                if getattr(chunk, "usage", None) is not None:
                    self._current_stream_response.set_usage({
                        "prompt_tokens": chunk.usage.prompt_tokens,
                        "completion_tokens": chunk.usage.completion_tokens,
                        "total_tokens": chunk.usage.total_tokens,
                    })
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content
        finally:
            await stream.close()

    async def close(self) -> None:
        """Close the OpenAI client.

        See: https://github.com/openai/openai-python#async-usage
        """
        await self._client.close()
