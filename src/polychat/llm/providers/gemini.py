"""Google Gemini streaming adapter.

Uses the official Google GenAI SDK chat sessions.
Reference: https://github.com/googleapis/python-genai

The whole conversation is replayed as chat history and an empty trailing
user turn triggers the reply.
"""

from collections.abc import AsyncIterator
from typing import Any

from google import genai
from google.genai import types

from ..base import ChatAdapter
from ..models import ChatMessage, ChatRequest, DeltaStream
from ..registry import ProviderKind

# Only block high-probability harm so ordinary chat turns are not cut off mid-reply
DEFAULT_SAFETY_SETTINGS = [
    types.SafetySetting(category="HARM_CATEGORY_HARASSMENT", threshold="BLOCK_ONLY_HIGH"),
    types.SafetySetting(category="HARM_CATEGORY_HATE_SPEECH", threshold="BLOCK_ONLY_HIGH"),
    types.SafetySetting(category="HARM_CATEGORY_SEXUALLY_EXPLICIT", threshold="BLOCK_ONLY_HIGH"),
    types.SafetySetting(category="HARM_CATEGORY_DANGEROUS_CONTENT", threshold="BLOCK_ONLY_HIGH"),
]


def to_history(messages: list[ChatMessage]) -> list[types.Content]:
    """Convert messages to Gemini chat history.

    ``user`` stays ``user``; every other role becomes ``model``.
    """
    return [
        types.Content(
            role="user" if msg.role == "user" else "model",
            parts=[types.Part(text=msg.content)],
        )
        for msg in messages
    ]


def extract_text(chunk: Any) -> str:
    """Extract text from a streamed Gemini response chunk, handling empty chunks."""
    candidates = getattr(chunk, "candidates", None)
    if candidates:
        content = candidates[0].content
        if content and content.parts:
            texts = [part.text for part in content.parts if getattr(part, "text", None)]
            if texts:
                return "".join(texts)

    try:
        return chunk.text or ""
    except (ValueError, AttributeError):
        return ""


class GeminiAdapter(ChatAdapter):
    """Google Gemini streaming adapter.

    Hidden design decisions:
    - Google GenAI client initialization
    - History conversion and chat session start-up
    - Safety thresholds applied to every reply
    """

    kind = ProviderKind.GOOGLE

    def __init__(self, api_key: str, **client_kwargs: Any):
        """Initialize Gemini adapter.

        Args:
            api_key: Google AI API key
            **client_kwargs: Additional kwargs for Client
        """
        self._client = genai.Client(api_key=api_key, **client_kwargs)

    async def stream_chat(self, request: ChatRequest, **kwargs: Any) -> DeltaStream:
        """Stream a chat reply using Google Gemini.

        Args:
            request: Normalized chat request
            **kwargs: Additional GenerateContentConfig parameters

        Returns:
            DeltaStream over the model's text segments
        """
        config = types.GenerateContentConfig(
            temperature=request.temperature,
            max_output_tokens=request.effective_max_tokens,
            safety_settings=DEFAULT_SAFETY_SETTINGS,
            **kwargs
        )
        response = DeltaStream(
            self._stream_generator(request.model, to_history(request.messages), config)
        )
        self._current_stream_response = response
        return response

    async def _stream_generator(
        self,
        model: str,
        history: list[types.Content],
        config: types.GenerateContentConfig,
    ) -> AsyncIterator[str]:
        """Internal generator that yields text and captures usage from chunks."""
        usage = None

        chat = self._client.aio.chats.create(model=model, config=config, history=history)
        stream = await chat.send_message_stream("")
        async for chunk in stream:
            # usage_metadata is complete on the final chunk
            metadata = getattr(chunk, "usage_metadata", None)
            if metadata:
                usage = {
                    "prompt_tokens": metadata.prompt_token_count or 0,
                    "completion_tokens": metadata.candidates_token_count or 0,
                    "total_tokens": metadata.total_token_count or 0,
                }

            text = extract_text(chunk)
            if text:
                yield text

        if usage:
            self._current_stream_response.set_usage(usage)

    async def close(self) -> None:
        """Close the Gemini client's async HTTP session.

        ``aio.aclose()`` only exists on newer google-genai releases; older
        clients hold nothing that outlives a call.
        """
        aclose = getattr(self._client.aio, "aclose", None)
        if aclose is not None:
            await aclose()
