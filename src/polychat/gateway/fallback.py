"""Canned reply used when a model is not registered.

This is a demo path, not a model call: the reply is a fixed template that
echoes the user's last message, streamed one word at a time with an
artificial delay.
"""

import asyncio
from collections.abc import AsyncIterator

from ..llm.models import ChatRequest, DeltaStream

FALLBACK_TEMPLATE = """Hello! I am the default chat bot. You just asked: "{question}".

This is my default reply:
- I can answer all kinds of questions
- I support multi-turn conversations
- I will do my best to help you solve problems

If you have any other questions, feel free to ask!"""

DEFAULT_CHUNK_DELAY = 0.05


def render_fallback(request: ChatRequest) -> str:
    """Render the fallback template for a request."""
    last = request.last_user_message()
    return FALLBACK_TEMPLATE.format(question=last.content if last else "")


def split_words(text: str) -> list[str]:
    """Split text into word-sized chunks that concatenate back to ``text``.

    Every chunk but the last keeps its trailing space.
    """
    words = text.split(" ")
    return [word + " " for word in words[:-1]] + [words[-1]]


async def _paced(chunks: list[str], delay: float) -> AsyncIterator[str]:
    for chunk in chunks:
        if chunk:
            yield chunk
            await asyncio.sleep(delay)


def fallback_stream(request: ChatRequest, delay: float = DEFAULT_CHUNK_DELAY) -> DeltaStream:
    """Stream the canned reply for a request in word-sized chunks.

    Args:
        request: The chat request whose last user message is echoed
        delay: Seconds to wait after each chunk

    Returns:
        DeltaStream whose concatenation equals ``render_fallback(request)``
    """
    return DeltaStream(_paced(split_words(render_fallback(request)), delay))
