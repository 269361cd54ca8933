from abc import ABC, abstractmethod
from typing import Any

from .models import ChatRequest, DeltaStream
from .registry import ProviderKind


class ChatAdapter(ABC):
    """Abstract base class for provider streaming adapters.

    This module hides the design decision of which upstream protocol serves a
    request. Implementations must handle provider-specific details like:
    - API client setup and authentication
    - Request format conversion (roles, system preamble, history)
    - Extracting text from the provider's incremental frames

    Every adapter yields the same canonical delta sequence: non-empty text
    fragments in upstream order, ending cleanly when the upstream ends. SDK
    errors raised before the first delta propagate unchanged so the caller
    can report the upstream status.

    Supports async context manager protocol for proper resource cleanup:
        async with adapter:
            stream = await adapter.stream_chat(request)
    """

    kind: ProviderKind

    @abstractmethod
    async def stream_chat(self, request: ChatRequest, **kwargs: Any) -> DeltaStream:
        """Start a streaming chat call.

        Args:
            request: Normalized chat request
            **kwargs: Provider-specific parameters

        Returns:
            DeltaStream yielding text deltas. The upstream call is issued
            lazily, on the first iteration step.
        """

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""

    async def __aenter__(self) -> "ChatAdapter":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
