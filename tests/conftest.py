"""Pytest configuration and shared fixtures."""
import os
from types import SimpleNamespace

import pytest

from polychat.config import GatewaySettings
from polychat.llm.base import ChatAdapter
from polychat.llm.models import ChatMessage, ChatRequest, DeltaStream
from polychat.llm.registry import ProviderKind


class FakeSDKStream:
    """Async iterator standing in for an SDK stream object."""

    def __init__(self, items, fail_after: int | None = None):
        self._items = list(items)
        self._fail_after = fail_after
        self._index = 0
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._fail_after is not None and self._index >= self._fail_after:
            raise ConnectionError("upstream connection reset")
        if self._index >= len(self._items):
            raise StopAsyncIteration
        item = self._items[self._index]
        self._index += 1
        return item

    async def close(self):
        self.closed = True


class UpstreamStatusError(Exception):
    """Mimics an SDK error carrying an HTTP status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class FakeAdapter(ChatAdapter):
    """Adapter yielding canned deltas, optionally failing."""

    def __init__(
        self,
        kind: ProviderKind,
        deltas: list[str],
        error: Exception | None = None,
        fail_after: int | None = None,
        **config,
    ):
        self.kind = kind
        self.config = config
        self.deltas = deltas
        self.error = error
        self.fail_after = fail_after
        self.requests: list[ChatRequest] = []
        self.closed = False

    async def stream_chat(self, request, **kwargs) -> DeltaStream:
        self.requests.append(request)
        return DeltaStream(self._generate())

    async def _generate(self):
        if self.error is not None:
            raise self.error
        for index, delta in enumerate(self.deltas):
            if self.fail_after is not None and index >= self.fail_after:
                raise ConnectionError("upstream connection reset")
            yield delta

    async def close(self) -> None:
        self.closed = True


class AdapterFactory:
    """Records adapters created by the dispatcher."""

    def __init__(self, deltas=None, error=None, fail_after=None):
        self.deltas = deltas if deltas is not None else ["Hi", " there", "!"]
        self.error = error
        self.fail_after = fail_after
        self.created: list[FakeAdapter] = []

    def __call__(self, kind, **config) -> FakeAdapter:
        adapter = FakeAdapter(kind, self.deltas, self.error, self.fail_after, **config)
        self.created.append(adapter)
        return adapter


def openai_chunk(content: str | None, usage=None):
    return SimpleNamespace(
        usage=usage,
        choices=[SimpleNamespace(delta=SimpleNamespace(content=content))] if content is not None else [],
    )


@pytest.fixture
def adapter_factory():
    """Factory producing fake adapters that stream 'Hi there!'."""
    return AdapterFactory()


@pytest.fixture
def make_adapter_factory():
    """Build an adapter factory with custom behaviour."""
    return AdapterFactory


@pytest.fixture
def fake_sdk_stream():
    return FakeSDKStream


@pytest.fixture
def status_error():
    return UpstreamStatusError


@pytest.fixture
def make_openai_chunk():
    return openai_chunk


@pytest.fixture
def settings(tmp_path):
    """Settings with no fallback pacing and storage under tmp_path."""
    return GatewaySettings(fallback_delay=0, storage_backend="json", storage_path=tmp_path)


@pytest.fixture
def chat_request():
    return ChatRequest(
        messages=[ChatMessage(role="user", content="Hello")],
        model="gpt-4o",
        temperature=0.5,
        max_tokens=256,
    )


@pytest.fixture(autouse=True)
def no_provider_env(monkeypatch):
    """Keep real credentials in the environment out of unit tests."""
    for kind in ProviderKind:
        for name in kind.env_vars:
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(scope="session")
def api_keys():
    """Return API keys from environment."""
    return {
        "openai": os.getenv("OPENAI_API_KEY"),
        "anthropic": os.getenv("ANTHROPIC_API_KEY"),
        "deepseek": os.getenv("DEEPSEEK_API_KEY"),
        "google": os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY"),
    }
