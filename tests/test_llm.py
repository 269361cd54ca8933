"""Unit tests for the llm module: registry, request models and adapters."""
import json
from types import SimpleNamespace

import pytest
from hypothesis import given
from hypothesis import strategies as st

from polychat.llm import (
    DEFAULT_MAX_TOKENS,
    AnthropicAdapter,
    ChatAdapter,
    ChatMessage,
    ChatRequest,
    DeepSeekAdapter,
    DeltaStream,
    GeminiAdapter,
    OpenAIAdapter,
    ProviderKind,
    create_chat_adapter,
    resolve,
)
from polychat.llm.errors import upstream_status
from polychat.llm.providers.anthropic import delta_text, split_system_message
from polychat.llm.providers.deepseek import DEEPSEEK_BASE_URL
from polychat.llm.providers.gemini import to_history
from polychat.llm.registry import (
    DEFAULT_ICON,
    get_all_models,
    get_models_by_provider,
    get_provider_icon,
    is_model_requiring_api_key,
)


async def collect(stream: DeltaStream) -> list[str]:
    return [delta async for delta in stream]


class TestRegistry:
    """Tests for the provider registry."""

    @pytest.mark.parametrize(
        "model,kind",
        [
            ("gpt-4o", ProviderKind.OPENAI),
            ("gpt-3.5-turbo", ProviderKind.OPENAI),
            ("claude-3-opus", ProviderKind.ANTHROPIC),
            ("claude-3-sonnet", ProviderKind.ANTHROPIC),
            ("deepseek-chat", ProviderKind.DEEPSEEK),
            ("gemini-pro", ProviderKind.GOOGLE),
        ],
    )
    def test_resolve_known_models(self, model, kind):
        config = resolve(model)
        assert config is not None
        assert config.provider == kind
        assert config.display_name

    def test_resolve_unknown_model(self):
        assert resolve("unknown-model-xyz") is None
        assert resolve("") is None

    def test_models_by_provider(self):
        names = [c.name for c in get_models_by_provider(ProviderKind.ANTHROPIC)]
        assert names == ["claude-3-opus", "claude-3-sonnet"]
        assert get_models_by_provider("openai") == get_models_by_provider(ProviderKind.OPENAI)

    def test_all_models_is_a_copy(self):
        models = get_all_models()
        models.clear()
        assert len(get_all_models()) == 6

    def test_provider_icon(self):
        assert get_provider_icon(ProviderKind.GOOGLE) == "✨"
        assert get_provider_icon("nobody") == DEFAULT_ICON

    def test_every_model_requires_a_key(self):
        assert is_model_requiring_api_key("gpt-4o")
        assert is_model_requiring_api_key("unknown-model-xyz")

    def test_google_accepts_gemini_variable(self):
        assert ProviderKind.GOOGLE.env_vars == ("GOOGLE_API_KEY", "GEMINI_API_KEY")


class TestChatRequest:
    """Tests for the normalized request model."""

    def test_parses_wire_aliases(self):
        request = ChatRequest.model_validate({
            "messages": [{"role": "user", "content": "Hi", "id": "1", "isStreaming": False}],
            "model": "gpt-4o",
            "temperature": 0.2,
            "maxTokens": 100,
            "apiKey": "sk-test",
        })
        assert request.max_tokens == 100
        assert request.api_key == "sk-test"
        assert request.messages == [ChatMessage(role="user", content="Hi")]

    def test_missing_fields_default_to_empty(self):
        request = ChatRequest.model_validate({})
        assert request.messages == []
        assert request.model == ""

    @pytest.mark.parametrize("max_tokens", [None, 0, -5])
    def test_invalid_max_tokens_use_default(self, max_tokens):
        request = ChatRequest(messages=[], model="gpt-4o", max_tokens=max_tokens)
        assert request.effective_max_tokens == DEFAULT_MAX_TOKENS == 4000

    @given(st.integers(min_value=1, max_value=1_000_000))
    def test_positive_max_tokens_forwarded(self, max_tokens: int):
        request = ChatRequest(messages=[], model="gpt-4o", max_tokens=max_tokens)
        assert request.effective_max_tokens == max_tokens

    def test_last_user_message(self):
        request = ChatRequest(
            messages=[
                ChatMessage(role="user", content="first"),
                ChatMessage(role="assistant", content="reply"),
            ],
            model="x",
        )
        assert request.last_user_message().content == "first"


class TestDeltaStream:
    """Tests for the DeltaStream wrapper."""

    @pytest.mark.asyncio
    async def test_not_restartable(self):
        async def gen():
            yield "a"
            yield "b"

        stream = DeltaStream(gen())
        assert await collect(stream) == ["a", "b"]
        assert stream.closed
        assert await collect(stream) == []

    @pytest.mark.asyncio
    async def test_aclose_stops_generator(self):
        finished = []

        async def gen():
            try:
                yield "a"
                yield "b"
            finally:
                finished.append(True)

        stream = DeltaStream(gen())
        assert await stream.__anext__() == "a"
        await stream.aclose()
        assert finished == [True]
        assert await collect(stream) == []

    @pytest.mark.asyncio
    async def test_on_close_runs_once_without_iteration(self):
        calls = []

        async def gen():
            yield "a"

        async def on_close():
            calls.append(True)

        stream = DeltaStream(gen(), on_close=on_close)
        await stream.aclose()
        await stream.aclose()
        assert calls == [True]
        assert stream.closed

    @pytest.mark.asyncio
    async def test_on_close_runs_after_exhaustion(self):
        calls = []

        async def gen():
            yield "a"

        async def on_close():
            calls.append(True)

        stream = DeltaStream(gen(), on_close=on_close)
        assert await collect(stream) == ["a"]
        await stream.aclose()
        assert calls == [True]


class TestFactory:
    """Tests for the adapter factory."""

    @pytest.mark.parametrize(
        "provider,cls",
        [
            ("openai", OpenAIAdapter),
            ("anthropic", AnthropicAdapter),
            ("deepseek", DeepSeekAdapter),
            ("google", GeminiAdapter),
            (ProviderKind.GOOGLE, GeminiAdapter),
            ("OpenAI", OpenAIAdapter),
        ],
    )
    def test_create_adapter(self, provider, cls):
        adapter = create_chat_adapter(provider, api_key="fake-key")
        assert isinstance(adapter, cls)
        assert isinstance(adapter, ChatAdapter)

    def test_missing_api_key(self):
        with pytest.raises(TypeError, match="requires 'api_key'"):
            create_chat_adapter("openai")

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unsupported provider"):
            create_chat_adapter("mistral", api_key="fake-key")

    def test_adapter_is_abstract(self):
        with pytest.raises(TypeError):
            ChatAdapter()  # type: ignore

    def test_deepseek_uses_its_endpoint(self):
        adapter = DeepSeekAdapter(api_key="fake-key")
        assert str(adapter._client.base_url).startswith(DEEPSEEK_BASE_URL)
        assert adapter.kind == ProviderKind.DEEPSEEK


class TestOpenAIAdapter:
    """Tests for the OpenAI-compatible adapter against a fake client."""

    def _install(self, adapter, stream):
        calls = []

        async def create(**params):
            calls.append(params)
            return stream

        adapter._client = SimpleNamespace(
            chat=SimpleNamespace(completions=SimpleNamespace(create=create))
        )
        return calls

    @pytest.mark.asyncio
    async def test_yields_non_empty_deltas(self, chat_request, fake_sdk_stream, make_openai_chunk):
        usage = SimpleNamespace(prompt_tokens=3, completion_tokens=2, total_tokens=5)
        stream = fake_sdk_stream([
            make_openai_chunk("Hel"),
            make_openai_chunk(""),
            make_openai_chunk(None),
            make_openai_chunk("lo"),
            make_openai_chunk(None, usage=usage),
        ])
        adapter = OpenAIAdapter(api_key="fake-key")
        calls = self._install(adapter, stream)

        result = await adapter.stream_chat(chat_request)
        assert await collect(result) == ["Hel", "lo"]
        assert result.usage == {"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5}
        assert stream.closed

        params = calls[0]
        assert params["model"] == "gpt-4o"
        assert params["messages"] == [{"role": "user", "content": "Hello"}]
        assert params["max_tokens"] == 256
        assert params["temperature"] == 0.5
        assert params["stream"] is True

    @pytest.mark.asyncio
    async def test_call_is_lazy(self, chat_request, fake_sdk_stream):
        adapter = OpenAIAdapter(api_key="fake-key")
        calls = self._install(adapter, fake_sdk_stream([]))
        await adapter.stream_chat(chat_request)
        assert calls == []

    @pytest.mark.asyncio
    async def test_upstream_error_propagates_unchanged(self, chat_request, status_error):
        adapter = OpenAIAdapter(api_key="fake-key")

        async def create(**params):
            raise status_error("rate limited", 429)

        adapter._client = SimpleNamespace(
            chat=SimpleNamespace(completions=SimpleNamespace(create=create))
        )
        stream = await adapter.stream_chat(chat_request)
        with pytest.raises(status_error) as info:
            await collect(stream)
        assert upstream_status(info.value) == 429


class TestAnthropicAdapter:
    """Tests for the Anthropic adapter against a fake client."""

    def test_split_system_message_keeps_first(self):
        system, turns = split_system_message([
            ChatMessage(role="system", content="Be brief"),
            ChatMessage(role="user", content="Hi"),
            ChatMessage(role="system", content="Ignored"),
            ChatMessage(role="assistant", content="Hello"),
        ])
        assert system == "Be brief"
        assert turns == [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello"},
        ]

    def test_delta_text_variants(self):
        assert delta_text(SimpleNamespace(text="abc")) == "abc"
        assert delta_text(SimpleNamespace(json={"b": 1, "a": [1, 2]})) == json.dumps({"b": 1, "a": [1, 2]})
        assert delta_text(SimpleNamespace(partial_json='{"a":')) == '{"a":'
        assert delta_text(SimpleNamespace()) == ""
        assert delta_text(None) == ""

    @pytest.mark.asyncio
    async def test_stream_content_block_deltas(self, fake_sdk_stream):
        events = [
            SimpleNamespace(type="message_start", message=SimpleNamespace(usage=SimpleNamespace(input_tokens=7))),
            SimpleNamespace(type="content_block_start"),
            SimpleNamespace(type="content_block_delta", delta=SimpleNamespace(text="Bon")),
            SimpleNamespace(type="content_block_delta", delta=SimpleNamespace(text="")),
            SimpleNamespace(type="content_block_delta", delta=SimpleNamespace(partial_json='{"k": 1}')),
            SimpleNamespace(type="content_block_delta", delta=SimpleNamespace(text="jour")),
            SimpleNamespace(type="message_delta", usage=SimpleNamespace(output_tokens=4)),
            SimpleNamespace(type="message_stop"),
        ]
        stream = fake_sdk_stream(events)
        calls = []

        async def create(**params):
            calls.append(params)
            return stream

        adapter = AnthropicAdapter(api_key="fake-key")
        adapter._client = SimpleNamespace(messages=SimpleNamespace(create=create))

        request = ChatRequest(
            messages=[
                ChatMessage(role="system", content="Speak French"),
                ChatMessage(role="user", content="Hello"),
            ],
            model="claude-3-opus",
            max_tokens=0,
        )
        result = await adapter.stream_chat(request)
        assert await collect(result) == ["Bon", '{"k": 1}', "jour"]
        assert result.usage == {"prompt_tokens": 7, "completion_tokens": 4, "total_tokens": 11}

        params = calls[0]
        assert params["system"] == "Speak French"
        assert params["messages"] == [{"role": "user", "content": "Hello"}]
        assert params["max_tokens"] == 4000

    @pytest.mark.asyncio
    async def test_no_system_field_without_system_message(self, chat_request, fake_sdk_stream):
        calls = []

        async def create(**params):
            calls.append(params)
            return fake_sdk_stream([])

        adapter = AnthropicAdapter(api_key="fake-key")
        adapter._client = SimpleNamespace(messages=SimpleNamespace(create=create))
        assert await collect(await adapter.stream_chat(chat_request)) == []
        assert "system" not in calls[0]


class TestGeminiAdapter:
    """Tests for the Gemini adapter against a fake client."""

    def test_history_role_mapping(self):
        history = to_history([
            ChatMessage(role="system", content="s"),
            ChatMessage(role="user", content="u"),
            ChatMessage(role="assistant", content="a"),
        ])
        assert [c.role for c in history] == ["model", "user", "model"]
        assert history[1].parts[0].text == "u"

    @pytest.mark.asyncio
    async def test_streams_text_segments(self, fake_sdk_stream):
        chunks = [
            SimpleNamespace(candidates=None, text="Ciao", usage_metadata=None),
            SimpleNamespace(candidates=None, text="", usage_metadata=None),
            SimpleNamespace(
                candidates=None,
                text=" mondo",
                usage_metadata=SimpleNamespace(
                    prompt_token_count=5, candidates_token_count=2, total_token_count=7
                ),
            ),
        ]
        sent = []
        created = []

        class FakeChat:
            async def send_message_stream(self, message):
                sent.append(message)
                return fake_sdk_stream(chunks)

        def create(**kwargs):
            created.append(kwargs)
            return FakeChat()

        adapter = GeminiAdapter(api_key="fake-key")
        adapter._client = SimpleNamespace(aio=SimpleNamespace(chats=SimpleNamespace(create=create)))

        request = ChatRequest(
            messages=[ChatMessage(role="user", content="Hi")], model="gemini-pro", max_tokens=-1
        )
        result = await adapter.stream_chat(request)
        assert await collect(result) == ["Ciao", " mondo"]
        assert result.usage == {"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7}

        assert sent == [""]
        assert created[0]["model"] == "gemini-pro"
        assert created[0]["config"].max_output_tokens == 4000
        assert [c.role for c in created[0]["history"]] == ["user"]

    @pytest.mark.asyncio
    async def test_close_releases_async_session(self):
        closed = []

        async def aclose():
            closed.append(True)

        adapter = GeminiAdapter(api_key="fake-key")
        adapter._client = SimpleNamespace(aio=SimpleNamespace(aclose=aclose))
        await adapter.close()
        assert closed == [True]

    @pytest.mark.asyncio
    async def test_close_without_async_session_close(self):
        adapter = GeminiAdapter(api_key="fake-key")
        adapter._client = SimpleNamespace(aio=SimpleNamespace())
        await adapter.close()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_openai_stream_real_api(api_keys):
    """Integration test: stream a short reply from OpenAI."""
    if not api_keys["openai"]:
        pytest.skip("OPENAI_API_KEY not set")

    async with OpenAIAdapter(api_key=api_keys["openai"]) as adapter:
        request = ChatRequest(
            messages=[ChatMessage(role="user", content="Say hello in one word")],
            model="gpt-4o",
            max_tokens=10,
        )
        deltas = await collect(await adapter.stream_chat(request))
        assert deltas
        assert all(deltas)
