from typing import Any

from .base import ChatAdapter
from .providers import AnthropicAdapter, DeepSeekAdapter, GeminiAdapter, OpenAIAdapter
from .registry import ProviderKind

ADAPTERS: dict[ProviderKind, type[ChatAdapter]] = {
    ProviderKind.OPENAI: OpenAIAdapter,
    ProviderKind.ANTHROPIC: AnthropicAdapter,
    ProviderKind.DEEPSEEK: DeepSeekAdapter,
    ProviderKind.GOOGLE: GeminiAdapter,
}


def create_chat_adapter(provider: ProviderKind | str, **config: Any) -> ChatAdapter:
    """Create a streaming chat adapter.

    This factory function hides the instantiation logic for different providers.
    Adding a provider means one new ``ProviderKind`` member, one adapter class
    in ``ADAPTERS`` and its registry entries.

    Args:
        provider: Provider kind ('openai', 'anthropic', 'deepseek', 'google')
        **config: Adapter configuration
            For every provider:
                - api_key: str (required)
            For OpenAI and DeepSeek:
                - base_url: str | None
            For Anthropic:
                - base_url: str | None

    Returns:
        Initialized chat adapter

    Raises:
        ValueError: If provider kind is not supported
        TypeError: If api_key is missing

    Examples:
        >>> adapter = create_chat_adapter("deepseek", api_key="sk-...")
        >>> adapter = create_chat_adapter(ProviderKind.GOOGLE, api_key="...")
    """
    try:
        kind = ProviderKind(provider.lower() if isinstance(provider, str) else provider)
    except ValueError:
        raise ValueError(
            f"Unsupported provider: {provider}. "
            f"Supported providers: {', '.join(repr(k.value) for k in ProviderKind)}"
        ) from None

    if "api_key" not in config:
        raise TypeError(f"{kind.display_name} provider requires 'api_key' in config")

    return ADAPTERS[kind](**config)
