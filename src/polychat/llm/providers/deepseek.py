from typing import Any

from ..registry import ProviderKind
from .openai import OpenAIAdapter

DEEPSEEK_BASE_URL = "https://api.deepseek.com/v1"


class DeepSeekAdapter(OpenAIAdapter):
    """DeepSeek adapter using the OpenAI-compatible API.

    Only the endpoint root and credential differ from OpenAI; frames are
    parsed identically.
    """

    kind = ProviderKind.DEEPSEEK

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize DeepSeek adapter.

        Args:
            api_key: DeepSeek API key
            base_url: DeepSeek API base URL (default: https://api.deepseek.com/v1)
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        super().__init__(api_key=api_key, base_url=base_url or DEEPSEEK_BASE_URL, **client_kwargs)
