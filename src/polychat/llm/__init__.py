from .base import ChatAdapter
from .errors import BadRequestError, GatewayError, UnauthorizedError, UpstreamError
from .factory import create_chat_adapter
from .models import DEFAULT_MAX_TOKENS, ChatMessage, ChatRequest, DeltaStream
from .providers import AnthropicAdapter, DeepSeekAdapter, GeminiAdapter, OpenAIAdapter
from .registry import ModelConfig, ProviderKind, get_all_models, resolve

__all__ = [
    "ChatAdapter",
    "create_chat_adapter",
    "ChatMessage",
    "ChatRequest",
    "DeltaStream",
    "DEFAULT_MAX_TOKENS",
    "BadRequestError",
    "GatewayError",
    "UnauthorizedError",
    "UpstreamError",
    "ModelConfig",
    "ProviderKind",
    "get_all_models",
    "resolve",
    "AnthropicAdapter",
    "DeepSeekAdapter",
    "GeminiAdapter",
    "OpenAIAdapter",
]
