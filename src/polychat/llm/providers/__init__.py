from .anthropic import AnthropicAdapter
from .deepseek import DeepSeekAdapter
from .gemini import GeminiAdapter
from .openai import OpenAIAdapter

__all__ = ["AnthropicAdapter", "DeepSeekAdapter", "GeminiAdapter", "OpenAIAdapter"]
