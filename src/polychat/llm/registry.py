"""Provider registry.

Static table mapping a model identifier to the provider kind that serves it
and the metadata shown next to it. Lookups are pure: an unknown model is
reported as ``None`` and callers decide how to degrade.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ProviderKind(str, Enum):
    """Upstream provider families, one adapter per member."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    DEEPSEEK = "deepseek"
    GOOGLE = "google"

    @property
    def env_vars(self) -> tuple[str, ...]:
        """Environment variables holding this provider's fallback credential."""
        return _ENV_VARS[self]

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_ENV_VARS: dict[ProviderKind, tuple[str, ...]] = {
    ProviderKind.OPENAI: ("OPENAI_API_KEY",),
    ProviderKind.ANTHROPIC: ("ANTHROPIC_API_KEY",),
    ProviderKind.DEEPSEEK: ("DEEPSEEK_API_KEY",),
    ProviderKind.GOOGLE: ("GOOGLE_API_KEY", "GEMINI_API_KEY"),
}

_DISPLAY_NAMES: dict[ProviderKind, str] = {
    ProviderKind.OPENAI: "OpenAI",
    ProviderKind.ANTHROPIC: "Anthropic",
    ProviderKind.DEEPSEEK: "DeepSeek",
    ProviderKind.GOOGLE: "Google",
}

DEFAULT_ICON = "🤖"


class ModelConfig(BaseModel):
    """Registry entry for a single model."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Model identifier sent upstream")
    display_name: str = Field(description="Human readable model name")
    provider: ProviderKind = Field(description="Provider kind serving this model")
    icon: str = Field(default=DEFAULT_ICON, description="Icon shown in model pickers")


MODEL_CONFIGS: tuple[ModelConfig, ...] = (
    ModelConfig(name="gpt-4o", display_name="GPT-4o", provider=ProviderKind.OPENAI, icon="🤖"),
    ModelConfig(
        name="gpt-3.5-turbo", display_name="GPT-3.5 Turbo", provider=ProviderKind.OPENAI, icon="🤖"
    ),
    ModelConfig(
        name="claude-3-opus", display_name="Claude 3 Opus", provider=ProviderKind.ANTHROPIC, icon="🧠"
    ),
    ModelConfig(
        name="claude-3-sonnet",
        display_name="Claude 3 Sonnet",
        provider=ProviderKind.ANTHROPIC,
        icon="🧠",
    ),
    ModelConfig(
        name="deepseek-chat", display_name="DeepSeek Chat", provider=ProviderKind.DEEPSEEK, icon="🔍"
    ),
    ModelConfig(name="gemini-pro", display_name="Gemini Pro", provider=ProviderKind.GOOGLE, icon="✨"),
)

_BY_NAME: dict[str, ModelConfig] = {config.name: config for config in MODEL_CONFIGS}


def resolve(model: str) -> ModelConfig | None:
    """Look up a model identifier.

    Args:
        model: Model identifier as sent by the client

    Returns:
        The registry entry, or None when the model is not registered
    """
    return _BY_NAME.get(model)


def get_models_by_provider(provider: ProviderKind | str) -> list[ModelConfig]:
    """Get every registered model served by a provider kind."""
    return [config for config in MODEL_CONFIGS if config.provider == provider]


def get_all_models() -> list[ModelConfig]:
    """Get every registered model, in registry order."""
    return list(MODEL_CONFIGS)


def get_provider_icon(provider: ProviderKind | str) -> str:
    """Get the icon of the first model registered for a provider kind."""
    for config in MODEL_CONFIGS:
        if config.provider == provider:
            return config.icon
    return DEFAULT_ICON


def is_model_requiring_api_key(model: str) -> bool:
    """Every model, registered or not, needs a credential upstream."""
    return True
