"""Runtime settings.

Centralizes configuration read from environment variables. Provider
credentials are looked up at call time so a request never sees a value
cached from an earlier one.
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field

from .llm.registry import ProviderKind


class GatewaySettings(BaseModel):
    """Settings for the gateway server and the local chat client."""

    host: str = Field(default="127.0.0.1", description="Address the gateway binds to")
    port: int = Field(default=8000, description="Port the gateway listens on")
    fallback_delay: float = Field(
        default=0.05, ge=0, description="Seconds between chunks of the canned fallback reply"
    )
    deepseek_base_url: str = Field(default="https://api.deepseek.com/v1")
    log_level: str = Field(default="INFO")
    storage_backend: str = Field(default="json", description="Persistence backend: memory, json, sqlite")
    storage_path: Path = Field(default=Path("~/.polychat").expanduser())


def get_settings() -> GatewaySettings:
    """Create settings from environment variables.

    Environment variables:
        POLYCHAT_HOST: Bind address (default: 127.0.0.1)
        POLYCHAT_PORT: Port (default: 8000)
        POLYCHAT_FALLBACK_DELAY: Seconds per fallback chunk (default: 0.05)
        DEEPSEEK_BASE_URL: DeepSeek endpoint root (default: https://api.deepseek.com/v1)
        POLYCHAT_LOG_LEVEL: Logging level (default: INFO)
        POLYCHAT_STORAGE_BACKEND: memory, json or sqlite (default: json)
        POLYCHAT_STORAGE_PATH: Directory for persisted conversations (default: ~/.polychat)
    """
    return GatewaySettings(
        host=os.getenv("POLYCHAT_HOST", "127.0.0.1"),
        port=int(os.getenv("POLYCHAT_PORT", "8000")),
        fallback_delay=float(os.getenv("POLYCHAT_FALLBACK_DELAY", "0.05")),
        deepseek_base_url=os.getenv("DEEPSEEK_BASE_URL", "https://api.deepseek.com/v1"),
        log_level=os.getenv("POLYCHAT_LOG_LEVEL", "INFO").upper(),
        storage_backend=os.getenv("POLYCHAT_STORAGE_BACKEND", "json").lower(),
        storage_path=Path(os.getenv("POLYCHAT_STORAGE_PATH", "~/.polychat")).expanduser(),
    )


def credential_from_env(provider: ProviderKind) -> str | None:
    """Get a provider's fallback credential from the environment.

    Args:
        provider: Provider kind whose variables to consult, in order

    Returns:
        The first non-empty value, or None
    """
    for name in provider.env_vars:
        value = os.getenv(name)
        if value:
            return value
    return None
