"""Factory functions for CLI commands.

Centralizes creation of the conversation store and gateway client from
settings. Hides configuration details from command implementations.
"""

from pathlib import Path

import httpx

from ..config import GatewaySettings
from ..store import ConversationStore, create_persistence_backend


def get_store(settings: GatewaySettings, path: Path | None = None) -> ConversationStore:
    """Create a conversation store from settings.

    Args:
        settings: Runtime settings
        path: Override for the storage location

    Returns:
        Store wired to the configured persistence backend (not yet connected)

    Environment variables:
        POLYCHAT_STORAGE_BACKEND: memory, json or sqlite (default: json)
        POLYCHAT_STORAGE_PATH: Directory for persisted conversations (default: ~/.polychat)
    """
    location = path or settings.storage_path
    backend_type = settings.storage_backend

    if backend_type == "memory":
        backend = create_persistence_backend("memory")
    elif backend_type == "sqlite":
        backend = create_persistence_backend("sqlite", path=location / "polychat.db")
    else:
        backend = create_persistence_backend(backend_type, path=location)

    return ConversationStore(backend)


def get_gateway_client(base_url: str | None, settings: GatewaySettings) -> httpx.AsyncClient:
    """Create an HTTP client for the gateway.

    Streaming replies can pause for long stretches, so only connecting is
    bounded by a timeout.
    """
    url = base_url or f"http://{settings.host}:{settings.port}"
    return httpx.AsyncClient(base_url=url, timeout=httpx.Timeout(None, connect=10.0))
