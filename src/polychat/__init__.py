"""
Polychat: one streaming chat interface over several LLM providers.

This package follows Parnas's information hiding principles,
where each module hides a specific design decision:
- llm: which provider protocol serves a model
- gateway: how requests are routed, degraded and relayed over HTTP
- store: how conversations are held, mutated and persisted
- client: how a streamed reply is applied to the store
"""

__version__ = "0.1.0"

from .gateway import GatewayDispatcher, create_app
from .llm import ChatMessage, ChatRequest, DeltaStream, ProviderKind, resolve
from .store import AppConfig, Conversation, ConversationStore, FileAttachment, Message

__all__ = [
    "AppConfig",
    "ChatMessage",
    "ChatRequest",
    "Conversation",
    "ConversationStore",
    "DeltaStream",
    "FileAttachment",
    "GatewayDispatcher",
    "Message",
    "ProviderKind",
    "create_app",
    "resolve",
]
