"""Streaming chat gateway: dispatcher, fallback reply and HTTP application."""

from .dispatcher import GatewayDispatcher
from .fallback import FALLBACK_TEMPLATE, fallback_stream, render_fallback
from .server import create_app

__all__ = [
    "FALLBACK_TEMPLATE",
    "GatewayDispatcher",
    "create_app",
    "fallback_stream",
    "render_fallback",
]
