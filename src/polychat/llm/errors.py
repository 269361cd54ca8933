"""Gateway error taxonomy.

Every error raised before the first streamed byte maps to an HTTP status and
a human readable message. Failures after streaming has begun are not errors
at this level: the stream is truncated instead.
"""

from typing import Any


class GatewayError(Exception):
    """Base class for errors reported to the caller as ``{"error": ...}``."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, str]:
        return {"error": self.message}


class BadRequestError(GatewayError):
    """The request is missing its messages or its model."""

    status_code = 400


class UnauthorizedError(GatewayError):
    """No credential is available for the resolved provider."""

    status_code = 401

    def __init__(self, provider: str):
        super().__init__(f"Missing API key for provider '{provider}'")
        self.provider = provider


class UpstreamError(GatewayError):
    """The provider call failed before any delta was produced."""

    def __init__(self, provider: str, message: str, status_code: int | None = None):
        super().__init__(message or f"{provider} API call failed", status_code)
        self.provider = provider


def upstream_status(exc: BaseException) -> int | None:
    """Extract the HTTP status an SDK exception reports, if any.

    OpenAI and Anthropic errors expose ``status_code``; Google GenAI errors
    expose ``code``.
    """
    for attr in ("status_code", "status", "code"):
        value: Any = getattr(exc, attr, None)
        if isinstance(value, int) and 400 <= value <= 599:
            return value
    return None
