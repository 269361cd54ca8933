"""Gateway dispatcher.

Accepts a normalized chat request, selects the adapter for the model's
provider kind, and relays the adapter's deltas as one stream. Unregistered
models degrade to the canned fallback reply.

Failures are split at the first delta:
- before it, they surface as ``GatewayError`` subclasses carrying a status
- after it, the stream is truncated and the failure is only logged
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from ..config import GatewaySettings, credential_from_env
from ..llm.base import ChatAdapter
from ..llm.errors import BadRequestError, GatewayError, UnauthorizedError, UpstreamError, upstream_status
from ..llm.factory import create_chat_adapter
from ..llm.models import ChatRequest, DeltaStream
from ..llm.registry import ProviderKind, resolve
from .fallback import fallback_stream

logger = logging.getLogger(__name__)

AdapterFactory = Callable[..., ChatAdapter]
CredentialLookup = Callable[[ProviderKind], str | None]


class GatewayDispatcher:
    """Routes chat requests to provider adapters.

    The dispatcher holds no per-request state; every call creates its own
    adapter and closes it when the relayed stream ends or is abandoned.
    """

    def __init__(
        self,
        settings: GatewaySettings | None = None,
        adapter_factory: AdapterFactory = create_chat_adapter,
        credential_lookup: CredentialLookup = credential_from_env,
    ):
        """Initialize dispatcher.

        Args:
            settings: Gateway settings (defaults are used when omitted)
            adapter_factory: Callable building an adapter from a provider kind and config
            credential_lookup: Callable returning a provider's fallback credential
        """
        self._settings = settings or GatewaySettings()
        self._adapter_factory = adapter_factory
        self._credential_lookup = credential_lookup

    def _adapter_config(self, kind: ProviderKind, credential: str) -> dict[str, Any]:
        config: dict[str, Any] = {"api_key": credential}
        if kind == ProviderKind.DEEPSEEK:
            config["base_url"] = self._settings.deepseek_base_url
        return config

    async def dispatch(self, request: ChatRequest) -> DeltaStream:
        """Dispatch a chat request.

        Args:
            request: Normalized chat request

        Returns:
            DeltaStream of non-empty text deltas

        Raises:
            BadRequestError: If messages or model are missing
            UnauthorizedError: If no credential is available for the provider
            UpstreamError: If the provider fails before producing a delta
        """
        if not request.messages or not request.model:
            raise BadRequestError("Missing required parameters: 'messages' and 'model'")

        model_config = resolve(request.model)
        if model_config is None:
            logger.info("Model %r is not registered, streaming fallback reply", request.model)
            return fallback_stream(request, delay=self._settings.fallback_delay)

        kind = model_config.provider
        credential = request.api_key or self._credential_lookup(kind)
        if not credential:
            logger.warning("No credential for provider %s (model %s)", kind.value, request.model)
            raise UnauthorizedError(kind.value)

        logger.info("Dispatching model %s to %s adapter", request.model, kind.value)
        adapter = self._adapter_factory(kind, **self._adapter_config(kind, credential))

        first: str | None = None
        try:
            stream = await adapter.stream_chat(request)
            try:
                first = await stream.__anext__()
            except StopAsyncIteration:
                first = None
        except GatewayError:
            await adapter.close()
            raise
        except Exception as e:
            await adapter.close()
            status = upstream_status(e)
            logger.error("%s call failed before streaming (status %s): %s", kind.value, status, e)
            raise UpstreamError(kind.value, str(e), status) from e

        released = False

        async def release() -> None:
            nonlocal released
            if released:
                return
            released = True
            try:
                await stream.aclose()
            finally:
                await adapter.close()

        return DeltaStream(self._relay(stream, first, kind, release), on_close=release)

    async def _relay(
        self,
        stream: DeltaStream,
        first: str | None,
        kind: ProviderKind,
        release: Callable[[], Awaitable[None]],
    ) -> AsyncIterator[str]:
        """Yield the primed delta, then the rest of the adapter's stream."""
        count = 0
        try:
            if first:
                count += 1
                yield first
            async for delta in stream:
                count += 1
                yield delta
        except Exception as e:
            logger.warning(
                "%s stream failed after %d deltas, truncating: %s", kind.value, count, e
            )
        finally:
            await release()
            logger.debug("%s stream closed after %d deltas", kind.value, count)
