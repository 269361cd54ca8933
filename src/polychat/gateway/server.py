"""HTTP surface of the gateway.

``POST /api/chat`` streams the reply as a chunked ``text/plain`` body made
of the raw concatenated deltas. Errors raised before streaming come back as
``{"error": "..."}`` with the matching status.
"""

import logging
from collections.abc import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError
from starlette.background import BackgroundTask

from ..config import GatewaySettings, get_settings
from ..llm.errors import BadRequestError, GatewayError
from ..llm.models import ChatRequest, DeltaStream
from ..llm.registry import get_all_models
from .dispatcher import GatewayDispatcher

logger = logging.getLogger(__name__)


async def _encode(stream: DeltaStream, request: Request) -> AsyncIterator[bytes]:
    try:
        async for delta in stream:
            yield delta.encode("utf-8")
    finally:
        if not stream.closed:
            logger.info("Client %s disconnected mid-stream", request.client.host if request.client else "?")
        await stream.aclose()


def create_app(
    dispatcher: GatewayDispatcher | None = None,
    settings: GatewaySettings | None = None,
) -> FastAPI:
    """Create the gateway application.

    Args:
        dispatcher: Dispatcher to serve requests with (built from settings if omitted)
        settings: Gateway settings (read from the environment if omitted)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    dispatcher = dispatcher or GatewayDispatcher(settings)

    app = FastAPI(title="polychat gateway", version="0.1.0")
    app.state.dispatcher = dispatcher
    app.state.settings = settings

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error serving %s", request.url.path)
        return JSONResponse({"error": str(exc) or "Internal server error"}, status_code=500)

    @app.post("/api/chat")
    async def chat(request: Request) -> StreamingResponse:
        try:
            body = await request.json()
        except ValueError:
            raise BadRequestError("Request body must be valid JSON") from None
        if not isinstance(body, dict):
            raise BadRequestError("Request body must be a JSON object")

        try:
            chat_request = ChatRequest.model_validate(body)
        except ValidationError as e:
            raise BadRequestError(f"Invalid request: {e.errors()[0]['msg']}") from None

        stream = await request.app.state.dispatcher.dispatch(chat_request)
        return StreamingResponse(
            _encode(stream, request),
            media_type="text/plain; charset=utf-8",
            background=BackgroundTask(stream.aclose),
        )

    @app.get("/api/models")
    async def models() -> list[dict]:
        return [config.model_dump(mode="json") for config in get_all_models()]

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
