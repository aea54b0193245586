from __future__ import annotations

from collections.abc import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from loguru import logger

from .config import GatewayConfig
from .errors import ConfigurationError, InvalidInboundPayloadError
from .middleware import CallContextMiddleware
from .pipeline import handle_call
from .runtime import RuntimeState, build_runtime_state
from .upstream import UpstreamClient

INBOUND_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


class InboundBodyTooLarge(Exception):
    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"request body exceeds {limit} bytes")


async def read_inbound_body(request: Request, *, max_bytes: int) -> bytes:
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > max_bytes:
            raise InboundBodyTooLarge(max_bytes)
    return bytes(body)


def create_app(
    config_provider: Callable[[], GatewayConfig],
    client: UpstreamClient,
    *,
    state: RuntimeState | None = None,
) -> FastAPI:
    runtime_state = (
        state if state is not None else build_runtime_state(config_provider=config_provider, client=client)
    )
    app = FastAPI()
    app.add_middleware(CallContextMiddleware, id_provider=runtime_state.id_provider)

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError) -> Response:
        status_code = 400 if isinstance(exc, InvalidInboundPayloadError) else 500
        logger.error(
            "configuration error method={} path={} status_code={} reason={}",
            request.method,
            request.url.path,
            status_code,
            exc,
        )
        return PlainTextResponse(f"configuration error: {exc}", status_code=status_code)

    @app.api_route("/{path:path}", methods=INBOUND_METHODS)
    async def relay(request: Request) -> Response:
        config = runtime_state.config_provider()
        try:
            inbound_body = await read_inbound_body(request, max_bytes=config.max_inbound_bytes)
        except InboundBodyTooLarge as exc:
            logger.warning("inbound body rejected path={} limit={}", request.url.path, exc.limit)
            return PlainTextResponse("request body too large", status_code=413)

        reply = await handle_call(
            inbound_body,
            config=config,
            client=runtime_state.client,
            call_id=request.state.call_id,
        )
        return Response(content=reply.body, status_code=reply.status_code, media_type=reply.media_type)

    return app
