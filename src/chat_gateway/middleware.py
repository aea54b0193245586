from __future__ import annotations

from collections.abc import Callable

from loguru import logger
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .logging_setup import body_preview, is_debug_logging_enabled

PREVIEW_BYTES = 2000


class _BoundedPreview:
    """Keeps at most ``limit`` bytes of a body as it streams past."""

    def __init__(self, limit: int) -> None:
        self._limit = limit
        self._buffer = bytearray()
        self.seen = 0

    def feed(self, chunk: bytes) -> None:
        self.seen += len(chunk)
        room = self._limit - len(self._buffer)
        if room > 0:
            self._buffer.extend(chunk[:room])

    @property
    def truncated(self) -> bool:
        return self.seen > len(self._buffer)

    def render(self) -> str:
        return body_preview(bytes(self._buffer), max_chars=self._limit)


class CallContextMiddleware:
    """Tags every log record of a call with its ``call_id``.

    In debug mode the inbound and outbound bodies are previewed as they stream
    through; nothing beyond ``preview_bytes`` of either body is held.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        id_provider: Callable[[], str],
        preview_bytes: int = PREVIEW_BYTES,
    ) -> None:
        self.app = app
        self._id_provider = id_provider
        self._preview_bytes = preview_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        call_id = self._id_provider()
        scope.setdefault("state", {})["call_id"] = call_id
        with logger.contextualize(call_id=call_id):
            if is_debug_logging_enabled():
                await self._call_with_previews(scope, receive, send)
            else:
                await self.app(scope, receive, send)

    async def _call_with_previews(self, scope: Scope, receive: Receive, send: Send) -> None:
        method = scope["method"]
        path = scope["path"]
        inbound = _BoundedPreview(self._preview_bytes)
        outbound = _BoundedPreview(self._preview_bytes)
        status_code = 0

        async def receive_with_preview() -> Message:
            message = await receive()
            if message["type"] == "http.request":
                inbound.feed(message.get("body", b""))
            return message

        async def send_with_preview(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            elif message["type"] == "http.response.body":
                outbound.feed(message.get("body", b""))
            await send(message)

        logger.debug(
            "incoming request method={} path={} query={}",
            method,
            path,
            scope.get("query_string", b"").decode("latin-1"),
        )
        try:
            await self.app(scope, receive_with_preview, send_with_preview)
        finally:
            logger.debug(
                "incoming body method={} path={} bytes_read={} truncated={} body={}",
                method,
                path,
                inbound.seen,
                inbound.truncated,
                inbound.render(),
            )
            logger.debug(
                "outgoing response method={} path={} status_code={} bytes_sent={} truncated={} body={}",
                method,
                path,
                status_code,
                outbound.seen,
                outbound.truncated,
                outbound.render(),
            )
