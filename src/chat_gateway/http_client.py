from __future__ import annotations

import httpx
from loguru import logger

from .contracts import OutboundRequest, UpstreamReply
from .errors import TransportError
from .logging_setup import body_preview

CHUNK_SIZE = 8192


def _describe(exc: Exception) -> str:
    message = str(exc)
    if message == "":
        return type(exc).__name__
    return f"{type(exc).__name__}: {message}"


class HttpxUpstreamClient:
    def __init__(
        self,
        *,
        timeout_seconds: float = 120.0,
        max_body_bytes: int = 8 * 1024 * 1024,
    ) -> None:
        self._timeout_seconds = timeout_seconds
        self._max_body_bytes = max_body_bytes

    async def send(self, request: OutboundRequest) -> UpstreamReply:
        logger.debug(
            "upstream request method={} url={} body_len={}",
            request.method,
            request.url,
            len(request.body),
        )

        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                async with client.stream(
                    request.method,
                    request.url,
                    headers=request.headers,
                    content=request.body,
                ) as response:
                    body = bytearray()
                    async for chunk in response.aiter_bytes(CHUNK_SIZE):
                        body.extend(chunk)
                        if len(body) > self._max_body_bytes:
                            raise TransportError(
                                f"upstream body exceeded {self._max_body_bytes} bytes",
                                url=request.url,
                            )
                    status_code = response.status_code
                    content_type = response.headers.get("content-type")
        except httpx.HTTPError as exc:
            raise TransportError(_describe(exc), url=request.url) from exc

        logger.debug(
            "upstream raw response url={} status={} content_type={} body={}",
            request.url,
            status_code,
            content_type,
            body_preview(bytes(body)),
        )
        return UpstreamReply(status_code=status_code, body=bytes(body), content_type=content_type)
