from __future__ import annotations

from loguru import logger
from pydantic import ValidationError

from .config import GatewayConfig
from .contracts import ChatResponse, OutboundReply, UpstreamReply
from .errors import DecodeError, TransportError, UpstreamError
from .logging_setup import body_preview

TEXT_MEDIA_TYPE = "text/plain; charset=utf-8"


def _text_reply(status_code: int, text: str) -> OutboundReply:
    return OutboundReply(status_code=status_code, body=text.encode("utf-8"), media_type=TEXT_MEDIA_TYPE)


def _decode_reason(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    if location == "":
        return first["msg"]
    return f"{location}: {first['msg']}"


def decode_chat_response(body: bytes) -> ChatResponse:
    try:
        return ChatResponse.model_validate_json(body)
    except ValidationError as exc:
        raise DecodeError(_decode_reason(exc), body=body) from exc


def translate_transport_error(error: TransportError) -> OutboundReply:
    return _text_reply(500, f"HTTP request error: {error.cause}")


def translate_upstream_error(error: UpstreamError, config: GatewayConfig) -> OutboundReply:
    if config.error_body_mode == "formatted":
        return _text_reply(
            error.status_code,
            f"HTTP request failed with status code {error.status_code}: {error.body_text}",
        )
    media_type = error.content_type if error.content_type else TEXT_MEDIA_TYPE
    return OutboundReply(status_code=error.status_code, body=error.body, media_type=media_type)


def translate_success(body: bytes, config: GatewayConfig) -> OutboundReply:
    try:
        response = decode_chat_response(body)
    except DecodeError as exc:
        logger.warning("upstream 200 body failed to decode reason={} body={}", exc.reason, body_preview(body))
        return _text_reply(200, f"Failed to deserialize response: {exc.reason}")

    if response.usage is not None:
        logger.debug(
            "upstream usage model={} prompt_tokens={} completion_tokens={} total_tokens={}",
            response.model,
            response.usage.prompt_tokens,
            response.usage.completion_tokens,
            response.usage.total_tokens,
        )

    content = response.first_content()
    if content is None:
        logger.info(
            "upstream response carried no content model={} choices_count={}",
            response.model,
            len(response.choices),
        )
        return _text_reply(200, config.fallback_text)
    return _text_reply(200, content)


def translate_reply(reply: UpstreamReply, config: GatewayConfig) -> OutboundReply:
    if reply.status_code != 200:
        error = UpstreamError(status_code=reply.status_code, body=reply.body, content_type=reply.content_type)
        logger.warning(
            "upstream returned error status_code={} body={}",
            error.status_code,
            body_preview(error.body, max_chars=400),
        )
        return translate_upstream_error(error, config)
    return translate_success(reply.body, config)
