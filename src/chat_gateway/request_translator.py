from __future__ import annotations

import json
from typing import Any

from loguru import logger

from .config import GatewayConfig
from .contracts import ChatMessage, ChatRequest, OutboundRequest
from .errors import ConfigurationError, InvalidInboundPayloadError

SYSTEM_PROMPT = "You are a helpful assistant."
USER_AGENT = "chat-gateway/0.1.0"


def _parse_text_field(inbound_body: bytes) -> tuple[str | None, str]:
    """Return ``(text, reason)``; ``reason`` explains a missing text."""
    try:
        payload: Any = json.loads(inbound_body.decode("utf-8"))
    except UnicodeDecodeError:
        return None, "body is not valid UTF-8"
    except ValueError:
        return None, "body is not valid JSON"

    if not isinstance(payload, dict):
        return None, "body is not a JSON object"
    text = payload.get("text")
    if not isinstance(text, str):
        return None, "body has no string field 'text'"
    return text, ""


def extract_user_prompt(inbound_body: bytes, config: GatewayConfig) -> str:
    text, reason = _parse_text_field(inbound_body)
    if text is not None:
        logger.debug("inbound prompt extracted prompt_len={}", len(text))
        return text

    if config.prompt_mode == "interactive":
        raise InvalidInboundPayloadError(reason)

    if len(inbound_body) > 0:
        logger.warning("inbound payload ignored reason={} using default prompt", reason)
    return config.default_prompt


def build_chat_request(user_prompt: str, config: GatewayConfig) -> ChatRequest:
    return ChatRequest(
        model=config.model_id,
        messages=(
            ChatMessage(role="system", content=SYSTEM_PROMPT),
            ChatMessage(role="user", content=user_prompt),
        ),
        max_tokens=config.max_tokens,
        temperature=config.temperature,
    )


def build_headers(config: GatewayConfig) -> dict[str, str]:
    if config.bearer_token.strip() == "":
        raise ConfigurationError("bearer token is empty; refusing to send unauthenticated request")
    return {
        "Content-Type": "application/json",
        "User-Agent": USER_AGENT,
        "Authorization": f"Bearer {config.bearer_token}",
    }


def serialize_chat_request(chat_request: ChatRequest) -> bytes:
    payload = chat_request.model_dump(mode="json")
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def build_outbound_request(inbound_body: bytes, config: GatewayConfig) -> OutboundRequest:
    headers = build_headers(config)
    chat_request = build_chat_request(extract_user_prompt(inbound_body, config), config)
    return OutboundRequest(
        url=config.upstream_url,
        headers=headers,
        body=serialize_chat_request(chat_request),
    )
