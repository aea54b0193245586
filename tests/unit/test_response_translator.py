from __future__ import annotations

import pytest

from chat_gateway.config import GatewayConfig
from chat_gateway.contracts import UpstreamReply
from chat_gateway.errors import DecodeError, TransportError
from chat_gateway.response_translator import (
    decode_chat_response,
    translate_reply,
    translate_transport_error,
)
from tests.helpers import completion, ok_reply


def test_first_choice_content_is_returned_verbatim(gateway_config: GatewayConfig) -> None:
    reply = translate_reply(ok_reply(completion("Pourquoi le poulet a-t-il \"traversé\"?\n")), gateway_config)

    assert reply.status_code == 200
    assert reply.body == 'Pourquoi le poulet a-t-il "traversé"?\n'.encode()
    assert reply.media_type.startswith("text/plain")


def test_empty_choices_yield_fallback_text(gateway_config: GatewayConfig) -> None:
    payload = completion("unused")
    payload["choices"] = []

    reply = translate_reply(ok_reply(payload), gateway_config)

    assert reply.status_code == 200
    assert reply.body == b"No content found."


def test_absent_content_yields_fallback_text(gateway_config: GatewayConfig) -> None:
    reply = translate_reply(ok_reply(completion(None)), gateway_config)
    assert reply.body == b"No content found."


def test_fallback_text_is_configurable(gateway_config: GatewayConfig) -> None:
    config = gateway_config.model_copy(update={"fallback_text": "No joke found."})
    reply = translate_reply(ok_reply(completion(None)), config)
    assert reply.body == b"No joke found."


@pytest.mark.parametrize(
    "body",
    [b"not json", b"", b"[]", b'{"id": "1"}', b'{"error": {"message": "overloaded"}}'],
)
def test_malformed_success_body_yields_diagnostic(gateway_config: GatewayConfig, body: bytes) -> None:
    reply = translate_reply(UpstreamReply(status_code=200, body=body), gateway_config)

    assert reply.status_code == 200
    assert reply.body.startswith(b"Failed to deserialize response: ")


def test_decode_error_names_the_failing_field() -> None:
    payload = b'{"id": "1", "object": "chat.completion", "created": 0, "model": "m", "choices": "nope"}'
    with pytest.raises(DecodeError) as exc_info:
        decode_chat_response(payload)
    assert "choices" in exc_info.value.reason


@pytest.mark.parametrize("status_code", [400, 401, 404, 429, 500, 503])
def test_error_status_is_forwarded_unchanged(gateway_config: GatewayConfig, status_code: int) -> None:
    upstream = UpstreamReply(status_code=status_code, body=b'{"error": "nope"}', content_type="application/json")

    reply = translate_reply(upstream, gateway_config)

    assert reply.status_code == status_code
    assert reply.body == b'{"error": "nope"}'
    assert reply.media_type == "application/json"


def test_error_without_content_type_defaults_to_text(gateway_config: GatewayConfig) -> None:
    reply = translate_reply(UpstreamReply(status_code=429, body=b"rate limited"), gateway_config)
    assert reply.media_type.startswith("text/plain")


def test_formatted_error_body_embeds_status_and_body(gateway_config: GatewayConfig) -> None:
    config = gateway_config.model_copy(update={"error_body_mode": "formatted"})

    reply = translate_reply(UpstreamReply(status_code=429, body=b"rate limited"), config)

    assert reply.status_code == 429
    assert reply.body == b"HTTP request failed with status code 429: rate limited"


def test_transport_error_becomes_500() -> None:
    error = TransportError("ReadError: connection reset by peer", url="https://api.example/v1/chat/completions")

    reply = translate_transport_error(error)

    assert reply.status_code == 500
    assert reply.body == b"HTTP request error: ReadError: connection reset by peer"
