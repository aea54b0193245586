from __future__ import annotations

from enum import Enum

from loguru import logger

from .config import GatewayConfig
from .contracts import OutboundReply
from .errors import TransportError
from .logging_setup import NO_CALL_ID
from .request_translator import build_outbound_request
from .response_translator import translate_reply, translate_transport_error
from .upstream import UpstreamClient


class PipelineState(str, Enum):
    BUILT = "built"
    SENT = "sent"
    RECEIVED = "received"
    TRANSLATED = "translated"


def _enter(state: PipelineState) -> None:
    logger.debug("pipeline state={}", state.value)


async def _run(inbound_body: bytes, config: GatewayConfig, client: UpstreamClient) -> OutboundReply:
    request = build_outbound_request(inbound_body, config)
    _enter(PipelineState.BUILT)

    _enter(PipelineState.SENT)
    try:
        reply = await client.send(request)
    except TransportError as exc:
        logger.error("upstream transport failure url={} cause={}", exc.url, exc.cause)
        outbound = translate_transport_error(exc)
        _enter(PipelineState.TRANSLATED)
        return outbound

    _enter(PipelineState.RECEIVED)
    outbound = translate_reply(reply, config)
    _enter(PipelineState.TRANSLATED)
    return outbound


async def handle_call(
    inbound_body: bytes,
    *,
    config: GatewayConfig,
    client: UpstreamClient,
    call_id: str = NO_CALL_ID,
) -> OutboundReply:
    """Run one inbound call through translate, send, translate.

    Only ``ConfigurationError`` escapes; every upstream outcome becomes a reply.
    """
    with logger.contextualize(call_id=call_id):
        return await _run(inbound_body, config, client)
