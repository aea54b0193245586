from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from fastapi.testclient import TestClient

from chat_gateway.app import create_app
from chat_gateway.config import GatewayConfig
from chat_gateway.contracts import OutboundRequest, UpstreamReply
from chat_gateway.errors import TransportError
from chat_gateway.runtime import build_runtime_state

UpstreamOutcome = UpstreamReply | TransportError


class FakeUpstreamClient:
    def __init__(self, outcomes: Sequence[UpstreamOutcome]) -> None:
        self._outcomes = list(outcomes)
        self.calls: list[OutboundRequest] = []

    async def send(self, request: OutboundRequest) -> UpstreamReply:
        self.calls.append(request)
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, TransportError):
            raise outcome
        return outcome


def completion(content: str | None, **extra: Any) -> dict[str, Any]:
    message: dict[str, Any] = {"role": "assistant"}
    if content is not None:
        message["content"] = content
    body: dict[str, Any] = {
        "id": "chatcmpl-upstream",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "test-model",
        "choices": [{"index": 0, "message": message, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 2, "completion_tokens": 3, "total_tokens": 5},
    }
    body.update(extra)
    return body


def ok_reply(payload: Any) -> UpstreamReply:
    return UpstreamReply(status_code=200, body=json.dumps(payload).encode("utf-8"), content_type="application/json")


def build_client(
    config: GatewayConfig,
    outcomes: Sequence[UpstreamOutcome],
    *,
    call_id: str = "call-test",
) -> tuple[TestClient, FakeUpstreamClient]:
    client = FakeUpstreamClient(outcomes)
    state = build_runtime_state(
        config_provider=lambda: config,
        client=client,
        id_provider=lambda: call_id,
    )
    app = create_app(config_provider=state.config_provider, client=client, state=state)
    return TestClient(app), client
