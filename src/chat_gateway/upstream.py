from __future__ import annotations

from typing import Protocol

from .contracts import OutboundRequest, UpstreamReply


class UpstreamClient(Protocol):
    """Issues one outbound call; raises ``TransportError`` when it cannot complete."""

    async def send(self, request: OutboundRequest) -> UpstreamReply: ...
