from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass

from .config import GatewayConfig
from .upstream import UpstreamClient


@dataclass(frozen=True)
class RuntimeState:
    config_provider: Callable[[], GatewayConfig]
    client: UpstreamClient
    id_provider: Callable[[], str]


def default_id_provider() -> str:
    return f"call-{uuid.uuid4().hex}"


def build_runtime_state(
    config_provider: Callable[[], GatewayConfig],
    client: UpstreamClient,
    id_provider: Callable[[], str] = default_id_provider,
) -> RuntimeState:
    return RuntimeState(
        config_provider=config_provider,
        client=client,
        id_provider=id_provider,
    )
