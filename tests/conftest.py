from __future__ import annotations

import pytest

from chat_gateway.config import GatewayConfig


@pytest.fixture
def gateway_config() -> GatewayConfig:
    return GatewayConfig.model_validate(
        {
            "upstream_host": "api.example",
            "bearer_token": "secret-token",
            "model_id": "test-model",
            "max_tokens": 256,
            "temperature": 0.3,
        }
    )


@pytest.fixture
def interactive_config(gateway_config: GatewayConfig) -> GatewayConfig:
    return gateway_config.model_copy(update={"prompt_mode": "interactive"})
