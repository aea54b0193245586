from __future__ import annotations

import argparse
import sys

import uvicorn
from fastapi import FastAPI
from loguru import logger

from .app import create_app
from .config import GatewayConfig, load_gateway_config
from .errors import ConfigurationError
from .http_client import HttpxUpstreamClient
from .logging_setup import configure_logging
from .runtime import build_runtime_state

APP_FACTORY = "chat_gateway.server:build_app"


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run chat_gateway server")
    parser.add_argument("--host", default="0.0.0.0", help="Bind host")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")
    parser.add_argument("--reload", action="store_true", help="Enable uvicorn reload")
    return parser.parse_args(argv)


def _log_config(config: GatewayConfig) -> None:
    logger.info(
        "gateway configured upstream_url={} model_id={} prompt_mode={} error_body_mode={} timeout_seconds={}",
        config.upstream_url,
        config.model_id,
        config.prompt_mode,
        config.error_body_mode,
        config.timeout_seconds,
    )


def build_app() -> FastAPI:
    """App factory for uvicorn; loads the config once from the environment."""
    configure_logging()
    config = load_gateway_config()
    _log_config(config)

    client = HttpxUpstreamClient(timeout_seconds=config.timeout_seconds, max_body_bytes=config.max_upstream_bytes)
    state = build_runtime_state(config_provider=lambda: config, client=client)
    return create_app(config_provider=state.config_provider, client=client, state=state)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    configure_logging()

    # fail before uvicorn starts; the factory loads again in the serving process
    try:
        load_gateway_config()
    except ConfigurationError as exc:
        logger.critical("refusing to start: {}", exc)
        sys.exit(2)

    uvicorn.run(APP_FACTORY, factory=True, host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
