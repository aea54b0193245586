from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Literal

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import ConfigurationError

PromptMode = Literal["default", "interactive"]
ErrorBodyMode = Literal["passthrough", "formatted"]

BEARER_TOKEN_ENV = "TOGETHER_API_KEY"
DEFAULT_UPSTREAM_HOST = "api.together.xyz"
DEFAULT_UPSTREAM_PATH = "/v1/chat/completions"
DEFAULT_MODEL_ID = "meta-llama/Meta-Llama-3.1-70B-Instruct-Turbo"
DEFAULT_PROMPT = "tell me a joke from 1900s"
DEFAULT_FALLBACK_TEXT = "No content found."

# env var -> GatewayConfig field
_ENV_FIELDS: dict[str, str] = {
    "UPSTREAM_HOST": "upstream_host",
    "UPSTREAM_SCHEME": "upstream_scheme",
    "UPSTREAM_PATH": "upstream_path",
    "MODEL_ID": "model_id",
    "MAX_TOKENS": "max_tokens",
    "TEMPERATURE": "temperature",
    "PROMPT_MODE": "prompt_mode",
    "DEFAULT_PROMPT": "default_prompt",
    "FALLBACK_TEXT": "fallback_text",
    "ERROR_BODY_MODE": "error_body_mode",
    "UPSTREAM_TIMEOUT_SECONDS": "timeout_seconds",
    "MAX_INBOUND_BYTES": "max_inbound_bytes",
    "MAX_UPSTREAM_BYTES": "max_upstream_bytes",
}


def validate_upstream_host(host: str) -> None:
    if "://" in host:
        raise ValueError("upstream_host must be a bare host without scheme")
    if any(separator in host for separator in ("/", "?", "#")):
        raise ValueError("upstream_host must be a bare host without path, query, or fragment")
    if any(character.isspace() for character in host):
        raise ValueError("upstream_host must not contain whitespace")
    if host == "":
        raise ValueError("upstream_host must not be empty")


class GatewayConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    upstream_host: str = DEFAULT_UPSTREAM_HOST
    upstream_scheme: Literal["http", "https"] = "https"
    upstream_path: str = DEFAULT_UPSTREAM_PATH
    bearer_token: str = Field(repr=False)
    model_id: str = DEFAULT_MODEL_ID
    max_tokens: int = Field(default=8192, gt=0)
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    prompt_mode: PromptMode = "default"
    default_prompt: str = DEFAULT_PROMPT
    fallback_text: str = DEFAULT_FALLBACK_TEXT
    error_body_mode: ErrorBodyMode = "passthrough"
    timeout_seconds: float = Field(default=120.0, gt=0)
    max_inbound_bytes: int = Field(default=1024 * 1024, gt=0)
    max_upstream_bytes: int = Field(default=8 * 1024 * 1024, gt=0)

    @field_validator("upstream_host")
    @classmethod
    def _check_host(cls, value: str) -> str:
        validate_upstream_host(value)
        return value

    @field_validator("upstream_path")
    @classmethod
    def _check_path(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("upstream_path must start with '/'")
        return value

    @field_validator("bearer_token")
    @classmethod
    def _check_token(cls, value: str) -> str:
        if value.strip() == "":
            raise ValueError("bearer_token must not be blank")
        # header values go out as ASCII; CR/LF would split the header
        if not (value.isascii() and value.isprintable()):
            raise ValueError("bearer_token must contain only printable ASCII characters")
        return value

    @field_validator("model_id")
    @classmethod
    def _check_model_id(cls, value: str) -> str:
        if value.strip() == "":
            raise ValueError("model_id must not be blank")
        return value

    @model_validator(mode="after")
    def _check_upstream_url(self) -> GatewayConfig:
        try:
            httpx.URL(self.upstream_url)
        except httpx.InvalidURL as exc:
            raise ValueError(f"upstream_url {self.upstream_url!r} is not a valid URL: {exc}") from exc
        return self

    @property
    def upstream_url(self) -> str:
        return f"{self.upstream_scheme}://{self.upstream_host}{self.upstream_path}"


def load_gateway_config(env: Mapping[str, str] | None = None) -> GatewayConfig:
    env_source = env if env is not None else os.environ

    bearer_token = env_source.get(BEARER_TOKEN_ENV, "").strip()
    if bearer_token == "":
        raise ConfigurationError(f"missing credential: set {BEARER_TOKEN_ENV}")

    values: dict[str, str] = {"bearer_token": bearer_token}
    for env_var, field_name in _ENV_FIELDS.items():
        raw = env_source.get(env_var)
        if raw is None or raw.strip() == "":
            continue
        values[field_name] = raw.strip()

    try:
        return GatewayConfig.model_validate(values)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise ConfigurationError(f"invalid gateway config: {problems}") from exc
