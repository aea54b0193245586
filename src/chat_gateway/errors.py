from __future__ import annotations


class GatewayError(RuntimeError):
    pass


class ConfigurationError(GatewayError):
    pass


class InvalidInboundPayloadError(ConfigurationError):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"invalid inbound payload: {reason}")


class TransportError(GatewayError):
    def __init__(self, cause: str, *, url: str) -> None:
        self.cause = cause
        self.url = url
        super().__init__(cause)


class UpstreamError(GatewayError):
    def __init__(self, *, status_code: int, body: bytes, content_type: str | None) -> None:
        self.status_code = status_code
        self.body = body
        self.content_type = content_type
        super().__init__(f"upstream returned status_code={status_code}")

    @property
    def body_text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class DecodeError(GatewayError):
    def __init__(self, reason: str, *, body: bytes) -> None:
        self.reason = reason
        self.body = body
        super().__init__(reason)
