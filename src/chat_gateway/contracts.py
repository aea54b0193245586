from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class ChatRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    model: str
    messages: tuple[ChatMessage, ...]
    max_tokens: int
    temperature: float


class Usage(BaseModel):
    prompt_tokens: int = Field(ge=0)
    completion_tokens: int = Field(ge=0)
    total_tokens: int = Field(ge=0)


class ChoiceMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: str
    # absent on pure tool-call turns
    content: str | None = None


class Choice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    index: int = Field(ge=0)
    message: ChoiceMessage
    finish_reason: str | None = None


class ChatResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    object: str
    created: int = Field(ge=0)
    model: str
    choices: list[Choice]
    usage: Usage | None = None

    def first_content(self) -> str | None:
        """Content of the first choice, or None when there is nothing usable."""
        if len(self.choices) == 0:
            return None
        content = self.choices[0].message.content
        if content is None or content == "":
            return None
        return content


class OutboundRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: Literal["POST"] = "POST"
    url: str
    headers: dict[str, str]
    body: bytes


class UpstreamReply(BaseModel):
    model_config = ConfigDict(frozen=True)

    status_code: int
    body: bytes
    content_type: str | None = None


class OutboundReply(BaseModel):
    model_config = ConfigDict(frozen=True)

    status_code: int
    body: bytes
    media_type: str = "text/plain; charset=utf-8"
