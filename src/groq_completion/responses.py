from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict

from .messages import ToolCall


class Usage(BaseModel):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    # Groq timing counters, in seconds.
    queue_time: float | None = None
    prompt_time: float | None = None
    completion_time: float | None = None
    total_time: float | None = None


class XGroq(BaseModel):
    """Provider-specific wrapper; the terminal stream chunk carries usage here."""

    id: str | None = None
    usage: Usage | None = None


class ChoiceMessage(BaseModel):
    role: str = "assistant"
    content: str | None = None
    tool_calls: list[ToolCall] | None = None


class Choice(BaseModel):
    index: int = 0
    message: ChoiceMessage
    finish_reason: str | None = None
    logprobs: Any = None


class ChatCompletion(BaseModel):
    """Buffered completion envelope."""

    model_config = ConfigDict(frozen=True)

    id: str
    object: str = "chat.completion"
    created: int
    model: str
    system_fingerprint: str | None = None
    choices: list[Choice]
    usage: Usage
    x_groq: XGroq | None = None

    @property
    def content(self) -> str | None:
        if not self.choices:
            return None
        return self.choices[0].message.content


class FunctionCallDelta(BaseModel):
    name: str | None = None
    arguments: str | None = None


class ToolCallDelta(BaseModel):
    index: int = 0
    id: str | None = None
    type: str | None = None
    function: FunctionCallDelta | None = None


class Delta(BaseModel):
    role: str | None = None
    content: str | None = None
    tool_calls: list[ToolCallDelta] | None = None


class ChunkChoice(BaseModel):
    index: int = 0
    delta: Delta
    finish_reason: str | None = None
    logprobs: Any = None


class ChatCompletionChunk(BaseModel):
    """One partial fragment of a streamed completion."""

    model_config = ConfigDict(frozen=True)

    id: str
    object: str = "chat.completion.chunk"
    created: int
    model: str
    system_fingerprint: str | None = None
    choices: list[ChunkChoice]
    x_groq: XGroq | None = None

    @property
    def usage(self) -> Usage | None:
        return self.x_groq.usage if self.x_groq is not None else None


def assemble_content(chunks: Iterable[ChatCompletionChunk], index: int = 0) -> str:
    """Concatenate the content deltas of choice ``index`` in arrival order."""
    parts: list[str] = []
    for chunk in chunks:
        for choice in chunk.choices:
            if choice.index == index and choice.delta.content:
                parts.append(choice.delta.content)
    return "".join(parts)


class ErrorBody(BaseModel):
    message: str
    type: str = "api_error"
    param: str | None = None
    code: str | int | None = None


class ErrorResponse(BaseModel):
    """Error envelope. The HTTP status is not part of the body."""

    error: ErrorBody
