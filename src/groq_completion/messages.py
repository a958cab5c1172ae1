from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator


class FunctionCall(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    # JSON-encoded; passed through untouched.
    arguments: str = "{}"


class ToolCall(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: Literal["function"] = "function"
    function: FunctionCall


class _BaseMessage(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class SystemMessage(_BaseMessage):
    role: Literal["system"] = "system"
    content: str | None = None
    name: str | None = None
    tool_call_id: str | None = None

    @model_validator(mode="after")
    def _require_content(self) -> "SystemMessage":
        if self.content is None:
            raise ValueError("system message requires content.")
        return self


class UserMessage(_BaseMessage):
    role: Literal["user"] = "user"
    content: str | None = None
    name: str | None = None
    tool_call_id: str | None = None

    @model_validator(mode="after")
    def _require_content(self) -> "UserMessage":
        if self.content is None:
            raise ValueError("user message requires content.")
        return self


class AssistantMessage(_BaseMessage):
    role: Literal["assistant"] = "assistant"
    content: str | None = None
    name: str | None = None
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None

    @model_validator(mode="after")
    def _require_content_or_tool_calls(self) -> "AssistantMessage":
        if self.content is None and not self.tool_calls:
            raise ValueError("assistant message requires content or tool_calls.")
        return self


class ToolMessage(_BaseMessage):
    role: Literal["tool"] = "tool"
    content: str | None = None
    name: str | None = None
    tool_call_id: str | None = None

    @model_validator(mode="after")
    def _require_linkage(self) -> "ToolMessage":
        if not self.tool_call_id:
            raise ValueError("tool message requires tool_call_id.")
        if self.content is None:
            raise ValueError("tool message requires content.")
        return self


Message = Annotated[
    Union[SystemMessage, UserMessage, AssistantMessage, ToolMessage],
    Field(discriminator="role"),
]

_message_adapter: TypeAdapter[Message] = TypeAdapter(Message)


def parse_message(data: dict[str, Any]) -> Message:
    """Pick the variant from ``role`` and validate its fields."""
    return _message_adapter.validate_python(data)


def system(content: str, *, name: str | None = None) -> SystemMessage:
    return SystemMessage(content=content, name=name)


def user(content: str, *, name: str | None = None) -> UserMessage:
    return UserMessage(content=content, name=name)


def assistant(
    content: str | None = None,
    *,
    name: str | None = None,
    tool_calls: list[ToolCall] | None = None,
) -> AssistantMessage:
    return AssistantMessage(content=content, name=name, tool_calls=tool_calls)


def tool_result(tool_call_id: str, content: str, *, name: str | None = None) -> ToolMessage:
    return ToolMessage(tool_call_id=tool_call_id, content=content, name=name)
