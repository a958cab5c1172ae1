from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import RequestValidationError
from .messages import Message


class ResponseFormat(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["text", "json_object", "json_schema"] = "text"
    # {"name": ..., "schema": {...}, "strict": ...}; only with type="json_schema"
    json_schema: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _validate_schema(self) -> "ResponseFormat":
        if (self.type == "json_schema") != (self.json_schema is not None):
            raise ValueError("json_schema must be given exactly when type is json_schema.")
        return self


class FunctionDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str | None = None
    # JSON Schema object describing the arguments.
    parameters: dict[str, Any] | None = None


class Tool(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["function"] = "function"
    function: FunctionDefinition


class ToolChoiceFunction(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str


class NamedToolChoice(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["function"] = "function"
    function: ToolChoiceFunction


ToolChoice = Union[Literal["none", "auto", "required"], NamedToolChoice]


class CompletionRequest(BaseModel):
    """Frozen chat-completion payload, produced by ``RequestBuilder.build``.

    Field order is the wire order. Unset optional fields are dropped from the
    encoded body rather than sent as ``null``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    logit_bias: dict[str, int] | None = None
    logprobs: bool = False
    frequency_penalty: float = 0.0
    max_tokens: int | None = None
    messages: list[Message] = Field(default_factory=list)
    model: str
    n: int = 1
    presence_penalty: float = 0.0
    response_format: ResponseFormat = Field(default_factory=ResponseFormat)
    seed: int | None = None
    stop: str | list[str] | None = None
    stream: bool = False
    temperature: float = 1.0
    tool_choice: ToolChoice | None = None
    tools: list[Tool] | None = None
    top_logprobs: int | None = None
    top_p: float = 1.0
    user: str | None = None

    @field_validator("model")
    @classmethod
    def _validate_model(cls, v: str) -> str:
        if not v:
            raise ValueError("model must be non-empty.")
        return v

    @field_validator("temperature")
    @classmethod
    def _validate_temperature(cls, v: float) -> float:
        if not (0.0 <= v <= 2.0):
            raise ValueError("temperature must be between 0 and 2.")
        return v

    @field_validator("top_p")
    @classmethod
    def _validate_top_p(cls, v: float) -> float:
        if not (0.0 <= v <= 1.0):
            raise ValueError("top_p must be between 0 and 1.")
        return v

    @field_validator("presence_penalty", "frequency_penalty")
    @classmethod
    def _validate_penalties(cls, v: float) -> float:
        if not (-2.0 <= v <= 2.0):
            raise ValueError("penalty must be between -2 and 2.")
        return v

    @field_validator("max_tokens", "n")
    @classmethod
    def _validate_positive(cls, v: int | None) -> int | None:
        if v is None:
            return None
        if v <= 0:
            raise ValueError("must be > 0.")
        return v

    @field_validator("top_logprobs")
    @classmethod
    def _validate_top_logprobs(cls, v: int | None) -> int | None:
        if v is None:
            return None
        if not (0 <= v <= 20):
            raise ValueError("top_logprobs must be between 0 and 20.")
        return v

    @field_validator("stop")
    @classmethod
    def _validate_stop(cls, v: str | list[str] | None) -> str | list[str] | None:
        if v is None:
            return None
        if isinstance(v, str):
            if not v:
                raise ValueError("stop must be non-empty.")
            return v
        if not v:
            raise ValueError("stop list must be non-empty.")
        if any((not isinstance(s, str) or not s) for s in v):
            raise ValueError("stop sequences must be non-empty strings.")
        return v

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    def to_json(self) -> bytes:
        """Exact request body bytes."""
        return self.model_dump_json(exclude_none=True).encode("utf-8")

    def with_history(self, history: Iterable[Message]) -> "CompletionRequest":
        """Copy of this request with ``history`` placed before its own messages."""
        return self.model_copy(update={"messages": [*history, *self.messages]})


def _thaw(value: Any) -> Any:
    if isinstance(value, tuple):
        return list(value)
    if isinstance(value, MappingProxyType):
        return dict(value)
    return value


@dataclass(frozen=True)
class RequestBuilder:
    """Staged construction of a ``CompletionRequest``.

    Every ``with_*`` call returns a new builder and leaves the receiver
    untouched, so builders derived from a common origin never share state.
    Collections are stored as tuples / read-only mappings.

        req = RequestBuilder("llama-3.1-8b-instant").with_temperature(0.2).with_stream(True).build()
    """

    model: str
    params: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def _with(self, **updates: Any) -> "RequestBuilder":
        return replace(self, params=MappingProxyType({**self.params, **updates}))

    def build(self) -> CompletionRequest:
        try:
            return CompletionRequest(model=self.model, **{k: _thaw(v) for k, v in self.params.items()})
        except ValidationError as e:
            raise RequestValidationError(f"Invalid completion request: {e}") from e

    def is_stream(self) -> bool:
        return bool(self.params.get("stream", False))

    def with_model(self, model: str) -> "RequestBuilder":
        return replace(self, model=model)

    def with_logit_bias(self, logit_bias: Mapping[int | str, int]) -> "RequestBuilder":
        return self._with(logit_bias=MappingProxyType({str(k): v for k, v in logit_bias.items()}))

    def with_logprobs(self, logprobs: bool) -> "RequestBuilder":
        return self._with(logprobs=logprobs)

    def with_frequency_penalty(self, penalty: float) -> "RequestBuilder":
        return self._with(frequency_penalty=penalty)

    def with_max_tokens(self, n: int) -> "RequestBuilder":
        return self._with(max_tokens=n)

    def with_messages(self, messages: Sequence[Message]) -> "RequestBuilder":
        """Per-call messages; the client places its history before these."""
        return self._with(messages=tuple(messages))

    def with_n(self, n: int) -> "RequestBuilder":
        return self._with(n=n)

    def with_presence_penalty(self, penalty: float) -> "RequestBuilder":
        return self._with(presence_penalty=penalty)

    def with_response_format(self, fmt: ResponseFormat) -> "RequestBuilder":
        return self._with(response_format=fmt)

    def with_json_response(self) -> "RequestBuilder":
        return self._with(response_format=ResponseFormat(type="json_object"))

    def with_json_schema(self, name: str, schema: Mapping[str, Any], *, strict: bool | None = None) -> "RequestBuilder":
        json_schema: dict[str, Any] = {"name": name, "schema": dict(schema)}
        if strict is not None:
            json_schema["strict"] = strict
        return self._with(response_format=ResponseFormat(type="json_schema", json_schema=json_schema))

    def with_seed(self, seed: int) -> "RequestBuilder":
        return self._with(seed=seed)

    def with_stop(self, stop: str) -> "RequestBuilder":
        return self._with(stop=stop)

    def with_stops(self, stops: Sequence[str]) -> "RequestBuilder":
        return self._with(stop=tuple(stops))

    def with_stream(self, stream: bool) -> "RequestBuilder":
        return self._with(stream=stream)

    def with_temperature(self, temperature: float) -> "RequestBuilder":
        return self._with(temperature=temperature)

    def with_tool_choice(self, choice: ToolChoice | str) -> "RequestBuilder":
        if isinstance(choice, str) and choice not in ("none", "auto", "required"):
            choice = NamedToolChoice(function=ToolChoiceFunction(name=choice))
        return self._with(tool_choice=choice)

    def with_auto_tool_choice(self) -> "RequestBuilder":
        return self._with(tool_choice="auto")

    def with_tools(self, tools: Sequence[Tool]) -> "RequestBuilder":
        return self._with(tools=tuple(tools))

    def with_top_logprobs(self, n: int) -> "RequestBuilder":
        return self._with(top_logprobs=n)

    def with_top_p(self, top_p: float) -> "RequestBuilder":
        return self._with(top_p=top_p)

    def with_user(self, user: str) -> "RequestBuilder":
        return self._with(user=user)
