from __future__ import annotations

import hashlib
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, NoReturn, TypeVar, Union

import httpx
import structlog
from pydantic import ValidationError

from .config import GROQ_API_BASE, ClientConfig
from .errors import ApiError, CompletionError, ConfigurationError, DecodeError, RequestValidationError, TransportError
from .messages import Message, parse_message
from .metrics import completion_request_latency_seconds, completion_requests_total
from .request import CompletionRequest, RequestBuilder
from .responses import ChatCompletion, ChatCompletionChunk, ErrorResponse
from .streaming import StreamConsumer, iter_sse_events

log = structlog.get_logger()

T = TypeVar("T")

CompletionResult = Union[ChatCompletion, list[ChatCompletionChunk]]
RequestLike = Union[CompletionRequest, RequestBuilder]


class CompletionClient:
    """
    Chat-completion client holding a credential and a conversation history.

    The history persists across calls and only changes through
    ``add_message(s)`` / ``clear_messages``. Each dispatch works on a copy of
    it placed before the request's own messages. The underlying
    ``httpx.AsyncClient`` is pooled and safe to share between concurrent calls.
    """

    def __init__(
        self,
        api_key: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        base_url: str = GROQ_API_BASE,
        timeout_seconds: float = 60,
        default_model: str | None = None,
    ):
        self._api_key = api_key
        self.default_model = default_model
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        self._url = f"{base_url.rstrip('/')}/chat/completions"
        self._messages: list[Message] = []

    @classmethod
    def from_config(cls, cfg: ClientConfig, *, http_client: httpx.AsyncClient | None = None) -> "CompletionClient":
        return cls(
            cfg.require_api_key(),
            http_client=http_client,
            base_url=cfg.api_base,
            timeout_seconds=cfg.timeout_seconds,
            default_model=cfg.default_model,
        )

    def request_builder(self, model: str | None = None) -> RequestBuilder:
        """Start a builder for `model`, falling back to the configured default model."""
        model = model or self.default_model
        if not model:
            raise ConfigurationError("No model given and GROQ_DEFAULT_MODEL is not set.")
        return RequestBuilder(model)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "CompletionClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # History

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def add_message(self, message: Message | dict[str, Any]) -> "CompletionClient":
        if isinstance(message, dict):
            message = parse_message(message)
        self._messages.append(message)
        return self

    def add_messages(self, messages: Iterable[Message | dict[str, Any]]) -> "CompletionClient":
        for message in messages:
            self.add_message(message)
        return self

    def clear_messages(self) -> "CompletionClient":
        self._messages.clear()
        return self

    def fingerprint(self) -> str:
        """Digest of credential + history; equal clients produce equal request bodies."""
        digest = hashlib.sha256(self._api_key.encode("utf-8"))
        for message in self._messages:
            digest.update(b"\x00")
            digest.update(message.model_dump_json(exclude_none=True).encode("utf-8"))
        return digest.hexdigest()

    # Dispatch

    def prepare(self, request: RequestLike) -> CompletionRequest:
        """Merge a snapshot of the history into ``request`` and check it has messages."""
        if isinstance(request, RequestBuilder):
            request = request.build()
        merged = request.with_history(list(self._messages))
        if not merged.messages:
            raise RequestValidationError("Message list cannot be empty; add at least one message.")
        return merged

    async def create(self, request: RequestLike) -> CompletionResult:
        """Dispatch on the request's ``stream`` flag.

        Returns a ``ChatCompletion`` for buffered requests, or the ordered list
        of ``ChatCompletionChunk`` for streamed ones.
        """
        prepared = self.prepare(request)
        if prepared.stream:
            return await self._send_stream(prepared)
        return await self._send_buffered(prepared)

    async def create_completion(self, request: RequestLike) -> ChatCompletion:
        return await self._send_buffered(self.prepare(request))

    async def create_stream_completion(self, request: RequestLike) -> list[ChatCompletionChunk]:
        return await self._send_stream(self.prepare(request))

    def _headers(self, *, stream: bool) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "Accept": "text/event-stream" if stream else "application/json",
        }

    async def _observe(self, mode: str, request: CompletionRequest, call: Callable[[], Awaitable[T]]) -> T:
        log.debug("completion_dispatch", mode=mode, model=request.model, messages=len(request.messages))
        with completion_request_latency_seconds.labels(mode=mode).time():
            try:
                result = await call()
            except CompletionError as e:
                completion_requests_total.labels(mode=mode, status=e.category).inc()
                log.warning(
                    "completion_failed",
                    mode=mode,
                    model=request.model,
                    category=e.category,
                    status_code=e.status_code,
                    error=e.message,
                )
                raise
        completion_requests_total.labels(mode=mode, status="success").inc()
        return result

    def _raise_error_body(self, resp: httpx.Response) -> NoReturn:
        try:
            body = ErrorResponse.model_validate_json(resp.content)
        except ValidationError as e:
            raise DecodeError(
                f"Failed to decode error body for HTTP {resp.status_code}.",
                status_code=resp.status_code,
            ) from e
        raise ApiError(
            body.error.message,
            status_code=resp.status_code,
            type=body.error.type,
            param=body.error.param,
            code=body.error.code,
        )

    async def _send_buffered(self, request: CompletionRequest) -> ChatCompletion:
        if request.stream:
            raise RequestValidationError("Buffered dispatch requires stream=false; use create_stream_completion.")

        async def call() -> ChatCompletion:
            try:
                resp = await self._client.post(self._url, headers=self._headers(stream=False), content=request.to_json())
            except httpx.HTTPError as e:
                raise TransportError(f"Completion request failed: {e}") from e

            if not resp.is_success:
                self._raise_error_body(resp)

            try:
                completion = ChatCompletion.model_validate_json(resp.content)
            except ValidationError as e:
                raise DecodeError(
                    "Failed to decode completion response.",
                    status_code=resp.status_code,
                ) from e
            log.info("completion_ok", mode="buffered", model=completion.model, id=completion.id)
            return completion

        return await self._observe("buffered", request, call)

    async def _send_stream(self, request: CompletionRequest) -> list[ChatCompletionChunk]:
        if not request.stream:
            raise RequestValidationError("Streaming dispatch requires stream=true; use create_completion.")

        async def call() -> list[ChatCompletionChunk]:
            try:
                async with self._client.stream(
                    "POST",
                    self._url,
                    headers=self._headers(stream=True),
                    content=request.to_json(),
                ) as resp:
                    content_type = resp.headers.get("content-type", "")
                    if not resp.is_success or content_type.startswith("application/json"):
                        await resp.aread()
                        self._raise_error_body(resp)
                    if not content_type.startswith("text/event-stream"):
                        raise TransportError(f"Expected an event stream, got content type {content_type!r}.")
                    chunks = await StreamConsumer().consume(iter_sse_events(resp))
            except httpx.HTTPError as e:
                raise TransportError(f"Event stream connection failed: {e}") from e
            log.info("completion_stream_ok", model=request.model, chunks=len(chunks))
            return chunks

        return await self._observe("stream", request, call)
