from __future__ import annotations

from typing import ClassVar


class CompletionError(Exception):
    """Base error for every failed completion call."""

    category: ClassVar[str] = "completion"

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ConfigurationError(CompletionError):
    category = "configuration"


class RequestValidationError(CompletionError):
    """Caller error, raised before any network activity."""

    category = "validation"


class TransportError(CompletionError):
    """Connection or read failure; the stream (if any) has been closed."""

    category = "transport"


class StreamProtocolError(TransportError):
    """Events arrived in an order the stream protocol does not allow."""


class ApiError(CompletionError):
    category = "api"

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        type: str = "api_error",
        param: str | None = None,
        code: str | int | None = None,
    ):
        super().__init__(message, status_code=status_code)
        self.type = type
        self.param = param
        self.code = code

    def __str__(self) -> str:
        return f"{self.status_code} {self.type}: {self.message}"


class DecodeError(CompletionError):
    """Payload did not match the expected schema (success or error body)."""

    category = "decode"
