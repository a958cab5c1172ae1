from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping, MutableMapping
from typing import Any, TypeAlias, cast

import structlog


_SENSITIVE_KEYS = {
    "authorization",
    "proxy-authorization",
    "x-api-key",
    "api_key",
    "apikey",
    "credential",
    "password",
}

# Token *counts* (prompt_tokens, max_tokens, ...) must stay readable.
_SENSITIVE_SUFFIXES = ("_key", "_secret", "_password", "_token")

_BEARER_RE = re.compile(r"(?i)\bBearer\s+([A-Za-z0-9._-]{6,})")
_GROQ_KEY_RE = re.compile(r"\bgsk_[A-Za-z0-9]{8,}")

ProcessorReturn: TypeAlias = Mapping[str, Any] | str | bytes | bytearray | tuple[Any, ...]
Processor: TypeAlias = Callable[[Any, str, MutableMapping[str, Any]], ProcessorReturn]


def _is_sensitive_key(key: str) -> bool:
    key = key.lower()
    return key in _SENSITIVE_KEYS or key.endswith(_SENSITIVE_SUFFIXES)


def redact_text(value: str, *, secrets: list[str]) -> str:
    out = value
    for secret in secrets:
        if secret and secret in out:
            out = out.replace(secret, "[REDACTED]")
    out = _BEARER_RE.sub("Bearer [REDACTED]", out)
    return _GROQ_KEY_RE.sub("[REDACTED]", out)


def _redact(obj: Any, *, secrets: list[str]) -> Any:
    if isinstance(obj, str):
        return redact_text(obj, secrets=secrets)
    if isinstance(obj, list):
        return [_redact(v, secrets=secrets) for v in obj]
    if isinstance(obj, tuple):
        return tuple(_redact(v, secrets=secrets) for v in obj)
    if isinstance(obj, dict):
        return {
            k: "[REDACTED]" if _is_sensitive_key(str(k)) else _redact(v, secrets=secrets)
            for k, v in obj.items()
        }
    return obj


def make_redaction_processor(*, secrets: list[str]) -> Processor:
    secrets_norm = [s for s in secrets if isinstance(s, str) and s]

    def _processor(_logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]) -> ProcessorReturn:
        return cast(dict[str, Any], _redact(dict(event_dict), secrets=secrets_norm))

    return _processor


def configure_logging(level: str = "INFO", fmt: str = "json", *, secrets: list[str] | None = None) -> None:
    """Route structlog through a filtering logger; redaction always runs before rendering."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=log_level)

    processors: list[Processor] = [
        cast(Processor, structlog.contextvars.merge_contextvars),
        cast(Processor, structlog.processors.add_log_level),
        cast(Processor, structlog.processors.TimeStamper(fmt="iso")),
        make_redaction_processor(secrets=secrets or []),
    ]

    if fmt == "json":
        processors.append(cast(Processor, structlog.processors.JSONRenderer()))
    else:
        processors.append(cast(Processor, structlog.dev.ConsoleRenderer()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )
