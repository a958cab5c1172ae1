from __future__ import annotations

import os

from pydantic import BaseModel, Field

from .errors import ConfigurationError
from .logging import configure_logging

GROQ_API_BASE = "https://api.groq.com/openai/v1"


class ClientConfig(BaseModel):
    # Credential
    api_key: str | None = Field(default_factory=lambda: os.getenv("GROQ_API_KEY"))

    # Endpoint
    api_base: str = Field(default_factory=lambda: os.getenv("GROQ_API_BASE", GROQ_API_BASE))
    default_model: str | None = Field(default_factory=lambda: os.getenv("GROQ_DEFAULT_MODEL"))

    # Transport; timeouts are enforced by httpx, not by the client
    timeout_seconds: float = Field(default_factory=lambda: float(os.getenv("GROQ_TIMEOUT_SECONDS", "60")))

    # Observability
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_format: str = Field(default_factory=lambda: os.getenv("LOG_FORMAT", "json"))

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError("GROQ_API_KEY is required to call the completion endpoint.")
        return self.api_key

    def configure_logging(self) -> None:
        configure_logging(
            level=self.log_level,
            fmt=self.log_format,
            secrets=[s for s in (self.api_key,) if s],
        )
