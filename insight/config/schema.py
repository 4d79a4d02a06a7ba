"""Pydantic models for insight configuration validation."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from insight.context.compaction import CompactionOptions
from insight.context.token_errors import (
    DEFAULT_TOKEN_LIMIT_PATTERNS,
    DEFAULT_TOKEN_LIMIT_STATUS_CODES,
    TokenLimitClassifier,
)

ProviderType = Literal["anthropic"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ProviderConfig(BaseModel):
    """Configuration for the model provider.

    Example config.json:
        {
            "provider": {
                "type": "anthropic",
                "api_key_env": "ANTHROPIC_API_KEY",
                "model": "claude-sonnet-4-20250514"
            }
        }
    """

    model_config = ConfigDict(extra="forbid")

    type: ProviderType = "anthropic"
    """Provider type."""

    api_key_env: str = "ANTHROPIC_API_KEY"
    """Environment variable containing API key."""

    base_url: str = "https://api.anthropic.com"
    """Base URL for API requests."""

    model: str = "claude-sonnet-4-20250514"
    """Model ID sent with each request."""

    max_tokens: int = Field(default=4096, gt=0)
    """Maximum tokens the model may generate per turn."""

    extra_headers: dict[str, str] = {}
    """Additional headers to include in API requests."""

    request_timeout: float = Field(default=120.0, gt=0)
    """Timeout in seconds for API requests."""

    max_retries: int = Field(default=3, ge=0, le=10)
    """Maximum number of retry attempts for failed requests."""

    retry_backoff: float = Field(default=1.5, ge=1.0, le=5.0)
    """Exponential backoff multiplier between retries."""

    allow_insecure_http: bool = False
    """Allow HTTP (non-HTTPS) for non-localhost URLs. Development only."""


class CompactionConfig(BaseModel):
    """How much history survives compaction after a token-limit failure."""

    model_config = ConfigDict(extra="forbid")

    keep_first_n: int = Field(default=2, ge=0)
    """Messages kept verbatim from the start of the conversation."""

    keep_last_n: int = Field(default=6, ge=0)
    """Messages kept verbatim from the end of the conversation."""

    def to_options(self) -> CompactionOptions:
        return CompactionOptions(keep_first_n=self.keep_first_n, keep_last_n=self.keep_last_n)


class TokenLimitConfig(BaseModel):
    """Rules for recognising "prompt too long" failures.

    Providers word these errors differently and change the wording over
    time, so the rules are configuration rather than code.
    """

    model_config = ConfigDict(extra="forbid")

    patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_TOKEN_LIMIT_PATTERNS))
    """Case-insensitive substrings that mark a token-limit error message."""

    status_codes: list[int] = Field(
        default_factory=lambda: list(DEFAULT_TOKEN_LIMIT_STATUS_CODES)
    )
    """HTTP statuses under which a matching message counts."""

    @field_validator("patterns")
    @classmethod
    def _patterns_not_blank(cls, v: list[str]) -> list[str]:
        if any(not p.strip() for p in v):
            raise ValueError("token-limit patterns must not be blank")
        return v

    def to_classifier(self) -> TokenLimitClassifier:
        return TokenLimitClassifier(patterns=self.patterns, status_codes=self.status_codes)


class SessionConfig(BaseModel):
    """Per-session execution limits."""

    model_config = ConfigDict(extra="forbid")

    max_steps: int = Field(default=25, ge=1)
    """Maximum model turns per query (each turn may run tools)."""

    skill_timeout: float = Field(default=60.0, ge=0)
    """Seconds a single tool call may run. 0 disables the timeout."""


class ServerConfig(BaseModel):
    """Websocket server settings."""

    model_config = ConfigDict(extra="forbid")

    host: str = "127.0.0.1"
    """Interface to bind. Defaults to loopback only."""

    port: int = Field(default=6007, ge=1, le=65535)
    """TCP port to listen on."""

    path: str = "/ws"
    """Request path accepted for websocket connections."""

    log_level: LogLevel = "INFO"
    """Log level for the server log file."""

    @field_validator("path")
    @classmethod
    def _path_absolute(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("server path must start with '/'")
        return v


class Config(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid")

    provider: ProviderConfig = ProviderConfig()
    compaction: CompactionConfig = CompactionConfig()
    token_limit: TokenLimitConfig = TokenLimitConfig()
    session: SessionConfig = SessionConfig()
    server: ServerConfig = ServerConfig()

    system_prompt: str | None = None
    """System prompt sent with every request."""
