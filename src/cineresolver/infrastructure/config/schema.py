"""Validated configuration models for the resolver service."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from cineresolver.infrastructure.constants import (
    DEFAULT_CLIENT_TIMEOUT,
    DEFAULT_NAVIGATION_TIMEOUT_MS,
    DEFAULT_SETTLE_DELAY_MS,
    DEFAULT_USER_AGENT,
)

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


class ProviderConfig(BaseModel):
    """Per-provider settings (YAML section: providers.<name>)."""

    base_url: str = Field(
        description="Provider origin, e.g. https://goodstream.one (no trailing slash).",
    )
    api_key: str | None = Field(
        default=None,
        description="Direct-link API key. Unset = always use the embed fallback.",
    )
    direct_api: bool = Field(
        default=False,
        description="Provider exposes the XFS direct_link API.",
    )

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return v

    def embed_url(self, file_code: str) -> str:
        """XFS embed page for *file_code*."""
        return f"{self.base_url}/embed-{file_code}.html"


class CacheConfig(BaseSettings):
    """Result cache configuration (in-memory only)."""

    ttl_seconds: int = Field(
        default=3600,
        description="TTL for cached resolutions (seconds). 0 = caching disabled.",
    )
    max_entries: int = Field(
        default=10_000,
        description="Maximum number of cached resolutions (oldest evicted first).",
    )

    model_config = SettingsConfigDict(
        env_prefix="CINERESOLVER_CACHE_",
        case_sensitive=False,
    )

    @field_validator("ttl_seconds")
    @classmethod
    def _validate_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("ttl_seconds must be >= 0")
        return v

    @field_validator("max_entries")
    @classmethod
    def _validate_max_entries(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("max_entries must be > 0")
        return v


class AppConfig(BaseModel):
    """Final, merged configuration.

    Fields are flat; ``AliasPath`` lets the sectioned YAML layout
    (``browser.max_sessions``) validate into them. Built only by
    ``load_config``, which owns layer precedence.
    """

    # General
    app_name: str = Field(default="cineresolver", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP client (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=DEFAULT_CLIENT_TIMEOUT,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Timeout in seconds for direct-link API calls.",
    )
    http_user_agent: str = Field(
        default="cineresolver/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing API requests.",
    )

    # Headless browser (YAML section: browser.*)
    browser_headless: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "browser_headless",
            AliasPath("browser", "headless"),
        ),
        description="Run Chromium headless.",
    )
    browser_navigation_timeout_ms: int = Field(
        default=DEFAULT_NAVIGATION_TIMEOUT_MS,
        validation_alias=AliasChoices(
            "browser_navigation_timeout_ms",
            AliasPath("browser", "navigation_timeout_ms"),
        ),
        description="Timeout for embed page navigation (DOMContentLoaded).",
    )
    browser_settle_delay_ms: int = Field(
        default=DEFAULT_SETTLE_DELAY_MS,
        validation_alias=AliasChoices(
            "browser_settle_delay_ms",
            AliasPath("browser", "settle_delay_ms"),
        ),
        description="Extra wait after navigation for late manifest requests.",
    )
    browser_max_sessions: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices(
            "browser_max_sessions",
            AliasPath("browser", "max_sessions"),
        ),
        description="Max concurrent browser sessions. Unset = derived from CPU/RAM.",
    )
    browser_stealth: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "browser_stealth",
            AliasPath("browser", "stealth"),
        ),
        description="Apply Playwright Stealth evasions to each browser context.",
    )
    browser_user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        validation_alias=AliasChoices(
            "browser_user_agent",
            AliasPath("browser", "user_agent"),
        ),
        description="Desktop User-Agent for browser contexts.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # Cache (YAML section: cache.*)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    # Providers (YAML section: providers.<name>.*)
    providers: dict[str, ProviderConfig] = Field(
        default_factory=dict,
        description="Known providers keyed by lower-case provider id.",
    )

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @field_validator("browser_navigation_timeout_ms")
    @classmethod
    def _validate_navigation_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("browser_navigation_timeout_ms must be > 0")
        return v

    @field_validator("browser_settle_delay_ms")
    @classmethod
    def _validate_settle_delay(cls, v: int) -> int:
        if v < 0:
            raise ValueError("browser_settle_delay_ms must be >= 0")
        return v

    @field_validator("browser_max_sessions")
    @classmethod
    def _validate_max_sessions(cls, v: int | None) -> int | None:
        if v is not None and v <= 0:
            raise ValueError("browser_max_sessions must be > 0")
        return v

    @field_validator("providers", mode="before")
    @classmethod
    def _lower_provider_names(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {str(k).strip().lower(): val for k, val in v.items()}
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # json in prod, console elsewhere
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """Sectioned view for startup logs; API keys are masked."""
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "user_agent": self.http_user_agent,
            },
            "browser": {
                "headless": self.browser_headless,
                "navigation_timeout_ms": self.browser_navigation_timeout_ms,
                "settle_delay_ms": self.browser_settle_delay_ms,
                "max_sessions": self.browser_max_sessions,
                "stealth": self.browser_stealth,
                "user_agent": self.browser_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "cache": self.cache.model_dump(),
            "providers": {
                name: {
                    "base_url": p.base_url,
                    "api_key": "***" if p.api_key else None,
                    "direct_api": p.direct_api,
                }
                for name, p in self.providers.items()
            },
        }


class EnvOverrides(BaseSettings):
    """The environment layer: ``CINERESOLVER_*`` variables, all optional.

    The goodstream key is also read from the unprefixed
    ``GODSTREAM_API_KEY`` that older deployments set.
    """

    model_config = SettingsConfigDict(
        env_prefix="CINERESOLVER_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None

    browser_headless: Optional[bool] = None
    browser_navigation_timeout_ms: Optional[int] = None
    browser_settle_delay_ms: Optional[int] = None
    browser_max_sessions: Optional[int] = None
    browser_stealth: Optional[bool] = None
    browser_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    cache_ttl_seconds: Optional[int] = None
    cache_max_entries: Optional[int] = None

    goodstream_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "CINERESOLVER_GOODSTREAM_API_KEY",
            "GODSTREAM_API_KEY",
        ),
    )

    def to_update_dict(self) -> dict[str, Any]:
        """Variables that are set, keyed by field name."""
        return self.model_dump(exclude_none=True)
