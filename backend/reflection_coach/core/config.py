from functools import lru_cache
from typing import ClassVar

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Secrets that must be set before starting in production
    REQUIRED_SECRETS: ClassVar[list[str]] = [
        "openai_api_key",
    ]

    # Environment (development, staging, production)
    environment: str = "development"

    # App
    app_name: str = "Reflection Coach API"
    debug: bool = False
    api_prefix: str = "/api/v1"
    functions_prefix: str = "/api"

    # CORS
    cors_origins: list[str] = ["http://localhost:5173"]

    # OpenAI
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-5"
    openai_moderation_model: str = "omni-moderation-latest"
    openai_timeout_seconds: float = Field(30.0, ge=1.0, le=120.0)
    evaluation_max_output_tokens: int = 400
    chat_max_output_tokens: int = 200

    # Key-value storage (Redis)
    storage_url: str = "redis://localhost:6379/0"

    # UI context switching
    context_transition_delay_seconds: float = Field(0.15, ge=0.0)

    # Per-profile workspaces kept in memory (least recently used evicted first)
    max_workspaces: int = Field(256, ge=1)

    # Rate limiting
    rate_limit_enabled: bool = True
    rate_limit_storage_uri: str = "memory://"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @property
    def openai_configured(self) -> bool:
        return bool(self.openai_api_key and self.openai_api_key.strip())

    @model_validator(mode="after")
    def validate_required_secrets(self) -> "Settings":
        """Validate that all required secrets are set (non-empty) in production.

        Outside production a missing OpenAI key is tolerated so the stores can
        be used offline; the evaluation and chat endpoints report it instead.
        """
        if self.environment != "production":
            return self

        missing = []
        for secret_name in self.REQUIRED_SECRETS:
            value = getattr(self, secret_name, "")
            if not value or not value.strip():
                missing.append(secret_name.upper())

        if missing:
            raise ValueError(
                f"Missing required secrets: {', '.join(missing)}. "
                "Set these environment variables before starting the application."
            )

        return self

    @model_validator(mode="after")
    def validate_cors_origins_in_production(self) -> "Settings":
        """Validate CORS origins are safe in production."""
        from urllib.parse import urlparse

        if self.environment != "production":
            return self

        unsafe_hostnames = {"localhost", "127.0.0.1", "0.0.0.0"}

        for origin in self.cors_origins:
            if origin == "*":
                raise ValueError(
                    "Wildcard (*) CORS origin is not allowed in production. "
                    "Specify exact origins instead."
                )

            try:
                parsed = urlparse(origin)
                hostname = parsed.hostname or ""
            except ValueError:
                hostname = origin

            if hostname in unsafe_hostnames:
                raise ValueError(
                    f"CORS origin '{origin}' uses hostname '{hostname}' which is not "
                    f"allowed in production. Use HTTPS production URLs instead."
                )

        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
