"""Configuration management for the capture engine."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Correlation & classification windows
    correlation_window_ms: int = Field(
        2000,
        description="Max gap between an interaction and a request start for the request to attach to it"
    )
    email_verification_ttl_ms: int = Field(
        300000,
        description="How long an email form submission keeps waiting for a verification URL"
    )
    profile_weak_min_entries: int = Field(
        5,
        description="Timeline must hold more than this many entries for a profile URL to count without an identity match"
    )

    # Network filtering
    excluded_resource_types: list[str] = Field(
        default_factory=lambda: ["image", "stylesheet", "font", "media", "csp_report"],
        description="Resource kinds that are never tracked"
    )
    main_request_types: list[str] = Field(
        default_factory=lambda: ["xmlhttprequest", "form_submit", "main_frame", "sub_frame"],
        description="Resource kinds flagged as main requests"
    )
    stripped_header_prefixes: list[str] = Field(
        default_factory=lambda: ["sec-ch-ua"],
        description="Request header name prefixes dropped before serialization"
    )

    # Element snippets
    text_snippet_length: int = Field(200, description="Max characters of element text kept")
    html_snippet_length: int = Field(500, description="Max characters of element HTML kept")

    # Logging
    log_level: str = Field("INFO", description="Log level")
    log_json: bool = Field(False, description="Render logs as JSON")


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
