from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="APP_",
        extra="ignore",
        case_sensitive=False,
    )

    # Application
    debug: bool = False
    log_level: str = "INFO"

    # API
    api_prefix: str = "/api/v1"
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8000",
    ]

    cors_origin_regex: str | None = None
    trusted_hosts: list[str] = ["*"]
    root_path: str = ""

    # Supabase (checked when a client is created)
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""
    supabase_timeout_seconds: int = 10

    # Language detection
    fallback_language_code: str = "simple"  # PostgreSQL text search config used for unknown languages
    language_detection_seed: int = 0

    # Notes and tags
    default_tag_color: str = "#21409A"
    default_page_size: int = 50

    # Read-view caches
    read_view_cache_users: int = 1024
    read_view_cache_max_entries: int = 256


settings = Settings()
