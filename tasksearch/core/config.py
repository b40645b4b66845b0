"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Required fields (e.g. SECRET_KEY) and backend
selections are validated at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    All settings are optional with defaults except secret_key, which is
    validated in validate_required_and_backends together with the search
    backend selection and the positive sizing knobs.
    """

    # App
    app_name: str = "tasksearch"
    app_version: str = "1.0.0"
    debug: bool = False

    # Security (token verification only; issuance lives elsewhere)
    secret_key: SecretStr = SecretStr("")
    algorithm: str = "HS256"

    # CORS
    allowed_origins: str = "http://localhost:3000,http://localhost:8080"

    # Request / middleware
    request_timeout_seconds: int = 30
    request_id_header: str = "X-Request-ID"

    # Redis (history store and event streams)
    redis_enabled: bool = True
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None

    # Search engine: "elasticsearch" (HTTP API) or "memory" (in-process, dev/tests)
    search_backend: str = "elasticsearch"
    elasticsearch_url: str = "http://localhost:9200"
    elasticsearch_username: str | None = None
    elasticsearch_password: SecretStr | None = None
    elasticsearch_max_retries: int = 3
    elasticsearch_timeout_seconds: float = 30.0
    # Refresh policy for writes: "false", "true" or "wait_for"
    elasticsearch_refresh: str = "false"
    search_bulk_chunk_size: int = 500
    # Per entity type budget inside composed searches; a timeout yields an empty page
    search_subquery_timeout_seconds: float = 5.0
    search_ensure_indices_on_startup: bool = True

    # System of record read API (consumer materializes documents from here).
    # "http" or "memory" (in-process, dev/tests)
    source_backend: str = "http"
    source_base_url: str = "http://localhost:8080/internal"
    source_timeout_seconds: float = 10.0
    source_api_token: SecretStr | None = None

    # Event streams
    search_stream_partitions: int = 4
    search_consumer_group: str = "search-indexer-group"
    search_consumer_block_ms: int = 5000
    search_consumer_batch_size: int = 50
    # Unacked messages idle this long are taken over from other (dead) consumers
    search_consumer_claim_min_idle_ms: int = 60_000
    search_stream_max_len: int = 100_000
    search_dead_letter_enabled: bool = False
    search_consumers_in_process: bool = False
    search_reindex_on_startup: bool = False

    # Search history
    search_history_max_size: int = 50
    search_history_ttl_days: int = 30
    search_popular_ttl_days: int = 7
    search_history_default_limit: int = 10

    # OpenTelemetry
    telemetry_enabled: bool = True
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_jaeger_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_required_and_backends(self) -> "Settings":
        """Validate required env, search backend and stream sizing.

        - SECRET_KEY is required (used to verify bearer tokens).
        - SEARCH_BACKEND must be 'elasticsearch' or 'memory'.
        - Partition count, chunk size and history size must be positive.
        """
        if not self.secret_key.get_secret_value():
            raise ValueError(
                "SECRET_KEY is required. Generate with: openssl rand -hex 32. "
                "It must match the key used by the service issuing tokens."
            )
        if self.search_backend not in ("elasticsearch", "memory"):
            raise ValueError(
                f"Invalid search_backend '{self.search_backend}'. "
                "Must be one of: 'elasticsearch', 'memory'"
            )
        if self.source_backend not in ("http", "memory"):
            raise ValueError(
                f"Invalid source_backend '{self.source_backend}'. "
                "Must be one of: 'http', 'memory'"
            )
        if self.elasticsearch_refresh not in ("false", "true", "wait_for"):
            raise ValueError(
                f"Invalid elasticsearch_refresh '{self.elasticsearch_refresh}'. "
                "Must be one of: 'false', 'true', 'wait_for'"
            )
        for name in (
            "search_stream_partitions",
            "search_bulk_chunk_size",
            "search_history_max_size",
            "search_consumer_batch_size",
        ):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
