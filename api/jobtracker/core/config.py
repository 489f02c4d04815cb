from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ATTACHMENT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_ALLOWED_MIME_TYPES = [
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
]


class Settings(BaseSettings):
    app_name: str = "job-tracker-api"
    environment: str = "dev"
    log_level: str = "INFO"
    database_url: str | None = None
    database_pool_min_size: int = 1
    database_pool_max_size: int = 10
    search_provider_url: str = "http://localhost:9423"
    search_timeout_seconds: float = 60.0
    attachment_max_bytes: int = DEFAULT_ATTACHMENT_MAX_BYTES
    attachment_allowed_mime_types: list[str] = list(DEFAULT_ALLOWED_MIME_TYPES)
    cors_allowed_origins: list[str] = ["*"]
    api_base_url: str = "http://localhost:8080"
    api_timeout_seconds: float = 10.0
    otel_enabled: bool = True
    otel_service_name: str = "job-tracker-api"
    otel_exporter_otlp_endpoint: str | None = None
    otel_exporter_otlp_headers: str | None = None
    otel_trace_sample_ratio: float = 1.0
    otel_log_correlation: bool = True
    otel_excluded_urls: str = "/healthz$,/health$"

    model_config = SettingsConfigDict(env_prefix="JT_", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
