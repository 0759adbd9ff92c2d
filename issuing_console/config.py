"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="ISSUING_", extra="ignore"
    )

    # Card backend
    backend_api_base: str = "http://localhost:8080/api"
    backend_token: str | None = None

    # Service
    service_name: str = "issuing-console"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 5.0

    # Search / listing
    search_debounce_seconds: float = 0.4
    search_min_length: int = 3
    default_page_size: int = 20
    metadata_page_size: int = 1000

    # Spending constraints
    utilization_timezone: str = "UTC"
    max_limit_cents: int = 100_000_000_000  # $1 billion


settings = Settings()
