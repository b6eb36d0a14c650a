from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "contracts"
    db_username: str = "contracts"
    db_password: str = "secret"
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10

    persistence_backend: str = "postgres"
    storage_root: str = "/app/files"

    pdf_engine: str = "pdfplumber"
    pdf_max_concurrency: int = 4
    pdf_page_timeout_ms: int = 800
    pdf_max_size_bytes: int = 10 * 1024 * 1024
    pdf_max_pages: int = 500
    pdf_min_text_length: int = 50

    llm_provider: str = "openai"
    llm_api_key: str = ""
    llm_base_url: str = ""
    llm_model_name: str = "gpt-4o-mini"
    llm_detection_model_name: str = "gpt-4o-mini"
    llm_timeout_seconds: int = 30
    llm_temperature: float = 0.3

    detection_llm_threshold: float = 0.8
    detection_form_threshold: float = 0.44
    detection_rate_capacity: int = 5
    detection_rate_refill_per_second: float = 0.5

    idempotency_lock_timeout_seconds: int = 120
    idempotency_ttl_hours: int = 24

    guest_quota_limit: int = 3
    guest_quota_window_hours: int = 24
