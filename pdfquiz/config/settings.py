from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    document_store: str = "memory"
    storage_root: Path = Path("./storage")

    db_host: str = "localhost"
    db_port: int = 5432
    db_database: str = "pdfquiz"
    db_username: str = "pdfquiz"
    db_password: str = "secret"

    pdf_engine: str = "pdfplumber"
    max_file_size_bytes: int = 10 * 1024 * 1024
    extraction_timeout_seconds: float = 30.0

    cleaning_chunk_size: int = 10_000
    cleaning_chunk_threshold_mb: float = 10.0
    cleaning_yield_every: int = 10

    min_text_length: int = 100
    short_text_warning_length: int = 500
    quality_threshold: float = 30.0
    max_finished_runs: int = 1000

    max_concurrent_processing: int = 3
    max_memory_usage_mb: float = 100.0
    max_processing_time_ms: int = 30_000
    metrics_window_size: int = 100
    metrics_max_age_hours: int = 24

    generation_provider: str = "openai"
    generation_api_key: str = ""
    generation_model_name: str = "gpt-3.5-turbo"
    generation_base_url: str | None = None
    generation_timeout_seconds: int = 30
    generation_temperature: float = 0.7
    generation_max_tokens: int = 2000
    generation_max_attempts: int = 3
    generation_backoff_base_seconds: float = 2.0
