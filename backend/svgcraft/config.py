"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    anthropic_api_key: str = ""
    svgcraft_env: str = "development"
    svgcraft_log_level: str = "info"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Model routing
    model_cheap: str = "claude-haiku-4-5-20251001"
    model_mid: str = "claude-sonnet-4-5-20250929"

    # Embeddings (OpenAI-compatible endpoint). Empty key disables semantic search.
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    embedding_model: str = "text-embedding-3-small"
    embedding_timeout_s: float = 30.0

    # Pipeline defaults
    pipeline_max_retries: int = 2
    pipeline_temperature: float = 0.2
    pipeline_fallback: bool = True
    default_canvas: float = 400.0

    # Grounding cache
    cache_max_entries: int = 10_000
    cache_cleanup_interval_s: float = 1800.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
