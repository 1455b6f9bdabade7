"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    visualedit_env: str = "development"
    visualedit_log_level: str = "debug"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Coalescing
    update_debounce_ms: int = 300
    autosave_debounce_ms: int = 1000
    retry_backoff_ms: int = 1000
    retry_max_attempts: int = 1
    retry_backoff: str = "fixed"  # fixed | exponential
    max_undo_steps: int = 50

    # Operations slower than this are logged as warnings
    slow_operation_ms: int = 100

    # Persistence collaborator (empty base URL = in-memory store)
    persistence_base_url: str = ""
    persistence_timeout_s: float = 10.0
    persistence_content_field: str = "jsxCode"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
