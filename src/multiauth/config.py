"""MultiAuth — configuration loaded from environment."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── Passcodes ─────────────────────────────────────────
    default_duration_ms: int = 5 * 60 * 1000

    # ── HTTP API ──────────────────────────────────────────
    api_base_url: str = "http://localhost:8000/api/v1"

    # ── Simulator ─────────────────────────────────────────
    refresh_interval_seconds: float = 1.0

    # ── App ───────────────────────────────────────────────
    app_name: str = "MultiAuth"
    debug: bool = True

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton settings instance
settings = Settings()
