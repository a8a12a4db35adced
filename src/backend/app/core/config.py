"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.models.telemetry import BooleanCoercion, ControlSyncPolicy


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Agri IoT Dashboard"
    debug: bool = False
    environment: str = "development"
    port: int = 8000

    # Gateway (telemetry + shadow HTTP service)
    gateway_api_base: str = "http://localhost:9000"
    gateway_latest_path: str = "/latest"    # GET latest telemetry / history
    gateway_shadow_path: str = "/shadow"    # PUT desired state
    gateway_timeout_seconds: float = 10.0

    @field_validator("gateway_api_base", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Paths are appended to the base, so drop any trailing slash."""
        return v.rstrip("/")

    # Polling
    poll_enabled: bool = True
    poll_interval_seconds: float = 30.0
    history_node_id: int = 1
    history_minutes: int = 60

    # Shadow-state reconciliation
    boolean_coercion: BooleanCoercion = BooleanCoercion.STRICT_STRING
    control_sync_policy: ControlSyncPolicy = ControlSyncPolicy.FIRST_LOAD
    success_banner_seconds: float = 3.0

    # CORS - accepts comma-separated string or JSON array
    cors_origins_str: str = "http://localhost:3000,http://localhost:5173"

    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        value = self.cors_origins_str
        if value.startswith("["):
            import json
            return json.loads(value)
        return [origin.strip() for origin in value.split(",") if origin.strip()]

    # Logging
    log_level: str = "INFO"

    # Metrics
    metrics_enabled: bool = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
