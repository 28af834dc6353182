"""Application configuration."""

import os
from datetime import timedelta
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    api_secret: str
    admin_token: str
    timezone: str = "Asia/Manila"
    correction_window_minutes: int = 5
    frozen_after_hours: int = 48
    device_gateway_url: str = "https://openapi.tuyaus.com"
    device_gateway_token: str = ""
    legacy_rpc_enabled: bool = True
    storage_retry_delay_seconds: float = 0.2
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def zone(self) -> ZoneInfo:
        """Timezone that defines the attendance day."""
        return ZoneInfo(self.timezone)

    @property
    def correction_window(self) -> timedelta:
        return timedelta(minutes=self.correction_window_minutes)

    @property
    def frozen_after(self) -> timedelta:
        return timedelta(hours=self.frozen_after_hours)
