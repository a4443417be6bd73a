"""
UNPLUG Configuration
Central configuration loaded from environment variables.
"""

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    # App
    APP_NAME: str = "UNPLUG"
    UNPLUG_ENV: str = "development"
    DEBUG: bool = True

    # Database
    DATABASE_URL: str = "sqlite:///./unplug.db"

    # CORS
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000,http://localhost:8000"

    # Fatigue defaults (used until the user saves preferences)
    DEFAULT_WARNING_THRESHOLD: float = 3600.0   # 1 hour
    DEFAULT_RECOVERY_TIME: float = 600.0        # 10 minutes

    # Monitoring
    TICK_INTERVAL_SECONDS: float = 1.0
    DEVICE_SOURCE: str = "polling"              # "polling" or "manual"
    DEVICE_POLL_INTERVAL_SECONDS: float = 2.0

    # Telegram Notifications
    TELEGRAM_BOT_TOKEN: str = ""
    TELEGRAM_CHAT_ID: str = ""
    TELEGRAM_ENABLED: bool = False

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",")]

    @property
    def uses_manual_devices(self) -> bool:
        return self.DEVICE_SOURCE.strip().lower() == "manual"

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parent.parent.parent / ".env",
        extra="allow",
    )


settings = Settings()
