from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

ENVIRONMENTS = ("development", "test", "production")


class Settings(BaseSettings):
    """Process-wide settings, read from ``CMS_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CMS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = "production"
    version: str = "0.1.0"

    log_level: str = "INFO"
    log_json: bool = False
    log_file: Optional[str] = None

    sentry_dsn: Optional[str] = None

    host: str = "0.0.0.0"
    admin_port: int = 5001
    demosite_port: int = 5002

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()
