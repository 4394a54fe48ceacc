# studio/config.py
import os
from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # === Algemene app settings ===
    app_env: str = "local"  # local | development | production
    app_name: str = "studio"

    # === Database ===
    database_url: str = "sqlite:///./studio.db"

    # === Logging ===
    log_level: str = "INFO"

    # === Storage ===
    storage_backend: str = Field("local", description="local | s3")
    local_storage_path: str = "data"
    s3_bucket: Optional[str] = Field(None, description="Bucket for generated estimate documents")
    s3_region: str = "ap-south-1"
    public_base_url: str = "http://localhost:8000"

    # === Tenant defaults ===
    default_currency: str = "INR"
    default_company_name: str = "Interior Design Co."

    # === HTTP ===
    allowed_origins: List[str] = ["*"]

    # === Metrics ===
    metrics_enabled: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton Settings instance with simple environment overrides."""
    s = Settings()

    env = os.getenv("ENVIRONMENT", s.app_env).lower()
    if env == "production":
        s.log_level = "WARNING"
    elif env == "development":
        s.log_level = "DEBUG"

    return s


# Module-level export: from studio.config import settings
settings = get_settings()
