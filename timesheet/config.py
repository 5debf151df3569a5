"""Application configuration."""

import os

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Storage
    database_path: str = os.getenv("DATABASE_PATH", "data/timesheet.db")

    # Server
    server_host: str = os.getenv("SERVER_HOST", "0.0.0.0")
    server_port: int = int(os.getenv("SERVER_PORT", "8000"))

    # Allocation
    default_target_minutes: int = int(
        os.getenv("DEFAULT_TARGET_MINUTES", "480")
    )  # 8h, proposed for days without a target

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    class Config:
        """Pydantic config."""

        env_file = ".env"
        case_sensitive = False


settings = Settings()
