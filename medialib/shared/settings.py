"""Environment-driven application settings."""
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service configuration, read from the environment and an optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Media Library API"
    app_version: str = "0.1.0"
    log_level: str = "INFO"
    log_format: str = Field("json", description="json or console")

    api_prefix: str = "/api"
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: List[str] = ["*"]

    upload_dir: Path = Path("uploads")
    max_file_mb: int = 50
    static_prefix: str = "/uploads"

    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "root"
    db_pass: str = ""
    db_name: str = "music"
    database_url: Optional[str] = None
    create_schema: bool = True

    @property
    def max_upload_bytes(self) -> int:
        return self.max_file_mb * 1024 * 1024

    @property
    def sqlalchemy_url(self) -> str:
        """Explicit DATABASE_URL wins; otherwise build a PostgreSQL URL from DB_* vars."""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_pass}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )


app_settings = Settings()
