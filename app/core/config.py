from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List
from urllib.parse import urlparse
import os
from pathlib import Path


_PROJECT_ROOT = Path(__file__).parent.parent.parent


class Config(BaseSettings):
    # Database Configuration (SQLite by default, PostgreSQL via asyncpg in production)
    database_url: str = Field(
        default=f"sqlite+aiosqlite:///{_PROJECT_ROOT / 'data' / 'achot.db'}",
        alias="DB_URL",
    )
    auto_create_tables: bool = Field(default=True, alias="AUTO_CREATE_TABLES")

    # JWT Configuration
    jwt_secret: str = Field(default="change-me", alias="JWT_SECRET")
    algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24, alias="ACCESS_TOKEN_EXPIRE_MINUTES"
    )

    # Editor client configuration
    api_base_url: str = Field(default="http://localhost:8000/api", alias="API_BASE_URL")
    api_timeout_seconds: float = Field(default=15.0, alias="API_TIMEOUT_SECONDS")
    draft_storage_dir: str = Field(
        default=str(_PROJECT_ROOT / "data" / "local_storage"),
        alias="DRAFT_STORAGE_DIR",
    )

    # Comma separated list, empty means the development defaults below
    cors_origins: str = Field(default="", alias="CORS_ORIGINS")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    is_production: bool = (
        os.getenv("ENVIRONMENT", "development").lower() == "production"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        populate_by_name = True

    @property
    def secret_key(self) -> str:
        return self.jwt_secret

    @property
    def allowed_origins(self) -> List[str]:
        if not self.cors_origins.strip():
            return ["http://localhost", "http://localhost:5173"]
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_api_configured(self) -> bool:
        """True when API_BASE_URL is an absolute http(s) URL."""
        return is_valid_url(self.api_base_url)


def is_valid_url(url: str) -> bool:
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


# Instantiate the settings
config = Config()
