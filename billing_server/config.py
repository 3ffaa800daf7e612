"""Application configuration, read from the environment (and .env) once at startup.

A missing JWT_SECRET fails startup instead of failing a request.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Database
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "postgres"
    db_password: SecretStr = SecretStr("")
    db_name: str = "billing"
    database_url: Optional[str] = None
    db_pool_size: int = 10
    db_max_overflow: int = 5
    query_timeout_seconds: float = 5.0
    create_schema: bool = False

    # Server
    server_host: str = "0.0.0.0"
    server_port: int = 8000
    cors_origins: List[str] = ["*"]

    # Auth
    jwt_secret: SecretStr
    jwt_algorithm: str = "HS256"
    jwt_issuer: Optional[str] = None
    jwt_leeway_seconds: int = 0

    # Observability
    log_level: str = "INFO"
    log_format: str = "text"

    @field_validator("jwt_secret")
    @classmethod
    def secret_not_empty(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value():
            raise ValueError("JWT_SECRET must not be empty")
        return v

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v):
        """Hosting providers hand out postgresql:// but the async engine needs asyncpg."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return URL.create(
            "postgresql+asyncpg",
            username=self.db_user,
            password=self.db_password.get_secret_value() or None,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        ).render_as_string(hide_password=False)


@lru_cache
def get_settings() -> Settings:
    return Settings()
