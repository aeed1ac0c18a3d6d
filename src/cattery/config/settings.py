from pathlib import Path
from typing import Literal
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..validators.normalizers import to_uppercase, to_lowercase


class Settings(BaseSettings):
    """
    Application settings loaded from environment.
    """

    # Environment
    ENV: Literal["development", "testing", "staging", "production"] = "development"

    # Database configuration (Postgres is used only when all of these are set)
    POSTGRES_DRIVER: str = "asyncpg"
    POSTGRES_USERNAME: str | None = None
    POSTGRES_PASSWORD: str | None = None
    POSTGRES_HOST: str | None = None
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str | None = None

    # Local fallback database
    SQLITE_PATH: Path = Path("./cattery.db")

    # Test database configuration
    TEST_POSTGRES_DB: str | None = None
    TESTING: bool = False

    # SQLAlchemy
    SQLALCHEMY_ECHO: bool = False
    DATABASE_AUTO_CREATE: bool = True

    # Request parameters: what to do with keys outside a form's allow-list
    UNPERMITTED_PARAMS: Literal["drop", "raise"] = "drop"

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "text"
    LOG_TO_STDOUT: bool = True
    LOG_DIR: Path = Path("./logs")
    LOG_MAX_BYTES: int = 10_000_000  # 10 MB
    LOG_BACKUP_COUNT: int = 5
    ENABLE_SQL_LOGGING: bool = False
    LOG_USE_QUEUE: bool = False
    LOG_QUEUE_MAX_SIZE: int = 0
    LOG_QUEUE_BLOCKING: bool = False
    LOG_QUEUE_DROP_WARNING_THRESHOLD: int = 100

    # Server
    API_HOST: str = "127.0.0.1"
    API_PORT: int = 8000
    API_RELOAD: bool = False

    # --- Derived settings ---
    @property
    def uses_postgres(self) -> bool:
        return all((self.POSTGRES_USERNAME, self.POSTGRES_PASSWORD, self.POSTGRES_HOST, self.POSTGRES_DB))

    @property
    def DATABASE_URL(self) -> str:
        """
        Return the database URL for the current environment.

        - Postgres when its connection settings are complete. With `TESTING=True`
          and `TEST_POSTGRES_DB` set, the test database name replaces `POSTGRES_DB`.
        - Otherwise a local SQLite file driven by aiosqlite.
        """
        if not self.uses_postgres:
            return f"sqlite+aiosqlite:///{self.SQLITE_PATH}"

        database = self.POSTGRES_DB
        if self.TESTING and self.TEST_POSTGRES_DB:
            database = self.TEST_POSTGRES_DB

        return (
            f"postgresql+{self.POSTGRES_DRIVER}://"
            f"{self.POSTGRES_USERNAME}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/"
            f"{database}"
        )

    # --- Validators ---
    @field_validator("LOG_LEVEL", mode="before")
    def normalize_log_level(cls, v: str | None) -> str | None:
        """
        Uppercase LOG_LEVEL before validation so `debug` and `DEBUG` are both accepted.
        """
        return to_uppercase(v)

    @field_validator("LOG_FORMAT", "UNPERMITTED_PARAMS", mode="before")
    def normalize_lowercase_choice(cls, v: str | None) -> str | None:
        return to_lowercase(v)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Settings are read once per process; tests call get_settings.cache_clear() to re-read.
@lru_cache()
def get_settings() -> Settings:
    return Settings()
