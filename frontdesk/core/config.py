from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import Literal

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    APP_NAME: str = "frontdesk"
    ENV: Literal["local", "dev", "prod"] = "local"
    API_PREFIX: str = "/api/v1"

    # DB
    DATABASE_DSN: str = "sqlite+aiosqlite:///./frontdesk.db"
    DB_MANAGE: Literal["create_all", "migrations"] = "create_all"

    # Auth (demo HS256); production should verify against OIDC/JWKS
    JWT_ALG: str = "HS256"
    JWT_SECRET: str = "dev-secret-change-me"
    REQUIRED_AUDIENCE: str | None = None

    # Multitenancy default org (for local dev)
    DEFAULT_ORG_ID: str = "00000000-0000-0000-0000-000000000001"

    # Wall-clock used for slots, "now" and the public greeting
    CLINIC_TIMEZONE: str = "America/Sao_Paulo"

    # Public booking sessions
    REDIS_URL: str = "redis://localhost:6379"
    BOOKING_SESSION_TTL_MINUTES: int = 30
    IDENTITY_MAX_ATTEMPTS: int = 3
    REGISTRATION_URL: str = "/public/patient-registration"
    OBSTETRIC_KEYWORD: str = "OBSTÉTRICA"

    # Retries for reads that hit a flaky upstream (linear backoff)
    FETCH_RETRY_ATTEMPTS: int = 2
    FETCH_RETRY_DELAY_SECONDS: float = 0.5

    # Drafts
    DRAFT_ERROR_GRACE_SECONDS: float = 1.5
    DRAFT_LIST_LIMIT: int = 50

    # Notifications
    NOTIFIER_PROVIDER: str = "noop"  # noop | webhook
    NOTIFY_WEBHOOK_URL: str | None = None
    NOTIFY_TIMEOUT_SECONDS: float = 10.0

    @field_validator("DATABASE_DSN")
    @classmethod
    def _must_be_async(cls, v: str):
        if "+asyncpg" not in v and "+aiosqlite" not in v:
            raise ValueError("DATABASE_DSN must use an async driver (postgresql+asyncpg:// or sqlite+aiosqlite://)")
        return v

    @field_validator("IDENTITY_MAX_ATTEMPTS", "FETCH_RETRY_ATTEMPTS")
    @classmethod
    def _non_negative(cls, v: int):
        if v < 0:
            raise ValueError("must be >= 0")
        return v

settings = Settings()
