"""
Storefront API — Configuration
All settings are read from environment variables (or .env file).
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    SERVICE_NAME: str = "storefront-api"
    SERVICE_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["*"]

    # ── JWT ──────────────────────────────────────────────────
    JWT_SECRET_KEY: str = "CHANGE_ME_IN_PRODUCTION"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # ── Admin bootstrap (seed) ───────────────────────────────
    ADMIN_USERNAME: str = "admin"
    ADMIN_EMAIL: str = "admin@simpleshop.com"
    ADMIN_PASSWORD: str = "admin123"

    # ── Database ──────────────────────────────────────────────
    # DATABASE_URL wins over the POSTGRES_* parts when set.
    DATABASE_URL: str | None = None
    POSTGRES_HOST: str = "shop-db"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "shop_db"
    POSTGRES_USER: str = "shop_user"
    POSTGRES_PASSWORD: str = "shop_pass"
    DB_ECHO: bool = False
    DB_CREATE_TABLES: bool = True  # Alembic handles migrations in production

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # ── Redis ─────────────────────────────────────────────────
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""

    @property
    def redis_url(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # ── Login Rate Limiting ───────────────────────────────────
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_MAX_ATTEMPTS: int = 5
    RATE_LIMIT_WINDOW_SECONDS: int = 900

    # ── Orders ────────────────────────────────────────────────
    ORDER_NUMBER_PREFIX: str = "SS"
    ORDER_NUMBER_MAX_RETRIES: int = 3
    ORDER_NUMBER_BASE_DELAY_MS: int = 20   # base exponential backoff delay in ms
    ORDER_NUMBER_MAX_DELAY_MS: int = 500   # max backoff cap in ms
    ORDER_NUMBER_JITTER_MS: int = 20       # random jitter range in ms

    # ── Observability ─────────────────────────────────────────
    METRICS_ENABLED: bool = True
    HEALTH_CHECK_TIMEOUT: float = 5.0


@lru_cache()
def get_settings() -> Settings:
    return Settings()
