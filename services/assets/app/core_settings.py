from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "opsmind"
    POSTGRES_USER: str = "opsmind"
    POSTGRES_PASSWORD: str = "opsmind"
    # Overrides the Postgres parts above when set (e.g. sqlite:///./assets.db)
    DATABASE_URL: Optional[str] = None

    REDIS_URL: str = "redis://redis:6379/0"
    EVENT_CHANNEL_PREFIX: str = "opsmind_events"

    NOTIFICATION_API_URL: str = "http://localhost:3000/api/notifications"
    INTERNAL_SECRET: str = "supersecret"
    NOTIFICATION_TIMEOUT_SECONDS: float = 5.0

    LOW_STOCK_THRESHOLD: int = 5
    ADMIN_ID: str = "admin1"
    ADMIN_EMAIL: str = "admin@email.com"
    SPLIT_ID_ATTEMPTS: int = 5

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

@lru_cache
def get_settings() -> Settings:
    return Settings()
