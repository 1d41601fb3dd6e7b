"""Application configuration loaded via pydantic settings."""

from typing import List, Literal, Optional
import secrets

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Strongly-typed application settings with environment overrides."""

    # Application
    APP_NAME: str = "Trade Exchange"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    API_PREFIX: str = "/api/v1"
    HOST: str = "0.0.0.0"
    PORT: int = 4000

    # Security
    SECRET_KEY: str = secrets.token_urlsafe(32)
    ALGORITHM: str = "HS256"
    TOKEN_EXPIRE_DAYS: int = 7
    TOKEN_COOKIE_NAME: str = "token"
    COOKIE_SECURE: bool = False
    # Developer convenience only: accept ?token=... on requests
    ALLOW_QUERY_TOKEN: bool = False

    # Storage
    DATABASE_URL: str = "sqlite:///./data/trade_exchange.db"
    STORAGE_BACKEND: Literal["sqlite", "memory"] = "sqlite"
    STORAGE_MODE: Literal["strict", "degraded"] = "strict"

    # Development seed data
    SEED_DEMO_DATA: bool = True
    ADMIN_EMAIL: str = "admin@tradeexchange.local"
    ADMIN_PASSWORD: str = "Admin1234!"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Messaging
    CHAT_AUTO_REPLY: bool = True

    # Payments
    STRIPE_SECRET_KEY: Optional[str] = None
    PAYMENT_API_BASE: str = "https://api.stripe.com"
    PAYMENT_CURRENCY: str = "usd"
    PAYMENT_TIMEOUT_SECONDS: float = 10.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_LEVELS: str = "TRACE,ERROR,WARNING,INFO"
    LOG_FILE_PATH: str = "./logs/trade_exchange.log"
    LOG_TRACE_CALLS: bool = True

    class Config:
        """Configure environment file loading behavior."""

        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()
