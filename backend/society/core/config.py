from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings
from typing import List, Any
import json


def parse_cors_origins(v: Any) -> List[str]:
    """CORS origins from a list, a JSON array string or a comma separated string"""
    if isinstance(v, list):
        return v
    if not isinstance(v, str):
        return []
    if v.startswith('['):
        try:
            return json.loads(v)
        except json.JSONDecodeError:
            pass
    return [origin.strip() for origin in v.split(',') if origin.strip()]


class Settings(BaseSettings):
    """Society Management settings, read from the environment and ``.env``"""

    # ---------- Application ----------
    APP_NAME: str = "Society Management"
    ENVIRONMENT: str = "development"  # development | production | testing
    DEBUG: bool = True
    SECRET_KEY: str
    API_VERSION: str = "v1"
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # ---------- Database ----------
    # postgresql://... is accepted and switched to the asyncpg driver
    DATABASE_URL: str
    DB_ECHO: bool = False

    # ---------- Accounts and sessions ----------
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440
    BCRYPT_ROUNDS: int = 12  # tests run with 4
    VERIFICATION_CODE_LENGTH: int = 6

    # ---------- Email (SMTP) ----------
    # Leave SMTP_USER / SMTP_PASSWORD empty to disable sending
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    EMAIL_FROM: str = "society@management.com"
    EMAIL_FROM_NAME: str = "Society Management System"
    FRONTEND_URL: str = "http://localhost:3000"

    # ---------- CORS ----------
    CORS_ORIGINS_STR: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"

    # ---------- Rate limiting ----------
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # ---------- Logging ----------
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"  # empty string: console only

    # ---------- Billing ----------
    BILLING_YEAR_MIN: int = 2000
    BILLING_YEAR_MAX: int = 2100
    DEFAULT_PAYMENT_METHOD: str = "online"

    # ---------- Initial admin (create_admin.py) ----------
    ADMIN_NAME: str = "Society Admin"
    ADMIN_EMAIL: str = "admin@society.com"
    ADMIN_PASSWORD: str = "admin123"
    ADMIN_PHONE: str = "9876543210"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    @field_validator("DATABASE_URL")
    @classmethod
    def use_async_driver(cls, v: str) -> str:
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        if v.startswith("sqlite://") and not v.startswith("sqlite+aiosqlite://"):
            return v.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return v

    @model_validator(mode="after")
    def check_billing_years(self):
        if self.BILLING_YEAR_MIN > self.BILLING_YEAR_MAX:
            raise ValueError("BILLING_YEAR_MIN must not exceed BILLING_YEAR_MAX")
        return self

    @property
    def CORS_ORIGINS(self) -> List[str]:
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    @property
    def email_enabled(self) -> bool:
        return bool(self.SMTP_USER and self.SMTP_PASSWORD)

    def is_dev_mode(self) -> bool:
        return self.ENVIRONMENT == "development" or self.DEBUG


settings = Settings()
