# maxpulse_backend/core/config.py

"""
Configuration settings for the MaxPulse commission backend.
"""

import os
from pydantic_settings import BaseSettings
from pydantic import validator
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

class Settings(BaseSettings):
    """Application settings class using Pydantic for validation"""

    # Application info
    APP_NAME: str = "MaxPulse"
    VERSION: str = "1.0.0"
    DEBUG: bool = os.getenv("DEBUG", "False") == "True"
    PRODUCTION: bool = os.getenv("PRODUCTION", "False") == "True"

    # Server settings
    PORT: int = int(os.getenv("PORT", "5050"))
    HOST_URL: Optional[str] = os.getenv("HOST_URL")

    # Database settings
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./maxpulse.db")
    DB_SSLMODE: str = os.getenv("DB_SSLMODE", "require")

    # Authentication and security
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "change-this-in-production")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 1 day
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60

    # Service-to-service key, accepted as a bearer token by the function endpoints
    SERVICE_ROLE_KEY: str = os.getenv("SERVICE_ROLE_KEY", "")

    # CORS Settings
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")

    # Email settings (SMTP)
    EMAIL_HOST: str = os.getenv("EMAIL_HOST", "smtp.gmail.com")
    EMAIL_PORT: int = int(os.getenv("EMAIL_PORT", "465"))
    EMAIL_USERNAME: str = os.getenv("EMAIL_USERNAME", "")
    EMAIL_PASSWORD: str = os.getenv("EMAIL_PASSWORD", "")
    EMAIL_USE_SSL: bool = os.getenv("EMAIL_USE_SSL", "True") == "True"
    EMAIL_USE_TLS: bool = os.getenv("EMAIL_USE_TLS", "False") == "True"
    EMAIL_FROM: str = os.getenv("EMAIL_FROM", "noreply@maxpulse.app")
    APP_LOGIN_URL: str = os.getenv("APP_LOGIN_URL", "https://app.maxpulse.com/login")

    # Telegram admin alerts
    TELEGRAM_BOT_TOKEN: Optional[str] = os.getenv("TELEGRAM_BOT_TOKEN")
    TELEGRAM_ADMIN_CHAT_ID: Optional[str] = os.getenv("TELEGRAM_ADMIN_CHAT_ID")

    # Realtime fan-out
    REALTIME_WEBHOOK_URL: Optional[str] = os.getenv("REALTIME_WEBHOOK_URL")
    REALTIME_WEBHOOK_TIMEOUT: float = 5.0  # seconds

    # Commission rules
    MAX_COMMISSION_RATE: float = 50.0
    MIN_SALE_AMOUNT: float = 0.01
    MAX_SALE_AMOUNT: float = 100000.0

    # Assessment links
    ASSESSMENT_BASE_URL: str = os.getenv("ASSESSMENT_BASE_URL", "https://maxpulse.com/assessment")
    SHORT_LINK_DOMAIN: str = os.getenv("SHORT_LINK_DOMAIN", "max.link")

    # Activation codes
    ACTIVATION_CODE_TTL_DAYS: int = int(os.getenv("ACTIVATION_CODE_TTL_DAYS", "30"))
    ACTIVATION_ANNUAL_PRICE: float = float(os.getenv("ACTIVATION_ANNUAL_PRICE", "99.99"))
    ACTIVATION_MONTHLY_PRICE: float = float(os.getenv("ACTIVATION_MONTHLY_PRICE", "9.99"))

    @validator("HOST_URL")
    def validate_host_url(cls, v):
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("HOST_URL must start with http:// or https://")
        return v

    @validator("DATABASE_URL")
    def validate_database_url(cls, v, values):
        if not v:
            raise ValueError("DATABASE_URL must be set")
        if values.get("PRODUCTION") and v.startswith("sqlite"):
            print("⚠️ WARNING: SQLite database configured in production mode")
        return v

    @validator("REALTIME_WEBHOOK_URL", "APP_LOGIN_URL", "ASSESSMENT_BASE_URL")
    def validate_urls(cls, v):
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("URL settings must start with http:// or https://")
        return v

    @validator("SERVICE_ROLE_KEY")
    def validate_service_role_key(cls, v, values):
        if not v and values.get("PRODUCTION"):
            raise ValueError("SERVICE_ROLE_KEY must be set in production mode")
        return v

    class Config:
        """Pydantic settings configuration"""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"

# Create a global settings instance
try:
    settings = Settings()
except Exception as e:
    print(f"❌ Configuration error: {str(e)}")
    print("Please check your .env file and fix the configuration issues.")
    raise
