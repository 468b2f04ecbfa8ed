"""
Configuration settings for the Wata callback service
Handles environment variables and application settings
"""
import os
from typing import FrozenSet
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env file
    )

    # Application
    APP_NAME: str = "wata-callback"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./wata_callback.db")

    # Wata gateway
    WATA_PROVIDER_ID: str = "Wata"
    WATA_API_BASE: str = "https://api.wata.pro/api/h2h/"
    WATA_SIGNATURE_HEADER: str = "X-Signature"
    # Comma separated gateway egress addresses
    WATA_ALLOWED_IPS_RAW: str = "62.84.126.140,51.250.106.150"
    WATA_SUPPORTED_CURRENCIES_RAW: str = "USD,EUR,RUB"

    # Public key cache
    PUBLIC_KEY_TTL_SECONDS: int = 3600
    KEY_FETCH_TIMEOUT_SECONDS: float = 10.0

    # Payment link creation
    LINK_CREATE_TIMEOUT_SECONDS: float = 15.0

    # Only honour X-Forwarded-For behind a trusted reverse proxy
    TRUST_PROXY_HEADERS: bool = False

    @property
    def WATA_ALLOWED_IPS(self) -> FrozenSet[str]:
        return _split_csv(self.WATA_ALLOWED_IPS_RAW)

    @property
    def WATA_SUPPORTED_CURRENCIES(self) -> FrozenSet[str]:
        return _split_csv(self.WATA_SUPPORTED_CURRENCIES_RAW)


def _split_csv(value: str) -> FrozenSet[str]:
    return frozenset(item.strip() for item in value.split(",") if item.strip())


# Create settings instance
settings = Settings()


# Environment-specific overrides
if settings.ENVIRONMENT == "development":
    settings.DEBUG = True


# Validation
def validate_settings():
    """Validate critical settings"""
    issues = []

    if settings.ENVIRONMENT == "production":
        if settings.DATABASE_URL.startswith("sqlite"):
            issues.append("DATABASE_URL must point at Postgres in production")
        if not settings.WATA_API_BASE.startswith("https://"):
            issues.append("WATA_API_BASE must use https")
        if not settings.WATA_ALLOWED_IPS:
            issues.append("WATA_ALLOWED_IPS_RAW must list at least one address")

    if issues:
        raise ValueError(f"Configuration issues: {', '.join(issues)}")


# Auto-validate on import in production
if settings.ENVIRONMENT == "production":
    validate_settings()
