"""
Application configuration.
Values come from environment variables or a local .env file. DATABASE_URL and
JWT_SECRET_KEY are required; everything else has a development default.
"""
import os
import logging
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    JWT_SECRET_KEY: str = os.environ.get("JWT_SECRET_KEY", "")
    DATABASE_URL: str
    APP_URL: str = "http://localhost:3000"

    # Stripe Billing
    STRIPE_API_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_CURRENCY: str = "ars"

    # SendGrid Email
    SENDGRID_API_KEY: str = ""
    SENDGRID_FROM_EMAIL: str = "noreply@medicos-ar.com"
    SENDGRID_FROM_NAME: str = "Medicos AR"

    # Booking
    SLOTS_FAIL_OPEN: bool = True
    SLOT_INTERVAL_MINUTES: int = 15

    # Video consultations (Jitsi-compatible meeting host)
    VIDEO_BASE_URL: str = "https://meet.jit.si"

    # Superadmin bootstrap (optional)
    SUPERADMIN_EMAIL: str = ""
    SUPERADMIN_PASSWORD: str = ""

    class Config:
        env_file = ".env"


settings = Settings()

# Validate critical security settings
if not settings.JWT_SECRET_KEY:
    raise ValueError(
        "JWT_SECRET_KEY is not set. Export it as an environment variable or add it to .env. "
        "Generate one with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
    )
