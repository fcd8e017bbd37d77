import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DATASTORES = ("sqlite", "supabase", "memory")


class Settings:
    """Centralised application configuration sourced from environment variables."""

    def __init__(self) -> None:
        load_dotenv()
        self.app_env = os.getenv("APP_ENV", "development").lower()
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.site_url = os.getenv("SITE_URL", os.getenv("URL", "http://localhost:8888")).rstrip("/")
        origins = os.getenv("CORS_ALLOW_ORIGINS")
        if origins:
            self.cors_allow_origins = [item.strip() for item in origins.split(",") if item.strip()]
        else:
            self.cors_allow_origins = ["*"]

        self.datastore = os.getenv("DATASTORE", "sqlite").lower()
        if self.datastore not in DATASTORES:
            raise RuntimeError(f"DATASTORE must be one of: {', '.join(DATASTORES)}")
        self.database_path = Path(os.getenv("DATABASE_PATH", "data/leadconnect.db")).resolve()
        if self.datastore == "supabase":
            self.supabase_url = self._get("SUPABASE_URL")
            self.supabase_anon_key = self._get("SUPABASE_ANON_KEY")
        else:
            self.supabase_url = os.getenv("SUPABASE_URL")
            self.supabase_anon_key = os.getenv("SUPABASE_ANON_KEY")
        self.supabase_timeout = self._get_float("SUPABASE_TIMEOUT_SECONDS", default=10.0)

        self.jwt_secret = os.getenv("JWT_SECRET", "change-me")
        self.jwt_expiration_hours = self._get_int("JWT_EXPIRATION_HOURS", default=24)
        self.bcrypt_rounds = self._get_int("BCRYPT_ROUNDS", default=12)
        self.verification_expiration_hours = self._get_int("VERIFICATION_EXPIRATION_HOURS", default=24)

        self.stripe_secret_key = os.getenv("STRIPE_SECRET_KEY")
        self.stripe_publishable_key = os.getenv("STRIPE_PUBLISHABLE_KEY")
        self.stripe_webhook_secret = os.getenv("STRIPE_WEBHOOK_SECRET")
        self.stripe_subscription_price_id = os.getenv("STRIPE_SUBSCRIPTION_PRICE_ID")
        self.stripe_exclusive_price_id = os.getenv("STRIPE_EXCLUSIVE_PRICE_ID")

        self.lead_price = self._get_float("LEAD_PRICE", default=39.99)
        prefixes = os.getenv("PHOTO_HOST_PREFIX", "https://res.cloudinary.com/")
        self.photo_prefixes = tuple(
            [item.strip() for item in prefixes.split(",") if item.strip()] + ["data:image/"]
        )
        self.rate_limit_storage_uri = os.getenv("RATE_LIMIT_STORAGE_URI") or None

        self.smtp_host = os.getenv("SMTP_HOST")
        self.smtp_port = self._get_int("SMTP_PORT", default=587)
        self.smtp_username = os.getenv("SMTP_USERNAME")
        self.smtp_password = os.getenv("SMTP_PASSWORD")
        self.smtp_from_email = os.getenv("SMTP_FROM_EMAIL")

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @staticmethod
    def _get(key: str) -> str:
        value = os.getenv(key)
        if not value:
            raise RuntimeError(f"Missing required environment variable: {key}")
        return value

    @staticmethod
    def _get_int(key: str, default: Optional[int] = None) -> int:
        value = os.getenv(key)
        if value is None:
            if default is None:
                raise RuntimeError(f"Missing required environment variable: {key}")
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be an integer") from exc

    @staticmethod
    def _get_float(key: str, default: Optional[float] = None) -> float:
        value = os.getenv(key)
        if value is None:
            if default is None:
                raise RuntimeError(f"Missing required environment variable: {key}")
            return default
        try:
            return float(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be a number") from exc
