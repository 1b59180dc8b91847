from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # ─────────── APP ───────────
    app_name: str = "Blood Shortage Dashboard"
    environment: str = "dev"
    log_level: str = "INFO"
    site_url: str = "http://localhost:8000"

    # ─────────── API ───────────
    api_prefix: str = "/api/v1"
    request_id_header: str = "X-Request-Id"

    # ─────────── DATABASE ───────────
    database_url: str

    # ─────────── JWT / AUTH ───────────
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    jwt_access_token_minutes: int = 60 * 24 * 7

    auth_require_email_confirmation: bool = True
    min_password_length: int = 6
    otp_length: int = 6
    otp_expiry_minutes: int = 10

    # ─────────── MAIL ───────────
    mail_transport: str = "log"  # log | smtp
    mail_sender: Optional[str] = None
    mail_password: Optional[str] = None
    mail_smtp_host: str = "smtp.gmail.com"
    mail_smtp_port: int = 587

    # ─────────── VIEWS ───────────
    view_cache_ttl_seconds: int = 30
    audit_page_size: int = 100


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
