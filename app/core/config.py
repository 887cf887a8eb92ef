# app/core/config.py
from __future__ import annotations
from typing import Optional, List, Literal
from urllib.parse import quote_plus
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from starlette.middleware.cors import CORSMiddleware


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # --- App ---
    app_name: str = Field("Realtor Space", alias="APP_NAME")
    environment: str = Field("development", alias="ENVIRONMENT")
    seed_locations: bool = Field(True, alias="SEED_LOCATIONS")

    # --- Logging ---
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_format: Literal["text", "json"] = Field("text", alias="LOG_FORMAT")

    # --- Security / JWT ---
    secret_key: str = Field("dev-super-secret-change-me", alias="SECRET_KEY")
    algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60 * 24, alias="ACCESS_EXPIRE_MIN")
    jwt_issuer: str = Field("realtor-space-backend", alias="JWT_ISSUER")

    # --- Admin seed ---
    admin_email: Optional[str] = Field("admin@realtorspace.co.ke", alias="ADMIN_EMAIL")
    admin_password: str = Field("AdminPass123!", alias="ADMIN_PASSWORD")
    admin_phone: Optional[str] = Field("0700000000", alias="ADMIN_PHONE")
    admin_console_secret: str = Field("change-me-admin-session", alias="ADMIN_SECRET")

    # --- Email verification / password reset tokens ---
    email_verify_ttl_hours: int = Field(24, alias="EMAIL_VERIFY_TTL_HOURS")
    password_reset_ttl_minutes: int = Field(60, alias="PASSWORD_RESET_TTL_MINUTES")
    token_resend_cooldown_seconds: int = Field(300, alias="TOKEN_RESEND_COOLDOWN_SECONDS")

    # --- Database ---
    database_url: Optional[str] = Field(None, alias="DATABASE_URL")
    db_user: str = Field("realtor", alias="DB_USER")
    db_password: str = Field("realtorpw1234", alias="DB_PASSWORD")
    db_host: str = Field("127.0.0.1", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_name: str = Field("realtor_space", alias="DB_NAME")

    # --- SMTP / Email ---
    email_enabled: bool = Field(False, alias="EMAIL_ENABLED")
    smtp_host: str = Field("smtp.gmail.com", alias="SMTP_HOST")
    smtp_port: int = Field(587, alias="SMTP_PORT")
    smtp_user: str = Field("", alias="SMTP_USER")
    smtp_password: str = Field("", alias="SMTP_PASSWORD")
    smtp_from_name: str = Field("Realtor Space", alias="SMTP_FROM_NAME")
    smtp_from_email: str = Field("no-reply@realtorspace.co.ke", alias="SMTP_FROM_EMAIL")
    support_email: str = Field("support@realtorspace.co.ke", alias="SUPPORT_EMAIL")

    app_frontend_url: str = Field("http://localhost:5173", alias="APP_FRONTEND_URL")
    app_backend_url: str = Field("http://localhost:8000", alias="APP_BACKEND_URL")

    # --- M-Pesa (Daraja) ---
    mpesa_consumer_key: str = Field("", alias="MPESA_CONSUMER_KEY")
    mpesa_consumer_secret: str = Field("", alias="MPESA_CONSUMER_SECRET")
    mpesa_short_code: str = Field("174379", alias="MPESA_SHORT_CODE")
    mpesa_pass_key: str = Field("", alias="MPESA_PASS_KEY")
    mpesa_base_url: str = Field("https://sandbox.safaricom.co.ke", alias="MPESA_BASE_URL")
    mpesa_callback_url: Optional[str] = Field(None, alias="MPESA_CALLBACK_URL")
    mpesa_timeout_seconds: float = Field(30.0, alias="MPESA_TIMEOUT_SECONDS")
    mpesa_apply_callbacks: bool = Field(False, alias="MPESA_APPLY_CALLBACKS")

    # --- CORS ---
    # Comma-separated in .env or leave default list
    allowed_origins: List[str] = [
        "http://localhost",
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _parse_origins(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("app_frontend_url", "app_backend_url", "mpesa_base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            "postgresql+psycopg2://"
            f"{self.db_user}:{quote_plus(self.db_password)}@"
            f"{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def mpesa_callback(self) -> str:
        if self.mpesa_callback_url:
            return self.mpesa_callback_url
        return f"{self.app_backend_url}/v1/payments/mpesa/callback"


settings = Settings()

# --- Module-level constants ---
SECRET_KEY = settings.secret_key
ALGORITHM = settings.algorithm
ACCESS_TOKEN_EXPIRE_MINUTES = settings.access_token_expire_minutes
JWT_ISSUER = settings.jwt_issuer

ADMIN_EMAIL = settings.admin_email
ADMIN_PASSWORD = settings.admin_password
ADMIN_PHONE = settings.admin_phone

APP_FRONTEND_URL = settings.app_frontend_url


def configure_cors(app):
    http_origins = [o for o in settings.allowed_origins if o.startswith("http")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=http_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
