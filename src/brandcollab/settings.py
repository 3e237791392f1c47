"""Environment-driven configuration (`.env` supported)."""

import sys

from pydantic_settings import BaseSettings, SettingsConfigDict

_WEAK_SECRETS = {"change-me-in-production", "secret", "changeme"}


class Settings(BaseSettings):
    """Every field maps to an upper-case environment variable of the same name."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "brandcollab"
    env: str = "development"
    log_level: str = "INFO"
    log_format: str = "console"  # console | json
    allowed_origins: str = "http://localhost:3000"
    frontend_url: str | None = None

    # JWT
    jwt_secret_key: str = "change-me-in-production"
    access_token_expire_minutes: int = 60 * 24
    refresh_token_expire_days: int = 30
    verification_key_expire_minutes: int = 15
    password_reset_expire_minutes: int = 60

    # Database
    database_url: str = "sqlite:///./brandcollab.db"

    # OTP
    use_fixed_otp: bool = False  # Staging: every OTP is FIXED_OTP
    fixed_otp: str = "123456"

    # AWS S3
    aws_s3_bucket_name: str | None = None
    aws_region: str = "ap-south-1"
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    max_upload_size_mb: int = 5

    # WhatsApp Cloud API
    whatsapp_api_url: str = "https://graph.facebook.com/v22.0"
    whatsapp_token: str | None = None
    whatsapp_phone_number_id: str | None = None

    # SendGrid
    sendgrid_api_key: str | None = None
    sendgrid_from_email: str = "noreply@brandcollab.in"
    sendgrid_from_name: str = "BrandCollab"

    # Firebase
    firebase_credentials_path: str | None = None

    # Stripe
    stripe_secret_key: str | None = None
    stripe_publishable_key: str | None = None
    stripe_webhook_secret: str | None = None
    pro_price_paise: int = 19900
    pro_period_days: int = 30

    # Marketplace rules
    weekly_credits_limit: int = 5
    referral_bonus_amount: int = 100  # Rs credited to the referrer on approval
    account_restore_days: int = 30


settings = Settings()


def _production_problems(config: Settings) -> list[str]:
    problems = []
    if config.jwt_secret_key in _WEAK_SECRETS or len(config.jwt_secret_key) < 32:
        problems.append("JWT_SECRET_KEY must be a random value of at least 32 characters")
    if config.use_fixed_otp:
        problems.append("USE_FIXED_OTP must be off")
    if "*" in config.allowed_origins:
        problems.append("ALLOWED_ORIGINS must list explicit origins")
    return problems


# Refuse to boot a production process with staging shortcuts left on
if settings.env == "production":
    _problems = _production_problems(settings)
    if _problems:
        print("Refusing to start in production:", file=sys.stderr)
        for _problem in _problems:
            print(f"  - {_problem}", file=sys.stderr)
        sys.exit(1)
