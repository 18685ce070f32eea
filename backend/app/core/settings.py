import os


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    def __init__(self):
        self.app_name = "Invoicer"
        self.api_version = "1.0.0"
        self.environment = os.getenv("ENVIRONMENT", "development")
        self.secret_key = os.getenv("SECRET_KEY", "CHANGE_ME")
        self.access_token_expire_minutes = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))
        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./invoicer.db")
        self.app_url = os.getenv("APP_URL", "http://localhost:3000").rstrip("/")
        self.cron_api_key = os.getenv("CRON_API_KEY") or None
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

        # Email delivery (Resend)
        self.resend_api_key = os.getenv("RESEND_API_KEY") or None
        self.resend_api_base = os.getenv("RESEND_API_BASE", "https://api.resend.com")
        self.email_from_name = os.getenv("EMAIL_FROM_NAME", "Invoice Generator")
        self.email_domain = os.getenv("EMAIL_DOMAIN", "example.com")
        self.email_from = os.getenv("EMAIL_FROM") or f"noreply@{self.email_domain}"

        # Hosted checkout (Stripe)
        self.stripe_secret_key = os.getenv("STRIPE_SECRET_KEY") or None
        self.stripe_api_base = os.getenv("STRIPE_API_BASE", "https://api.stripe.com/v1")
        self.payment_currency = os.getenv("PAYMENT_CURRENCY", "usd")

        self.http_timeout = float(os.getenv("HTTP_TIMEOUT", "10.0"))
        self.cors_origins = _split_csv(
            os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
        )

    @property
    def email_sender(self) -> str:
        return f"{self.email_from_name} <{self.email_from}>"


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def reset_settings() -> None:
    """Forget the cached Settings so the next call re-reads the environment."""
    global _settings_instance
    _settings_instance = None
