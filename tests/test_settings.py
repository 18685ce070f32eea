from backend.app.core.settings import Settings, get_settings, reset_settings


def test_settings_defaults():
    settings = get_settings()
    assert settings.app_name == "Invoicer"
    assert isinstance(settings.secret_key, str) and settings.secret_key
    assert isinstance(settings.database_url, str) and settings.database_url
    assert settings.access_token_expire_minutes > 0
    assert not hasattr(settings, "SECRET_KEY")
    assert not hasattr(settings, "ACCESS_TOKEN_EXPIRE_MINUTES")


def test_get_settings_is_singleton():
    assert get_settings() is get_settings()


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("APP_URL", "https://invoices.example.com/")
    monkeypatch.setenv("CRON_API_KEY", "cron-secret")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example.com, https://b.example.com,")
    monkeypatch.setenv("EMAIL_FROM_NAME", "Acme Billing")
    monkeypatch.setenv("EMAIL_DOMAIN", "acme.test")
    monkeypatch.delenv("EMAIL_FROM", raising=False)

    settings = Settings()

    assert settings.app_url == "https://invoices.example.com"
    assert settings.cron_api_key == "cron-secret"
    assert settings.cors_origins == ["https://a.example.com", "https://b.example.com"]
    assert settings.email_sender == "Acme Billing <noreply@acme.test>"


def test_reset_settings_rebuilds_instance(monkeypatch):
    original = get_settings()
    try:
        reset_settings()
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        fresh = get_settings()
        assert fresh is not original
        assert fresh.log_level == "DEBUG"
    finally:
        reset_settings()
