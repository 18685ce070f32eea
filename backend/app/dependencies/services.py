"""Process-wide collaborator handles, built once and injected with Depends."""

from __future__ import annotations

from functools import lru_cache

from backend.app.core.settings import get_settings
from backend.app.services.notifications import EmailNotifier, Notifier
from backend.app.services.payments import PaymentProvider, StripeCheckout


@lru_cache(maxsize=1)
def get_email_notifier_cached() -> EmailNotifier:
    settings = get_settings()
    return EmailNotifier(
        settings.resend_api_key,
        settings.email_sender,
        base_url=settings.resend_api_base,
        timeout=settings.http_timeout,
    )


@lru_cache(maxsize=1)
def get_payment_provider_cached() -> StripeCheckout:
    settings = get_settings()
    return StripeCheckout(
        settings.stripe_secret_key,
        base_url=settings.stripe_api_base,
        currency=settings.payment_currency,
        timeout=settings.http_timeout,
    )


def get_notifier() -> Notifier:
    return get_email_notifier_cached()


def get_payment_provider() -> PaymentProvider:
    return get_payment_provider_cached()


def close_clients() -> None:
    if get_email_notifier_cached.cache_info().currsize:
        get_email_notifier_cached().close()
        get_email_notifier_cached.cache_clear()
    if get_payment_provider_cached.cache_info().currsize:
        get_payment_provider_cached().close()
        get_payment_provider_cached.cache_clear()
