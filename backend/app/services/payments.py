"""Hosted checkout through the Stripe REST API."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional, Protocol

import httpx
from sqlalchemy.orm import Session

from backend.app.models.invoice import Invoice
from backend.app.services.billing import mark_invoice_paid
from backend.app.services.exceptions import DownstreamServiceError, ValidationError

logger = logging.getLogger(__name__)

SESSION_ID_PATTERN = re.compile(r"^cs_[A-Za-z0-9_]+$")


@dataclass
class CheckoutSession:
    id: str
    url: Optional[str] = None
    payment_status: Optional[str] = None
    client_reference_id: Optional[str] = None
    amount_total: Optional[int] = None
    metadata: Optional[Dict[str, str]] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "CheckoutSession":
        return cls(
            id=data["id"],
            url=data.get("url"),
            payment_status=data.get("payment_status"),
            client_reference_id=data.get("client_reference_id"),
            amount_total=data.get("amount_total"),
            metadata=data.get("metadata") or {},
        )


class PaymentProvider(Protocol):
    def create_session(self, invoice: Invoice, success_url: str, cancel_url: str) -> CheckoutSession: ...

    def retrieve_session(self, session_id: str) -> CheckoutSession: ...


def to_minor_units(amount: Decimal | float | int) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripeCheckout:
    """Creates and retrieves Stripe Checkout sessions for invoice payments."""

    def __init__(
        self,
        secret_key: str | None,
        *,
        base_url: str = "https://api.stripe.com/v1",
        currency: str = "usd",
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._secret_key = secret_key
        self._currency = currency
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, data: Dict[str, Any] | None = None) -> Dict[str, Any]:
        if not self._secret_key:
            raise DownstreamServiceError("Payment provider is not configured")
        try:
            response = self._client.request(
                method,
                path,
                data=data,
                headers={"Authorization": f"Bearer {self._secret_key}"},
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            logger.exception("Payment provider returned error %s", exc.response.status_code)
            raise DownstreamServiceError(
                "Payment provider returned an error response",
                status_code=exc.response.status_code,
                cause=exc,
            ) from exc
        except httpx.RequestError as exc:
            logger.exception("Unable to reach payment provider: %s", exc)
            raise DownstreamServiceError("Unable to reach payment provider", cause=exc) from exc

    def create_session(self, invoice: Invoice, success_url: str, cancel_url: str) -> CheckoutSession:
        form = {
            "mode": "payment",
            "payment_method_types[0]": "card",
            "line_items[0][quantity]": "1",
            "line_items[0][price_data][currency]": self._currency,
            "line_items[0][price_data][unit_amount]": str(to_minor_units(invoice.total)),
            "line_items[0][price_data][product_data][name]": f"Invoice #{invoice.invoice_number}",
            "line_items[0][price_data][product_data][description]": f"Payment for Invoice #{invoice.invoice_number}",
            "metadata[invoice_id]": str(invoice.id),
            "metadata[invoice_number]": invoice.invoice_number,
            "client_reference_id": str(invoice.id),
            "customer_email": invoice.client_email,
            "success_url": f"{success_url}?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": cancel_url,
        }
        session = CheckoutSession.from_api(self._request("POST", "/checkout/sessions", form))
        logger.info("Created checkout session %s for invoice %s", session.id, invoice.id)
        return session

    def retrieve_session(self, session_id: str) -> CheckoutSession:
        if not SESSION_ID_PATTERN.fullmatch(session_id or ""):
            raise ValidationError("Invalid session ID")
        return CheckoutSession.from_api(self._request("GET", f"/checkout/sessions/{session_id}"))


def confirm_payment(db: Session, invoice: Invoice, provider: PaymentProvider, session_id: str | None) -> Invoice:
    """Verify a completed checkout session against the invoice and mark it paid."""
    if not session_id:
        raise ValidationError("Session ID is required")
    session = provider.retrieve_session(session_id)
    reference = session.client_reference_id or (session.metadata or {}).get("invoice_id")
    if reference != str(invoice.id):
        raise ValidationError("Invoice ID mismatch")
    if session.payment_status != "paid":
        raise ValidationError("Payment not completed")
    if invoice.status != "paid":
        mark_invoice_paid(invoice, session_id=session.id)
        db.commit()
        db.refresh(invoice)
        logger.info("Invoice %s marked paid via session %s", invoice.id, session.id)
    return invoice
