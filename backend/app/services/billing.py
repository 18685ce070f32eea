"""Billing service utilities: line amounts, totals, and invoice status."""

from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Type

from backend.app.models.invoice import Invoice

CENT = Decimal("0.01")


def to_money(value: Decimal | float | int | str | None) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def line_amount(quantity: Decimal | float | int | None, rate: Decimal | float | int | None) -> Decimal:
    """Compute quantity x rate with Decimal math, rounded to cents."""
    if quantity is None or rate is None:
        return Decimal("0.00")
    return to_money(Decimal(str(quantity)) * Decimal(str(rate)))


def calculate_total(items: Iterable) -> Decimal:
    """Sum the recomputed amounts of items exposing ``quantity`` and ``rate``."""
    return sum((line_amount(item.quantity, item.rate) for item in items), Decimal("0.00"))


def has_billable_line(items: Iterable) -> bool:
    return any((item.description or "").strip() for item in items)


def build_line_items(items: Iterable, model: Type) -> list:
    """Create ORM line item rows from request items, recomputing every amount."""
    rows = []
    for item in items:
        rows.append(
            model(
                description=(item.description or "").strip(),
                quantity=to_money(item.quantity),
                rate=to_money(item.rate),
                amount=line_amount(item.quantity, item.rate),
            )
        )
    return rows


def is_overdue(invoice: Invoice, today: date) -> bool:
    return invoice.status == "sent" and invoice.due_date is not None and invoice.due_date < today


def refresh_overdue_status(invoice: Invoice, today: date) -> bool:
    """Flip a sent invoice past its due date to overdue; return True if it changed."""
    if is_overdue(invoice, today):
        invoice.status = "overdue"
        return True
    return False


def days_overdue(due_date: date | None, today: date) -> int:
    if due_date is None:
        return 0
    return max(0, (today - due_date).days)


def mark_invoice_paid(invoice: Invoice, session_id: str | None = None, now: datetime | None = None) -> None:
    invoice.status = "paid"
    invoice.paid_at = now or datetime.now(timezone.utc)
    if session_id:
        invoice.payment_session_id = session_id
