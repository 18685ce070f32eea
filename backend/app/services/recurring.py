"""Recurring invoice materialization and the daily batch run."""

import logging
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from backend.app.core.time import utc_today
from backend.app.models.business_profile import BusinessProfile
from backend.app.models.invoice import Invoice
from backend.app.models.line_item import LineItem
from backend.app.models.recurring_invoice import RecurringInvoice
from backend.app.schemas.recurring_invoice import BatchReport, BatchResult
from backend.app.services.billing import to_money
from backend.app.services.invoice_numbers import generate_invoice_number
from backend.app.services.notifications import InvoiceEmailData, NotificationResult, Notifier
from backend.app.services.schedule import advance_schedule

logger = logging.getLogger(__name__)

PAYMENT_TERMS_DAYS = 30
GENERATED_NOTES_PREFIX = "Generated from recurring invoice. "


def get_due_recurring_invoices(db: Session, today: date) -> List[RecurringInvoice]:
    return (
        db.query(RecurringInvoice)
        .filter(RecurringInvoice.status == "active", RecurringInvoice.next_date <= today)
        .order_by(RecurringInvoice.next_date.asc(), RecurringInvoice.id.asc())
        .all()
    )


def materialize_invoice(
    db: Session,
    template: RecurringInvoice,
    *,
    invoice_number: Optional[str] = None,
    today: Optional[date] = None,
) -> Invoice:
    """Create a draft invoice, with copies of the template's line items."""
    issued = today or utc_today()
    invoice = Invoice(
        owner_id=template.owner_id,
        client_id=template.client_id,
        recurring_invoice_id=template.id,
        invoice_number=invoice_number or generate_invoice_number(template.invoice_number_prefix, issued),
        client_name=template.client_name,
        client_email=template.client_email,
        issue_date=issued,
        due_date=issued + timedelta(days=PAYMENT_TERMS_DAYS),
        status="draft",
        notes=f"{GENERATED_NOTES_PREFIX}{template.notes or ''}",
        total=to_money(template.total),
    )
    invoice.line_items = [
        LineItem(description=item.description, quantity=item.quantity, rate=item.rate, amount=item.amount)
        for item in template.line_items
    ]
    db.add(invoice)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(invoice)
    logger.info(
        "Materialized invoice %s (%s) from recurring invoice %s",
        invoice.id,
        invoice.invoice_number,
        template.id,
    )
    return invoice


def business_name_for(db: Session, owner_id: int) -> Optional[str]:
    profile = db.query(BusinessProfile).filter(BusinessProfile.user_id == owner_id).first()
    return profile.business_name if profile else None


def invoice_links(app_url: str, invoice: Invoice) -> tuple[str, str]:
    """Return (view/pdf url, payment url) for an invoice."""
    return (
        f"{app_url}/invoices/{invoice.id}/pdf",
        f"{app_url}/public/invoices/{invoice.public_id}#payment",
    )


def build_invoice_email_data(db: Session, invoice: Invoice, app_url: str) -> InvoiceEmailData:
    pdf_url, payment_link = invoice_links(app_url, invoice)
    return InvoiceEmailData(
        invoice_number=invoice.invoice_number,
        client_name=invoice.client_name,
        amount=invoice.total,
        due_date=invoice.due_date,
        pdf_url=pdf_url,
        payment_link=payment_link,
        business_name=business_name_for(db, invoice.owner_id),
    )


def _notify(db: Session, notifier: Notifier, invoice: Invoice, app_url: str) -> NotificationResult:
    try:
        data = build_invoice_email_data(db, invoice, app_url)
        result = notifier.send_recurring_invoice(invoice.client_email, data)
    except Exception as exc:
        logger.exception("Notification for invoice %s raised", invoice.id)
        return NotificationResult(success=False, error=str(exc))
    if not result.success:
        logger.warning("Notification for invoice %s failed: %s", invoice.id, result.error)
    return result


def generate_invoice_from_template(
    db: Session,
    template: RecurringInvoice,
    notifier: Notifier,
    *,
    app_url: str,
    invoice_number: Optional[str] = None,
    send_email: bool = False,
    today: Optional[date] = None,
) -> tuple[Invoice, Optional[bool]]:
    """Manual one-off generation. The schedule is left untouched."""
    invoice = materialize_invoice(db, template, invoice_number=invoice_number, today=today)
    email_sent = None
    if send_email:
        data = build_invoice_email_data(db, invoice, app_url)
        email_sent = notifier.send_invoice(invoice.client_email, data).success
    return invoice, email_sent


def run_due_recurring_invoices(
    db: Session,
    notifier: Notifier,
    *,
    app_url: str,
    today: Optional[date] = None,
) -> BatchReport:
    """Materialize, advance, and notify for every template due on ``today``.

    A failure while materializing or advancing one template is recorded and the
    run moves on. Notification is best effort and never changes the verdict.
    """
    run_date = today or utc_today()
    report = BatchReport()
    due = get_due_recurring_invoices(db, run_date)
    logger.info("Recurring run for %s: %d template(s) due", run_date.isoformat(), len(due))

    for template in due:
        template_id = template.id
        try:
            invoice = materialize_invoice(db, template, today=run_date)
        except Exception as exc:
            db.rollback()
            logger.exception("Failed to create invoice for recurring invoice %s", template_id)
            report.record(BatchResult(id=template_id, status="error", error=f"Failed to create invoice: {exc}"))
            continue

        try:
            next_date = advance_schedule(db, template)
        except Exception as exc:
            db.rollback()
            logger.exception("Failed to advance recurring invoice %s", template_id)
            report.record(
                BatchResult(
                    id=template_id,
                    status="error",
                    error=f"Failed to advance schedule: {exc}",
                    invoice_id=invoice.id,
                )
            )
            continue

        _notify(db, notifier, invoice, app_url)
        report.record(BatchResult(id=template_id, status="success", invoice_id=invoice.id, next_date=next_date))

    logger.info(
        "Recurring run finished: processed=%d successful=%d failed=%d",
        report.processed,
        report.successful,
        report.failed,
    )
    return report
