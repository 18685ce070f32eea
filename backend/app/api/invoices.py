"""Invoice routes for signed-in owners."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.settings import get_settings
from backend.app.core.time import utc_today
from backend.app.crud.crud_client import client_crud
from backend.app.crud.crud_invoice import invoice_crud
from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_user
from backend.app.dependencies.services import get_notifier, get_payment_provider
from backend.app.models.invoice import Invoice
from backend.app.models.user import User
from backend.app.schemas.invoice import (
    InvoiceCreate,
    InvoiceDetail,
    InvoiceRead,
    InvoiceRemindRequest,
    InvoiceSendRequest,
    InvoiceUpdate,
    NotificationResponse,
)
from backend.app.schemas.payment import CheckoutSessionResponse, PaymentConfirmRequest
from backend.app.services.billing import days_overdue, has_billable_line, refresh_overdue_status
from backend.app.services.notifications import InvoiceEmailData, Notifier
from backend.app.services.payments import PaymentProvider, confirm_payment
from backend.app.services.recurring import business_name_for

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices", tags=["invoices"])


def _get_owned_invoice(db: Session, invoice_id: int, owner_id: int) -> Invoice:
    invoice = invoice_crud.get(db, invoice_id=invoice_id, owner_id=owner_id)
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    if refresh_overdue_status(invoice, utc_today()):
        db.commit()
        db.refresh(invoice)
    return invoice


def _check_client(db: Session, client_id: int | None, owner_id: int) -> None:
    if client_id is not None and client_crud.get(db, client_id=client_id, owner_id=owner_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")


def _public_links(invoice: Invoice) -> tuple[str, str]:
    public_link = f"{get_settings().app_url}/public/invoices/{invoice.public_id}"
    return public_link, f"{public_link}#payment"


@router.get("", response_model=List[InvoiceRead])
def list_invoices(
    status: str | None = None,
    client_id: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoice_crud.mark_overdue(db, owner_id=current_user.id, today=utc_today())
    return invoice_crud.get_multi(db, owner_id=current_user.id, status=status, client_id=client_id)


@router.post("", response_model=InvoiceDetail, status_code=status.HTTP_201_CREATED)
def create_invoice(
    payload: InvoiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not has_billable_line(payload.line_items):
        raise HTTPException(status_code=400, detail="At least one line item with a description is required")
    _check_client(db, payload.client_id, current_user.id)
    invoice = invoice_crud.create(db, obj_in=payload, owner_id=current_user.id)
    logger.info("Invoice %s created by user %s", invoice.id, current_user.id)
    return invoice


@router.get("/{invoice_id}", response_model=InvoiceDetail)
def get_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_owned_invoice(db, invoice_id, current_user.id)


@router.put("/{invoice_id}", response_model=InvoiceDetail)
def update_invoice(
    invoice_id: int,
    payload: InvoiceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoice = _get_owned_invoice(db, invoice_id, current_user.id)
    if payload.line_items is not None and not has_billable_line(payload.line_items):
        raise HTTPException(status_code=400, detail="At least one line item with a description is required")
    if "client_id" in payload.model_fields_set:
        _check_client(db, payload.client_id, current_user.id)
    return invoice_crud.update(db, db_obj=invoice, obj_in=payload)


@router.delete("/{invoice_id}")
def delete_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    invoice = _get_owned_invoice(db, invoice_id, current_user.id)
    invoice_crud.delete(db, db_obj=invoice)
    logger.info("Invoice %s deleted by user %s", invoice_id, current_user.id)
    return {"success": True}


@router.post("/{invoice_id}/send", response_model=NotificationResponse)
def send_invoice(
    invoice_id: int,
    payload: InvoiceSendRequest | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
):
    invoice = _get_owned_invoice(db, invoice_id, current_user.id)
    payload = payload or InvoiceSendRequest()
    recipient = payload.test_mode.email if payload.test_mode else invoice.client_email
    public_link, payment_link = _public_links(invoice)

    result = notifier.send_invoice(
        recipient,
        InvoiceEmailData(
            invoice_number=invoice.invoice_number,
            client_name=invoice.client_name,
            amount=invoice.total,
            due_date=invoice.due_date,
            pdf_url=public_link,
            payment_link=payment_link,
            business_name=business_name_for(db, current_user.id),
        ),
    )
    if not result.success:
        raise HTTPException(status_code=500, detail="Failed to send email")

    if invoice.status == "draft" and not payload.test_mode:
        invoice.status = "sent"
        db.commit()
    return {"success": True, "message_id": result.message_id, "sent_to": recipient}


@router.post("/{invoice_id}/remind", response_model=NotificationResponse)
def send_reminder(
    invoice_id: int,
    payload: InvoiceRemindRequest | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
):
    invoice = _get_owned_invoice(db, invoice_id, current_user.id)
    payload = payload or InvoiceRemindRequest()
    recipient = payload.test_mode.email if payload.test_mode else invoice.client_email
    public_link, payment_link = _public_links(invoice)

    result = notifier.send_reminder(
        recipient,
        InvoiceEmailData(
            invoice_number=invoice.invoice_number,
            client_name=invoice.client_name,
            amount=invoice.total,
            due_date=invoice.due_date,
            pdf_url=public_link,
            payment_link=payment_link,
            is_reminder=True,
            custom_message=payload.message or None,
            days_overdue=days_overdue(invoice.due_date, utc_today()),
            business_name=business_name_for(db, current_user.id),
        ),
    )
    if not result.success:
        raise HTTPException(status_code=500, detail="Failed to send reminder email")
    return {"success": True, "message_id": result.message_id, "sent_to": recipient}


@router.post("/{invoice_id}/payment", response_model=CheckoutSessionResponse)
def create_payment_session(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    provider: PaymentProvider = Depends(get_payment_provider),
):
    invoice = _get_owned_invoice(db, invoice_id, current_user.id)
    if invoice.status == "paid":
        raise HTTPException(status_code=400, detail="Invoice is already paid")

    app_url = get_settings().app_url
    session = provider.create_session(
        invoice,
        success_url=f"{app_url}/invoices/{invoice.id}/payment/success",
        cancel_url=f"{app_url}/invoices/{invoice.id}",
    )
    if not session.url:
        raise HTTPException(status_code=500, detail="Failed to create payment session")
    invoice.payment_session_id = session.id
    db.commit()
    return {"success": True, "session_id": session.id, "url": session.url}


@router.post("/{invoice_id}/payment/success", response_model=InvoiceRead)
def confirm_invoice_payment(
    invoice_id: int,
    payload: PaymentConfirmRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    provider: PaymentProvider = Depends(get_payment_provider),
):
    invoice = _get_owned_invoice(db, invoice_id, current_user.id)
    return confirm_payment(db, invoice, provider, payload.session_id)


@router.get("/{invoice_id}/payment/success", response_model=InvoiceRead)
def verify_invoice_payment(
    invoice_id: int,
    session_id: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    provider: PaymentProvider = Depends(get_payment_provider),
):
    invoice = _get_owned_invoice(db, invoice_id, current_user.id)
    return confirm_payment(db, invoice, provider, session_id)
