"""Recurring invoice routes: schedule CRUD and manual generation."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.settings import get_settings
from backend.app.crud.crud_client import client_crud
from backend.app.crud.crud_invoice import invoice_crud
from backend.app.crud.crud_recurring_invoice import recurring_invoice_crud
from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_user
from backend.app.dependencies.services import get_notifier
from backend.app.models.recurring_invoice import RecurringInvoice
from backend.app.models.user import User
from backend.app.schemas.invoice import InvoiceRead, NotificationResponse
from backend.app.schemas.recurring_invoice import (
    GenerateInvoiceRequest,
    GenerateInvoiceResponse,
    RecurringInvoiceCreate,
    RecurringInvoiceDetail,
    RecurringInvoiceRead,
    RecurringInvoiceUpdate,
    RecurringSendRequest,
)
from backend.app.services.notifications import InvoiceEmailData, Notifier
from backend.app.services.recurring import business_name_for, generate_invoice_from_template

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recurring-invoices", tags=["recurring-invoices"])


def _get_owned_recurring(db: Session, recurring_id: int, owner_id: int) -> RecurringInvoice:
    recurring = recurring_invoice_crud.get(db, recurring_id=recurring_id, owner_id=owner_id)
    if not recurring:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recurring invoice not found")
    return recurring


def _check_client(db: Session, client_id: int | None, owner_id: int) -> None:
    if client_id is not None and client_crud.get(db, client_id=client_id, owner_id=owner_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")


@router.get("", response_model=List[RecurringInvoiceRead])
def list_recurring_invoices(
    status: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return recurring_invoice_crud.get_multi(db, owner_id=current_user.id, status=status)


@router.post("", response_model=RecurringInvoiceDetail, status_code=status.HTTP_201_CREATED)
def create_recurring_invoice(
    payload: RecurringInvoiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _check_client(db, payload.client_id, current_user.id)
    recurring = recurring_invoice_crud.create(db, obj_in=payload, owner_id=current_user.id)
    logger.info("Recurring invoice %s created by user %s", recurring.id, current_user.id)
    return recurring


@router.get("/{recurring_id}", response_model=RecurringInvoiceDetail)
def get_recurring_invoice(
    recurring_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_owned_recurring(db, recurring_id, current_user.id)


@router.put("/{recurring_id}", response_model=RecurringInvoiceDetail)
def update_recurring_invoice(
    recurring_id: int,
    payload: RecurringInvoiceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    recurring = _get_owned_recurring(db, recurring_id, current_user.id)
    if "client_id" in payload.model_fields_set:
        _check_client(db, payload.client_id, current_user.id)
    start = payload.start_date or recurring.start_date
    end = payload.end_date if "end_date" in payload.model_fields_set else recurring.end_date
    if end is not None and end < start:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")
    return recurring_invoice_crud.update(db, db_obj=recurring, obj_in=payload)


@router.delete("/{recurring_id}")
def delete_recurring_invoice(
    recurring_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    recurring = _get_owned_recurring(db, recurring_id, current_user.id)
    recurring_invoice_crud.delete(db, db_obj=recurring)
    return {"success": True}


@router.get("/{recurring_id}/invoices", response_model=List[InvoiceRead])
def list_generated_invoices(
    recurring_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _get_owned_recurring(db, recurring_id, current_user.id)
    return invoice_crud.get_multi(db, owner_id=current_user.id, recurring_invoice_id=recurring_id)


@router.post(
    "/{recurring_id}/generate-invoice",
    response_model=GenerateInvoiceResponse,
    response_model_exclude_none=True,
)
def generate_invoice(
    recurring_id: int,
    payload: GenerateInvoiceRequest | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
):
    recurring = _get_owned_recurring(db, recurring_id, current_user.id)
    payload = payload or GenerateInvoiceRequest()
    invoice, email_sent = generate_invoice_from_template(
        db,
        recurring,
        notifier,
        app_url=get_settings().app_url,
        invoice_number=(payload.custom_invoice_number or "").strip() or None,
        send_email=payload.send_email,
    )
    return {"invoice_id": invoice.id, "invoice_number": invoice.invoice_number, "email_sent": email_sent}


@router.post("/{recurring_id}/send", response_model=NotificationResponse)
def send_recurring_preview(
    recurring_id: int,
    payload: RecurringSendRequest | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
):
    recurring = _get_owned_recurring(db, recurring_id, current_user.id)
    payload = payload or RecurringSendRequest()
    recipient = payload.test_mode.email if payload.test_mode else recurring.client_email
    next_date = recurring.next_date

    result = notifier.send_recurring_invoice(
        recipient,
        InvoiceEmailData(
            invoice_number=f"{recurring.invoice_number_prefix}{next_date:%m%Y}",
            client_name=recurring.client_name,
            amount=recurring.total,
            due_date=next_date,
            payment_link=f"{get_settings().app_url}/recurring-invoices/{recurring.id}",
            business_name=business_name_for(db, current_user.id),
        ),
    )
    if not result.success:
        raise HTTPException(status_code=500, detail="Failed to send recurring invoice email")
    message = "Test email sent successfully" if payload.test_mode else "Recurring invoice notification sent successfully"
    return {"success": True, "message_id": result.message_id, "sent_to": recipient, "message": message}
