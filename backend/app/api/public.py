"""Public invoice pages: viewable and payable by the client without signing in."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import Field
from sqlalchemy.orm import Session

from backend.app.core.settings import get_settings
from backend.app.crud.crud_invoice import invoice_crud
from backend.app.db.session import get_db
from backend.app.dependencies.services import get_payment_provider
from backend.app.models.business_profile import BusinessProfile
from backend.app.models.invoice import Invoice
from backend.app.schemas.business_profile import BusinessProfileRead
from backend.app.schemas.invoice import InvoiceDetail, InvoiceRead
from backend.app.schemas.payment import CheckoutSessionResponse, PaymentConfirmRequest
from backend.app.services.payments import PaymentProvider, confirm_payment

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/public/invoices", tags=["public"])


class PublicInvoice(InvoiceDetail):
    business: Optional[BusinessProfileRead] = Field(default=None)


def _get_invoice(db: Session, public_id: str) -> Invoice:
    invoice = invoice_crud.get_public(db, public_id=public_id)
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return invoice


@router.get("/{public_id}", response_model=PublicInvoice)
def get_public_invoice(public_id: str, db: Session = Depends(get_db)):
    invoice = _get_invoice(db, public_id)
    if invoice.status == "draft":
        logger.info("Serving draft invoice %s publicly", invoice.id)
    profile = db.query(BusinessProfile).filter(BusinessProfile.user_id == invoice.owner_id).first()
    public_invoice = PublicInvoice.model_validate(invoice)
    if profile is not None:
        public_invoice.business = BusinessProfileRead.model_validate(profile)
    return public_invoice


@router.post("/{public_id}/payment", response_model=CheckoutSessionResponse)
def create_public_payment_session(
    public_id: str,
    db: Session = Depends(get_db),
    provider: PaymentProvider = Depends(get_payment_provider),
):
    invoice = _get_invoice(db, public_id)
    if invoice.status == "paid":
        raise HTTPException(status_code=400, detail="Invoice is already paid")

    public_url = f"{get_settings().app_url}/public/invoices/{invoice.public_id}"
    session = provider.create_session(
        invoice,
        success_url=f"{public_url}/payment-success",
        cancel_url=public_url,
    )
    if not session.url:
        raise HTTPException(status_code=500, detail="Failed to create payment session")
    invoice.payment_session_id = session.id
    db.commit()
    return {"success": True, "session_id": session.id, "url": session.url}


@router.post("/{public_id}/verify-payment", response_model=InvoiceRead)
def verify_public_payment(
    public_id: str,
    payload: PaymentConfirmRequest,
    db: Session = Depends(get_db),
    provider: PaymentProvider = Depends(get_payment_provider),
):
    invoice = _get_invoice(db, public_id)
    return confirm_payment(db, invoice, provider, payload.session_id)
