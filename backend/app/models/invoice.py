"""Invoice model for billing."""

import uuid

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # Soft references: cleared, never cascaded, when the client or schedule goes away.
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True, index=True)
    recurring_invoice_id = Column(Integer, ForeignKey("recurring_invoices.id"), nullable=True, index=True)

    # Unguessable handle for the client-facing pages; the numeric id stays private.
    public_id = Column(String(36), unique=True, index=True, nullable=False, default=lambda: str(uuid.uuid4()))
    invoice_number = Column(String(100), nullable=False, index=True)
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=False)
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    status = Column(String(20), default="draft", nullable=False)
    notes = Column(Text, nullable=True)
    total = Column(Numeric(10, 2), default=0.00, nullable=False)

    payment_session_id = Column(String(255), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    owner = relationship("User", back_populates="invoices")
    client = relationship("Client")
    recurring_invoice = relationship("RecurringInvoice", back_populates="invoices")
    line_items = relationship(
        "LineItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="LineItem.id",
    )
