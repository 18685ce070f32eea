"""Recurring invoice model: a billing schedule that spawns concrete invoices."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base


class RecurringInvoice(Base):
    __tablename__ = "recurring_invoices"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True, index=True)
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=False)
    invoice_number_prefix = Column(String(50), nullable=False, default="INV-")

    frequency = Column(String(20), nullable=False, default="monthly")
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    next_date = Column(Date, nullable=False, index=True)
    status = Column(String(20), nullable=False, default="active", index=True)

    notes = Column(Text, nullable=True)
    total = Column(Numeric(10, 2), default=0.00, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    owner = relationship("User", back_populates="recurring_invoices")
    client = relationship("Client")
    line_items = relationship(
        "RecurringLineItem",
        back_populates="recurring_invoice",
        cascade="all, delete-orphan",
        order_by="RecurringLineItem.id",
    )
    invoices = relationship("Invoice", back_populates="recurring_invoice")
