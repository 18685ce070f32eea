"""Invoice schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from backend.app.schemas.line_item import LineItemIn, LineItemRead

InvoiceStatus = Literal["draft", "sent", "paid", "overdue"]


class InvoiceCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    invoice_number: Optional[str] = None
    client_id: Optional[int] = None
    client_name: str = Field(min_length=1)
    client_email: EmailStr
    issue_date: date
    due_date: date
    status: InvoiceStatus = "draft"
    notes: Optional[str] = None
    total: Optional[Decimal] = None
    line_items: List[LineItemIn] = Field(default_factory=list, alias="lineItems")


class InvoiceUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    invoice_number: Optional[str] = None
    client_id: Optional[int] = None
    client_name: Optional[str] = Field(default=None, min_length=1)
    client_email: Optional[EmailStr] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    status: Optional[InvoiceStatus] = None
    notes: Optional[str] = None
    total: Optional[Decimal] = None
    line_items: Optional[List[LineItemIn]] = Field(default=None, alias="lineItems")


class InvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    public_id: str
    owner_id: int
    client_id: Optional[int] = None
    recurring_invoice_id: Optional[int] = None

    invoice_number: str
    client_name: str
    client_email: str
    issue_date: date
    due_date: date
    status: str
    notes: Optional[str] = None
    total: Decimal
    paid_at: Optional[datetime] = None

    created_at: datetime
    updated_at: datetime


class InvoiceDetail(InvoiceRead):
    line_items: List[LineItemRead] = Field(default_factory=list, serialization_alias="lineItems")


class RecipientOverride(BaseModel):
    email: EmailStr


class InvoiceSendRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    test_mode: Optional[RecipientOverride] = Field(default=None, alias="testMode")


class InvoiceRemindRequest(InvoiceSendRequest):
    message: Optional[str] = None


class NotificationResponse(BaseModel):
    success: bool
    message_id: Optional[str] = Field(default=None, serialization_alias="messageId")
    sent_to: str = Field(serialization_alias="sentTo")
    message: Optional[str] = None
