"""Recurring invoice schemas and the batch report returned by the cron run."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from backend.app.schemas.invoice import RecipientOverride
from backend.app.schemas.line_item import LineItemIn, LineItemRead

Frequency = Literal["weekly", "monthly", "quarterly", "yearly"]
RecurringStatus = Literal["active", "paused", "completed"]


class RecurringInvoiceCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_id: Optional[int] = None
    client_name: str = Field(min_length=1)
    client_email: EmailStr
    invoice_number_prefix: str = "INV-"
    frequency: Frequency = "monthly"
    start_date: date
    end_date: Optional[date] = None
    next_date: Optional[date] = None
    status: RecurringStatus = "active"
    notes: Optional[str] = None
    line_items: List[LineItemIn] = Field(default_factory=list, alias="lineItems")

    @model_validator(mode="after")
    def _check_dates(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class RecurringInvoiceUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_id: Optional[int] = None
    client_name: Optional[str] = Field(default=None, min_length=1)
    client_email: Optional[EmailStr] = None
    invoice_number_prefix: Optional[str] = None
    frequency: Optional[Frequency] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    next_date: Optional[date] = None
    status: Optional[RecurringStatus] = None
    notes: Optional[str] = None
    line_items: Optional[List[LineItemIn]] = Field(default=None, alias="lineItems")


class RecurringInvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    client_id: Optional[int] = None
    client_name: str
    client_email: str
    invoice_number_prefix: str
    frequency: str
    start_date: date
    end_date: Optional[date] = None
    next_date: date
    status: str
    notes: Optional[str] = None
    total: Decimal
    created_at: datetime
    updated_at: datetime


class RecurringInvoiceDetail(RecurringInvoiceRead):
    line_items: List[LineItemRead] = Field(default_factory=list, serialization_alias="lineItems")


class GenerateInvoiceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    send_email: bool = Field(default=False, alias="sendEmail")
    custom_invoice_number: Optional[str] = Field(default=None, alias="customInvoiceNumber")


class GenerateInvoiceResponse(BaseModel):
    success: bool = True
    message: str = "Invoice generated successfully"
    invoice_id: int = Field(serialization_alias="invoiceId")
    invoice_number: str = Field(serialization_alias="invoiceNumber")
    email_sent: Optional[bool] = Field(default=None, serialization_alias="emailSent")


class RecurringSendRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    test_mode: Optional[RecipientOverride] = Field(default=None, alias="testMode")


class BatchResult(BaseModel):
    id: int
    status: Literal["success", "error"]
    error: Optional[str] = None
    invoice_id: Optional[int] = Field(default=None, serialization_alias="invoiceId")
    next_date: Optional[date] = Field(default=None, serialization_alias="nextDate")


class BatchReport(BaseModel):
    processed: int = 0
    successful: int = 0
    failed: int = 0
    results: List[BatchResult] = Field(default_factory=list)

    def record(self, result: BatchResult) -> None:
        self.results.append(result)
        self.processed += 1
        if result.status == "success":
            self.successful += 1
        else:
            self.failed += 1
