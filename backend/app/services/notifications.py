"""Email notifications for invoices, reminders, and recurring invoice runs.

Delivery goes through the Resend HTTP API. Sending never raises for delivery
problems: callers receive a ``NotificationResult`` and decide whether a failed
send matters to them (the recurring batch treats it as best effort).
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Protocol

import httpx

logger = logging.getLogger(__name__)

FOOTER_TEXT = "This is an automated email. Please do not reply directly to this message."


@dataclass
class NotificationResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class InvoiceEmailData:
    invoice_number: str
    client_name: str
    amount: Decimal
    due_date: date
    pdf_url: Optional[str] = None
    payment_link: Optional[str] = None
    is_reminder: bool = False
    custom_message: Optional[str] = None
    days_overdue: int = 0
    business_name: Optional[str] = None


class Notifier(Protocol):
    def send_invoice(self, to: str, data: InvoiceEmailData) -> NotificationResult: ...

    def send_reminder(self, to: str, data: InvoiceEmailData) -> NotificationResult: ...

    def send_recurring_invoice(self, to: str, data: InvoiceEmailData) -> NotificationResult: ...


def format_amount(amount: Decimal | float | int) -> str:
    return f"${Decimal(str(amount)):,.2f}"


def format_due_date(value: date) -> str:
    return f"{value:%B} {value.day}, {value.year}"


def _links_html(data: InvoiceEmailData) -> str:
    parts = []
    if data.pdf_url:
        parts.append(f'<p><a href="{html.escape(data.pdf_url)}">View Invoice</a></p>')
    if data.payment_link:
        parts.append(f'<p><a href="{html.escape(data.payment_link)}">Pay Now</a></p>')
    return "\n".join(parts)


def _links_text(data: InvoiceEmailData) -> list[str]:
    lines = []
    if data.pdf_url:
        lines.append(f"View Invoice: {data.pdf_url}")
    if data.payment_link:
        lines.append(f"Pay Now: {data.payment_link}")
    return lines


def _render(heading: str, intro: str, data: InvoiceEmailData, closing: list[str]) -> tuple[str, str]:
    sender = data.business_name or "Your Company"
    amount = format_amount(data.amount)
    due = format_due_date(data.due_date)
    message_html = f"<p>{html.escape(data.custom_message)}</p>" if data.custom_message else ""
    closing_html = "".join(f"<p>{html.escape(line)}</p>" for line in closing)

    body_html = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
      <h2>{html.escape(heading)}</h2>
      <p>Hello {html.escape(data.client_name)},</p>
      <p>{html.escape(intro)}</p>
      {message_html}
      <div style="background-color: #f9f9f9; border: 1px solid #ddd; padding: 20px; margin: 20px 0;">
        <p><strong>Invoice Number:</strong> {html.escape(data.invoice_number)}</p>
        <p><strong>Amount:</strong> {amount}</p>
        <p><strong>Due Date:</strong> {due}</p>
      </div>
      {_links_html(data)}
      {closing_html}
      <p>Thank you for your business!</p>
      <p>Best regards,<br>{html.escape(sender)}</p>
      <p style="font-size: 12px; color: #777;">{FOOTER_TEXT}</p>
    </div>
    """

    text_lines = [heading, "", f"Hello {data.client_name},", "", intro]
    if data.custom_message:
        text_lines += ["", data.custom_message]
    text_lines += [
        "",
        f"Invoice Number: {data.invoice_number}",
        f"Amount: {amount}",
        f"Due Date: {due}",
    ]
    links = _links_text(data)
    if links:
        text_lines += [""] + links
    text_lines += [""] + closing + ["", "Thank you for your business!", "", "Best regards,", sender, "", FOOTER_TEXT]
    return body_html, "\n".join(text_lines)


def render_invoice_email(data: InvoiceEmailData) -> tuple[str, str, str]:
    sender = data.business_name or "Your Company"
    subject = f"Invoice {data.invoice_number} from {sender}"
    body_html, body_text = _render(
        f"Invoice {data.invoice_number}",
        "We hope this email finds you well. Please find your invoice details below:",
        data,
        ["If you have any questions regarding this invoice, please don't hesitate to contact us."],
    )
    return subject, body_html, body_text


def render_reminder_email(data: InvoiceEmailData) -> tuple[str, str, str]:
    if data.days_overdue > 0:
        status = f"overdue by {data.days_overdue} day{'s' if data.days_overdue != 1 else ''}"
    else:
        status = "due soon"
    subject = f"Payment Reminder: Invoice {data.invoice_number}"
    body_html, body_text = _render(
        f"REMINDER: Invoice {data.invoice_number}",
        f"This is a friendly reminder that payment of {format_amount(data.amount)} for this invoice is {status}.",
        data,
        ["If you have already made this payment, please disregard this reminder."],
    )
    return subject, body_html, body_text


def render_recurring_email(data: InvoiceEmailData) -> tuple[str, str, str]:
    sender = data.business_name or "Your Company"
    subject = f"Recurring Invoice {data.invoice_number} from {sender}"
    body_html, body_text = _render(
        f"Recurring Invoice {data.invoice_number}",
        "Your recurring invoice has been generated with the details below:",
        data,
        ["This is an automated invoice generated based on your recurring billing schedule."],
    )
    return subject, body_html, body_text


class EmailNotifier:
    """Sends rendered invoice emails through the Resend API."""

    def __init__(
        self,
        api_key: str | None,
        sender: str,
        *,
        base_url: str = "https://api.resend.com",
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key
        self._sender = sender
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def send_email(self, to: str, subject: str, html_body: str, text_body: str) -> NotificationResult:
        if not self._api_key:
            logger.error("RESEND_API_KEY is not set. Email to %s will not be sent.", to)
            return NotificationResult(success=False, error="RESEND_API_KEY is not set")

        payload = {"from": self._sender, "to": [to], "subject": subject, "html": html_body, "text": text_body}
        try:
            response = self._client.post(
                "/emails",
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.exception("Email provider returned error %s", exc.response.status_code)
            return NotificationResult(success=False, error=f"Email provider returned {exc.response.status_code}")
        except httpx.RequestError as exc:
            logger.exception("Unable to reach email provider: %s", exc)
            return NotificationResult(success=False, error="Unable to reach email provider")

        message_id = response.json().get("id")
        logger.info("Sent email %r to %s (id=%s)", subject, to, message_id)
        return NotificationResult(success=True, message_id=message_id)

    def send_invoice(self, to: str, data: InvoiceEmailData) -> NotificationResult:
        renderer = render_reminder_email if data.is_reminder else render_invoice_email
        return self.send_email(to, *renderer(data))

    def send_reminder(self, to: str, data: InvoiceEmailData) -> NotificationResult:
        return self.send_email(to, *render_reminder_email(data))

    def send_recurring_invoice(self, to: str, data: InvoiceEmailData) -> NotificationResult:
        return self.send_email(to, *render_recurring_email(data))
