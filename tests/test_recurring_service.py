from datetime import date
from decimal import Decimal

import pytest

from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.models.business_profile import BusinessProfile
from backend.app.models.invoice import Invoice
from backend.app.models.recurring_invoice import RecurringInvoice
from backend.app.models.recurring_line_item import RecurringLineItem
from backend.app.models.user import User
from backend.app.services import recurring
from backend.app.services.notifications import NotificationResult
from backend.app.services.recurring import (
    GENERATED_NOTES_PREFIX,
    generate_invoice_from_template,
    get_due_recurring_invoices,
    materialize_invoice,
    run_due_recurring_invoices,
)

APP_URL = "https://invoices.example.com"
RUN_DATE = date(2024, 6, 1)


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


class FakeNotifier:
    def __init__(self, success: bool = True, raises: bool = False):
        self.success = success
        self.raises = raises
        self.sent = []

    def _send(self, kind, to, data):
        if self.raises:
            raise RuntimeError("smtp exploded")
        self.sent.append((kind, to, data))
        return NotificationResult(success=self.success, message_id="msg_1" if self.success else None)

    def send_invoice(self, to, data):
        return self._send("invoice", to, data)

    def send_reminder(self, to, data):
        return self._send("reminder", to, data)

    def send_recurring_invoice(self, to, data):
        return self._send("recurring", to, data)


def _owner(db, email="owner@example.com") -> User:
    user = User(email=email, hashed_password="x", is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _template(db, owner_id, **fields) -> RecurringInvoice:
    defaults = {
        "owner_id": owner_id,
        "client_name": "Jane Client",
        "client_email": "jane@client.example.com",
        "invoice_number_prefix": "ACME-",
        "frequency": "monthly",
        "start_date": date(2024, 1, 1),
        "next_date": RUN_DATE,
        "status": "active",
        "notes": "Monthly retainer",
        "total": Decimal("25.00"),
    }
    defaults.update(fields)
    template = RecurringInvoice(**defaults)
    template.line_items = [
        RecurringLineItem(description="Design", quantity=Decimal("2"), rate=Decimal("10"), amount=Decimal("20.00")),
        RecurringLineItem(description="Hosting", quantity=Decimal("1"), rate=Decimal("5"), amount=Decimal("5.00")),
    ]
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


def test_materialize_invoice_copies_template():
    with SessionLocal() as db:
        owner = _owner(db)
        template = _template(db, owner.id)

        invoice = materialize_invoice(db, template, today=RUN_DATE)

        assert invoice.status == "draft"
        assert invoice.owner_id == owner.id
        assert invoice.recurring_invoice_id == template.id
        public_id = invoice.public_id
        assert invoice.issue_date == RUN_DATE
        assert invoice.due_date == date(2024, 7, 1)
        assert invoice.total == Decimal("25.00")
        assert invoice.invoice_number.startswith("ACME-20240601-")
        assert invoice.notes == f"{GENERATED_NOTES_PREFIX}Monthly retainer"
        assert [(li.description, li.amount) for li in invoice.line_items] == [
            ("Design", Decimal("20.00")),
            ("Hosting", Decimal("5.00")),
        ]
        assert template.next_date == RUN_DATE


def test_materialize_invoice_uses_custom_number():
    with SessionLocal() as db:
        owner = _owner(db)
        template = _template(db, owner.id)
        invoice = materialize_invoice(db, template, invoice_number="CUSTOM-1", today=RUN_DATE)
        assert invoice.invoice_number == "CUSTOM-1"


def test_due_selection_skips_paused_completed_and_future():
    with SessionLocal() as db:
        owner = _owner(db)
        due = _template(db, owner.id, next_date=date(2024, 5, 1))
        _template(db, owner.id, status="paused")
        _template(db, owner.id, status="completed")
        _template(db, owner.id, next_date=date(2024, 6, 2))
        today_due = _template(db, owner.id)

        assert [t.id for t in get_due_recurring_invoices(db, RUN_DATE)] == [due.id, today_due.id]


def test_batch_run_materializes_advances_and_notifies():
    notifier = FakeNotifier()
    with SessionLocal() as db:
        owner = _owner(db)
        db.add(BusinessProfile(user_id=owner.id, business_name="Acme Studio"))
        db.commit()
        template = _template(db, owner.id)

        report = run_due_recurring_invoices(db, notifier, app_url=APP_URL, today=RUN_DATE)

        assert (report.processed, report.successful, report.failed) == (1, 1, 0)
        result = report.results[0]
        assert result.status == "success"
        assert result.next_date == date(2024, 7, 1)

        db.refresh(template)
        assert template.next_date == date(2024, 7, 1)
        assert template.status == "active"

        invoice = db.get(Invoice, result.invoice_id)
        assert invoice.recurring_invoice_id == template.id
        public_id = invoice.public_id

    kind, to, email = notifier.sent[0]
    assert (kind, to) == ("recurring", "jane@client.example.com")
    assert email.business_name == "Acme Studio"
    assert email.payment_link == f"{APP_URL}/public/invoices/{public_id}#payment"
    assert email.pdf_url == f"{APP_URL}/invoices/{result.invoice_id}/pdf"


def test_batch_run_completes_schedule_past_end_date():
    with SessionLocal() as db:
        owner = _owner(db)
        template = _template(db, owner.id, end_date=date(2024, 6, 15))

        report = run_due_recurring_invoices(db, FakeNotifier(), app_url=APP_URL, today=RUN_DATE)

        assert report.successful == 1
        db.refresh(template)
        assert template.status == "completed"
        assert template.next_date == date(2024, 7, 1)
        assert get_due_recurring_invoices(db, date(2024, 7, 1)) == []


def test_batch_run_isolates_failing_template(monkeypatch):
    with SessionLocal() as db:
        owner = _owner(db)
        failing = _template(db, owner.id)
        healthy = _template(db, owner.id)
        failing_id, healthy_id = failing.id, healthy.id
        original = recurring.materialize_invoice

        def flaky_materialize(db, template, **kwargs):
            if template.id == failing_id:
                raise RuntimeError("disk full")
            return original(db, template, **kwargs)

        monkeypatch.setattr(recurring, "materialize_invoice", flaky_materialize)

        report = run_due_recurring_invoices(db, FakeNotifier(), app_url=APP_URL, today=RUN_DATE)

        assert (report.processed, report.successful, report.failed) == (2, 1, 1)
        by_id = {result.id: result for result in report.results}
        assert by_id[failing_id].status == "error"
        assert by_id[failing_id].error == "Failed to create invoice: disk full"
        assert by_id[healthy_id].status == "success"

        assert db.get(RecurringInvoice, failing_id).next_date == RUN_DATE
        assert db.get(RecurringInvoice, healthy_id).next_date == date(2024, 7, 1)
        assert db.query(Invoice).filter(Invoice.recurring_invoice_id == failing_id).count() == 0
        assert db.query(Invoice).filter(Invoice.recurring_invoice_id == healthy_id).count() == 1


def test_batch_run_reports_advance_failure(monkeypatch):
    with SessionLocal() as db:
        owner = _owner(db)
        template = _template(db, owner.id)

        def broken_advance(db, template):
            raise RuntimeError("lock timeout")

        monkeypatch.setattr(recurring, "advance_schedule", broken_advance)

        report = run_due_recurring_invoices(db, FakeNotifier(), app_url=APP_URL, today=RUN_DATE)

        result = report.results[0]
        assert result.status == "error"
        assert result.error == "Failed to advance schedule: lock timeout"
        assert result.invoice_id is not None
        assert db.get(RecurringInvoice, template.id).next_date == RUN_DATE


@pytest.mark.parametrize("notifier", [FakeNotifier(success=False), FakeNotifier(raises=True)])
def test_notification_failure_does_not_fail_the_template(notifier):
    with SessionLocal() as db:
        owner = _owner(db)
        template = _template(db, owner.id)

        report = run_due_recurring_invoices(db, notifier, app_url=APP_URL, today=RUN_DATE)

        assert report.successful == 1
        assert report.failed == 0
        assert db.get(RecurringInvoice, template.id).next_date == date(2024, 7, 1)


def test_batch_run_with_nothing_due():
    with SessionLocal() as db:
        owner = _owner(db)
        _template(db, owner.id, next_date=date(2030, 1, 1))
        report = run_due_recurring_invoices(db, FakeNotifier(), app_url=APP_URL, today=RUN_DATE)
        assert report.processed == 0
        assert report.results == []


def test_manual_generation_leaves_schedule_untouched():
    notifier = FakeNotifier()
    with SessionLocal() as db:
        owner = _owner(db)
        template = _template(db, owner.id)

        first, sent = generate_invoice_from_template(
            db, template, notifier, app_url=APP_URL, invoice_number="DUP-1", today=RUN_DATE
        )
        second, _ = generate_invoice_from_template(
            db, template, notifier, app_url=APP_URL, invoice_number="DUP-1", send_email=True, today=RUN_DATE
        )

        assert sent is None
        assert first.id != second.id
        assert first.invoice_number == second.invoice_number == "DUP-1"
        db.refresh(template)
        assert template.next_date == RUN_DATE
        assert template.status == "active"

    assert [kind for kind, _, _ in notifier.sent] == ["invoice"]
