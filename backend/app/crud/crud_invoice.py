"""CRUD operations for invoices and their line items."""

from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from backend.app.models.invoice import Invoice
from backend.app.models.line_item import LineItem
from backend.app.schemas.invoice import InvoiceCreate, InvoiceUpdate
from backend.app.services.billing import build_line_items, calculate_total, to_money
from backend.app.services.invoice_numbers import generate_invoice_number


class CRUDInvoice:
    def create(self, db: Session, *, obj_in: InvoiceCreate, owner_id: int) -> Invoice:
        data = obj_in.model_dump(exclude={"line_items", "total", "invoice_number"})
        total = obj_in.total if obj_in.total is not None else calculate_total(obj_in.line_items)
        obj = Invoice(
            owner_id=owner_id,
            invoice_number=obj_in.invoice_number or generate_invoice_number(today=obj_in.issue_date),
            total=to_money(total),
            **data,
        )
        obj.line_items = build_line_items(obj_in.line_items, LineItem)
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    def get(self, db: Session, *, invoice_id: int, owner_id: int) -> Optional[Invoice]:
        return db.query(Invoice).filter(Invoice.id == invoice_id, Invoice.owner_id == owner_id).first()

    def get_public(self, db: Session, *, public_id: str) -> Optional[Invoice]:
        return db.query(Invoice).filter(Invoice.public_id == public_id).first()

    def mark_overdue(self, db: Session, *, owner_id: int, today: date) -> int:
        """Flip the owner's sent invoices past their due date to overdue; returns the count."""
        count = (
            db.query(Invoice)
            .filter(Invoice.owner_id == owner_id, Invoice.status == "sent", Invoice.due_date < today)
            .update({Invoice.status: "overdue"}, synchronize_session=False)
        )
        if count:
            db.commit()
        return count

    def get_multi(
        self,
        db: Session,
        *,
        owner_id: int,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
        recurring_invoice_id: Optional[int] = None,
    ) -> List[Invoice]:
        query = db.query(Invoice).filter(Invoice.owner_id == owner_id)
        if status:
            query = query.filter(Invoice.status == status)
        if client_id is not None:
            query = query.filter(Invoice.client_id == client_id)
        if recurring_invoice_id is not None:
            query = query.filter(Invoice.recurring_invoice_id == recurring_invoice_id)
        return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()

    def update(self, db: Session, *, db_obj: Invoice, obj_in: InvoiceUpdate) -> Invoice:
        update_data = obj_in.model_dump(exclude_unset=True, exclude={"line_items", "total"})
        for field, value in update_data.items():
            if value is None and field not in ("notes", "client_id"):
                continue
            setattr(db_obj, field, value)

        if obj_in.line_items is not None:
            db_obj.line_items = build_line_items(obj_in.line_items, LineItem)

        if obj_in.total is not None:
            db_obj.total = to_money(obj_in.total)
        elif obj_in.line_items is not None:
            db_obj.total = calculate_total(obj_in.line_items)

        db.commit()
        db.refresh(db_obj)
        return db_obj

    def delete(self, db: Session, *, db_obj: Invoice) -> Invoice:
        db.delete(db_obj)
        db.commit()
        return db_obj


invoice_crud = CRUDInvoice()
