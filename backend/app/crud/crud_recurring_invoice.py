"""CRUD operations for recurring invoices."""

from typing import List, Optional

from sqlalchemy.orm import Session

from backend.app.models.recurring_invoice import RecurringInvoice
from backend.app.models.recurring_line_item import RecurringLineItem
from backend.app.schemas.recurring_invoice import RecurringInvoiceCreate, RecurringInvoiceUpdate
from backend.app.services.billing import build_line_items, calculate_total


class CRUDRecurringInvoice:
    def create(self, db: Session, *, obj_in: RecurringInvoiceCreate, owner_id: int) -> RecurringInvoice:
        data = obj_in.model_dump(exclude={"line_items", "next_date"})
        obj = RecurringInvoice(
            owner_id=owner_id,
            next_date=obj_in.next_date or obj_in.start_date,
            total=calculate_total(obj_in.line_items),
            **data,
        )
        obj.line_items = build_line_items(obj_in.line_items, RecurringLineItem)
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    def get(self, db: Session, *, recurring_id: int, owner_id: int) -> Optional[RecurringInvoice]:
        return (
            db.query(RecurringInvoice)
            .filter(RecurringInvoice.id == recurring_id, RecurringInvoice.owner_id == owner_id)
            .first()
        )

    def get_multi(self, db: Session, *, owner_id: int, status: Optional[str] = None) -> List[RecurringInvoice]:
        query = db.query(RecurringInvoice).filter(RecurringInvoice.owner_id == owner_id)
        if status:
            query = query.filter(RecurringInvoice.status == status)
        return query.order_by(RecurringInvoice.next_date.asc(), RecurringInvoice.id.asc()).all()

    def update(self, db: Session, *, db_obj: RecurringInvoice, obj_in: RecurringInvoiceUpdate) -> RecurringInvoice:
        update_data = obj_in.model_dump(exclude_unset=True, exclude={"line_items"})
        for field, value in update_data.items():
            if value is None and field not in ("notes", "client_id", "end_date"):
                continue
            setattr(db_obj, field, value)

        if obj_in.line_items is not None:
            db_obj.line_items = build_line_items(obj_in.line_items, RecurringLineItem)
            db_obj.total = calculate_total(obj_in.line_items)

        db.commit()
        db.refresh(db_obj)
        return db_obj

    def delete(self, db: Session, *, db_obj: RecurringInvoice) -> RecurringInvoice:
        # Spawned invoices survive; the relationship nulls their back-reference.
        db.delete(db_obj)
        db.commit()
        return db_obj


recurring_invoice_crud = CRUDRecurringInvoice()
