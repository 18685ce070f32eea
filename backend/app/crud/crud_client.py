"""CRUD operations for clients."""

from typing import List, Optional

from sqlalchemy.orm import Session

from backend.app.models.client import Client
from backend.app.models.invoice import Invoice
from backend.app.models.recurring_invoice import RecurringInvoice
from backend.app.schemas.client import ClientCreate, ClientUpdate


class CRUDClient:
    def create(self, db: Session, *, obj_in: ClientCreate, owner_id: int) -> Client:
        obj = Client(owner_id=owner_id, **obj_in.model_dump())
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    def get(self, db: Session, *, client_id: int, owner_id: int) -> Optional[Client]:
        return db.query(Client).filter(Client.id == client_id, Client.owner_id == owner_id).first()

    def get_multi(self, db: Session, *, owner_id: int) -> List[Client]:
        return (
            db.query(Client)
            .filter(Client.owner_id == owner_id)
            .order_by(Client.name.asc(), Client.id.asc())
            .all()
        )

    def update(self, db: Session, *, db_obj: Client, obj_in: ClientUpdate) -> Client:
        update_data = obj_in.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in update_data.items():
            setattr(db_obj, field, value)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def delete(self, db: Session, *, db_obj: Client) -> Client:
        # Invoices keep their denormalized client name/email; only the link is dropped.
        db.query(Invoice).filter(Invoice.client_id == db_obj.id).update(
            {Invoice.client_id: None}, synchronize_session=False
        )
        db.query(RecurringInvoice).filter(RecurringInvoice.client_id == db_obj.id).update(
            {RecurringInvoice.client_id: None}, synchronize_session=False
        )
        db.delete(db_obj)
        db.commit()
        return db_obj


client_crud = CRUDClient()
