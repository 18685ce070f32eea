"""Scheduled jobs, triggered by an external scheduler with the cron API key."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from backend.app.core.settings import get_settings
from backend.app.db.session import get_db
from backend.app.dependencies.auth import require_cron_key
from backend.app.dependencies.services import get_notifier
from backend.app.services.notifications import Notifier
from backend.app.services.recurring import run_due_recurring_invoices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["cron"], dependencies=[Depends(require_cron_key)])


@router.get("/generate-recurring-invoices")
def generate_recurring_invoices(db: Session = Depends(get_db), notifier: Notifier = Depends(get_notifier)):
    try:
        report = run_due_recurring_invoices(db, notifier, app_url=get_settings().app_url)
    except Exception:
        logger.exception("Recurring invoice run failed")
        raise HTTPException(status_code=500, detail="Failed to process recurring invoices")

    if report.processed == 0:
        return {"message": "No recurring invoices due today"}
    return report.model_dump(by_alias=True, exclude_none=True, mode="json")
