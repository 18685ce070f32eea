"""Recurring schedule arithmetic."""

import logging
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from backend.app.models.recurring_invoice import RecurringInvoice

logger = logging.getLogger(__name__)

FREQUENCY_STEPS = {
    "weekly": timedelta(weeks=1),
    "monthly": relativedelta(months=1),
    "quarterly": relativedelta(months=3),
    "yearly": relativedelta(years=1),
}


def next_occurrence(current: date, frequency: str) -> date:
    """Return the next billing date after ``current``.

    Month and year steps clamp to the last day of a shorter month
    (2024-01-31 monthly -> 2024-02-29). Unknown frequencies bill monthly.
    """
    step = FREQUENCY_STEPS.get(frequency)
    if step is None:
        logger.warning("Unknown recurring frequency %r, defaulting to monthly", frequency)
        step = FREQUENCY_STEPS["monthly"]
    return current + step


def advance_schedule(db: Session, template: RecurringInvoice) -> date:
    """Move ``next_date`` forward one cycle and complete the schedule past its end date."""
    new_next = next_occurrence(template.next_date, template.frequency)
    if template.end_date is not None and new_next > template.end_date:
        template.status = "completed"
    template.next_date = new_next
    db.commit()
    db.refresh(template)
    return new_next
