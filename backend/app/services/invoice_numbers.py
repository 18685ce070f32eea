"""Human-readable invoice numbers: ``{prefix}{YYYYMMDD}-{8 hex}``."""

import uuid
from datetime import date

from backend.app.core.time import utc_today

DEFAULT_PREFIX = "INV-"


def generate_invoice_number(prefix: str | None = None, today: date | None = None) -> str:
    issued = today or utc_today()
    suffix = uuid.uuid4().hex[:8].upper()
    return f"{prefix if prefix is not None else DEFAULT_PREFIX}{issued:%Y%m%d}-{suffix}"
