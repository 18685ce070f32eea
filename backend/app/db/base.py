from backend.app.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all in tests
from backend.app.models.user import User  # noqa: F401
from backend.app.models.business_profile import BusinessProfile  # noqa: F401
from backend.app.models.client import Client  # noqa: F401
from backend.app.models.invoice import Invoice  # noqa: F401
from backend.app.models.line_item import LineItem  # noqa: F401
from backend.app.models.recurring_invoice import RecurringInvoice  # noqa: F401
from backend.app.models.recurring_line_item import RecurringLineItem  # noqa: F401
