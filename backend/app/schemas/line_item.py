"""Line item schemas shared by invoices and recurring invoices."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LineItemIn(BaseModel):
    description: str = ""
    quantity: Decimal = Field(default=Decimal("1"), ge=0)
    rate: Decimal = Field(default=Decimal("0"), ge=0)
    # Accepted for compatibility with clients that send it; always recomputed.
    amount: Optional[Decimal] = None


class LineItemRead(BaseModel):
    id: int
    description: str
    quantity: Decimal
    rate: Decimal
    amount: Decimal

    model_config = ConfigDict(from_attributes=True)
