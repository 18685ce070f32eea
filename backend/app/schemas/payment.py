"""Payment schemas for hosted checkout sessions."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CheckoutSessionResponse(BaseModel):
    success: bool = True
    session_id: str = Field(serialization_alias="sessionId")
    url: str


class PaymentConfirmRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: Optional[str] = Field(default=None, alias="sessionId")
