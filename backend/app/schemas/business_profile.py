"""Business profile schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BusinessProfileBase(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    logo_url: Optional[str] = None
    website: Optional[str] = None


class BusinessProfileUpsert(BusinessProfileBase):
    business_name: str = Field(min_length=1)


class BusinessProfileRead(BusinessProfileBase):
    id: int
    user_id: int
    business_name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
