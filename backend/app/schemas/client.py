"""Client schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ClientBase(BaseModel):
    business_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    notes: Optional[str] = None


class ClientCreate(ClientBase):
    name: str = Field(min_length=1)
    email: EmailStr


class ClientUpdate(ClientBase):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None


class ClientRead(ClientBase):
    id: int
    owner_id: int
    name: str
    email: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
