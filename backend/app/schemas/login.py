"""Login request schema for user authentication."""

from pydantic import BaseModel, EmailStr, Field


class LoginRequest(BaseModel):
    """Payload for login attempts."""

    email: EmailStr
    password: str = Field(min_length=1)
