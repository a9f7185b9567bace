"""
Pydantic models for user data.

Defines schemas for creating, updating and reading renters.  Email is
the only field with a uniqueness rule; that rule is enforced by the
service layer, the schemas only check the shape.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, validator


class UserBase(BaseModel):
    name: str = Field(..., min_length=1, example="Ada Lovelace")
    email: str = Field(..., example="ada@example.com")
    phone_number: Optional[str] = Field(None, example="+44 20 7946 0000")

    @validator("email")
    def email_must_look_valid(cls, value: str) -> str:
        value = value.strip()
        if "@" not in value or value.startswith("@") or value.endswith("@"):
            raise ValueError("email must be a valid address")
        return value.lower()


class UserCreate(UserBase):
    """Schema for registering a user."""
    pass


class UserUpdate(UserBase):
    """Schema for replacing a user's profile.

    Updates are full replacements: name and email are required, the
    phone number is cleared when omitted.
    """
    pass


class UserRead(UserBase):
    """Schema for reading a user from the API."""

    id: int
    created_at: datetime

    model_config = {
        "from_attributes": True,
    }
