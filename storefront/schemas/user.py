# storefront/schemas/user.py
import uuid
from datetime import datetime

from pydantic import EmailStr, ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from storefront.core.security import MAX_PASSWORD_BYTES


class UserBase(SQLModel):
    """
    Shared fields for user schemas.

    Validation rules:
      - email must be a valid EmailStr
      - name cannot be empty or whitespace
    """

    email: EmailStr
    name: str = Field(max_length=50)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class UserCreate(UserBase):
    """
    Registration payload.

    The password is hashed before storage and never echoed back.
    """

    model_config = ConfigDict(extra="forbid")

    password: str = Field(min_length=8)

    @field_validator("password")
    @classmethod
    def password_fits_hasher(cls, v: str) -> str:
        if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password cannot exceed {MAX_PASSWORD_BYTES} bytes")
        return v


class UserRead(UserBase):
    """Response schema returned to clients."""

    id: uuid.UUID
    created_at: datetime
