# storefront/schemas/auth.py
from typing import Literal

from pydantic import EmailStr, ConfigDict
from sqlmodel import SQLModel


class LoginRequest(SQLModel):
    """Credentials submitted to /login."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str


class TokenRead(SQLModel):
    """
    Bearer token issued after a successful login.

    Clients send it back as `Authorization: Bearer <token>`.
    """

    token: str
    token_type: Literal["bearer"] = "bearer"
    expires_in: int
