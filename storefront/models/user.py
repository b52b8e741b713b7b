# storefront/models/user.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    Registered customer.

    Identity:
      - id: assigned at registration (UUID), used as the token subject
      - email: unique login name

    `password_hash` is a bcrypt digest; the raw password is never stored.
    Users are immutable after creation.
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=50,
        description="Customer display name",
    )

    email: str = Field(
        unique=True,
        index=True,
        description="Login email (unique)",
    )

    password_hash: str = Field(
        description="bcrypt digest of the password",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
