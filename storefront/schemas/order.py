# storefront/schemas/order.py
import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class OrderItemCreate(SQLModel):
    """
    One line of an order request.

    Quantity and price ranges are enforced by OrderCoordinator so that a
    bad line is reported as an invalid order with detail.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: str = Field(min_length=1, max_length=64)
    quantity: int
    unit_price: Decimal

    @field_validator("product_id")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("product_id cannot be empty")
        return v


class OrderCreate(SQLModel):
    """
    Payload for placing an order.

    Backend derives:
      - user_id from the bearer token
      - total from the items
    """

    model_config = ConfigDict(extra="forbid")

    items: list[OrderItemCreate]


class OrderRead(SQLModel):
    """
    Lightweight representation of an order (without items).
    """

    id: uuid.UUID
    user_id: uuid.UUID
    total: Decimal
    created_at: datetime


class OrderItemRead(SQLModel):
    """
    Representation of a single order line item.
    """

    id: uuid.UUID
    order_id: uuid.UUID
    product_id: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class OrderWithItemsRead(OrderRead):
    """
    Full order view including items.
    """

    items: list[OrderItemRead]
