# storefront/routers/orders.py
import uuid

from fastapi import APIRouter, Depends, status

from storefront.core.auth import require_auth
from storefront.core.config import Settings
from storefront.dependencies import get_app_settings, get_order_service
from storefront.schemas.order import (
    OrderCreate,
    OrderRead,
    OrderWithItemsRead,
)
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post(
    "",
    response_model=OrderWithItemsRead,
    status_code=status.HTTP_201_CREATED,
)
def place_order(
    payload: OrderCreate,
    user_id: uuid.UUID = Depends(require_auth),
    service: OrderService = Depends(get_order_service),
    settings: Settings = Depends(get_app_settings),
):
    """
    Place an order for the authenticated user.

    The order and all of its items are stored together or not at all.
    """
    return service.place_order(user_id, payload.items, timeout=settings.STORE_TIMEOUT_SECONDS)


@router.get(
    "/me",
    response_model=list[OrderRead],
)
def list_my_orders(
    user_id: uuid.UUID = Depends(require_auth),
    service: OrderService = Depends(get_order_service),
):
    """
    List the authenticated user's orders (without items).
    """
    return service.list_user_orders(user_id)


@router.get(
    "/me/{order_id}",
    response_model=OrderWithItemsRead,
)
def get_my_order(
    order_id: uuid.UUID,
    user_id: uuid.UUID = Depends(require_auth),
    service: OrderService = Depends(get_order_service),
):
    """
    Get a single order (with items) belonging to the current user.
    """
    return service.get_user_order(user_id, order_id)
