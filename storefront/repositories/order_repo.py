# storefront/repositories/order_repo.py
import uuid

from storefront.models.order import Order, OrderItem
from storefront.repositories.record_store import ORDER_ITEMS, ORDERS, RecordStore


class OrderRepository:
    """
    Read access for orders and order_items.

    NOTE:
      - No writes here; placing an order is a multi-record unit handled by
        OrderCoordinator directly against the record store.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    # ---- Orders ----

    def list_for_user(self, user_id: uuid.UUID) -> list[Order]:
        return self.store.find_many(ORDERS, {"user_id": user_id}, sort="-created_at")

    def get_by_id(self, order_id: uuid.UUID) -> Order | None:
        return self.store.find_one(ORDERS, {"id": order_id})

    # ---- Order items ----

    def list_items_for_order(self, order_id: uuid.UUID) -> list[OrderItem]:
        return self.store.find_many(ORDER_ITEMS, {"order_id": order_id})
