# storefront/services/order_service.py
import enum
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Sequence

from storefront.core.errors import (
    InvalidOrder,
    OrderNotFound,
    PartialWriteRolledBack,
    StoreError,
    StoreUnavailable,
    Timeout,
)
from storefront.core.money import from_minor_units, to_minor_units
from storefront.core.timeouts import Deadline
from storefront.models.order import Order, OrderItem
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.record_store import ORDER_ITEMS, ORDERS, RecordStore
from storefront.schemas.order import (
    OrderItemCreate,
    OrderItemRead,
    OrderRead,
    OrderWithItemsRead,
)

logger = logging.getLogger(__name__)

# Largest amount a signed 64-bit integer column holds.
MAX_MINOR_UNITS = 2**63 - 1


class PlacementState(str, enum.Enum):
    VALIDATING = "validating"
    COMPUTING = "computing"
    PERSISTING = "persisting"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


def compute_total(lines: Sequence[tuple[int, int]]) -> int:
    """Sum of quantity * unit_price_minor over (quantity, unit_price_minor) pairs."""
    return sum(quantity * unit_price for quantity, unit_price in lines)


def build_order_with_items(order: Order, items: Sequence[OrderItem]) -> OrderWithItemsRead:
    """
    Compose OrderWithItemsRead from stored records, converting minor units
    back to decimal amounts.
    """
    item_dtos = [
        OrderItemRead(
            id=it.id,
            order_id=it.order_id,
            product_id=it.product_id,
            quantity=it.quantity,
            unit_price=from_minor_units(it.unit_price_minor),
            line_total=from_minor_units(it.quantity * it.unit_price_minor),
        )
        for it in items
    ]
    return OrderWithItemsRead(
        id=order.id,
        user_id=order.user_id,
        total=from_minor_units(order.total_minor),
        created_at=order.created_at,
        items=item_dtos,
    )


def build_order_read(order: Order) -> OrderRead:
    return OrderRead(
        id=order.id,
        user_id=order.user_id,
        total=from_minor_units(order.total_minor),
        created_at=order.created_at,
    )


class OrderCoordinator:
    """
    Places an order and its items as one unit.

    Per attempt:
      Validating -> Computing -> Persisting -> Committed | RolledBack

    Persisting:
      - transactional store: begin -> insert order -> insert items -> commit,
        rollback on any failure
      - other stores: insert order -> insert items, then delete whatever was
        written on failure (compensation)

    Ids are assigned here before any write, so cleanup never depends on a
    store response.
    """

    def __init__(
        self,
        store: RecordStore,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.store = store
        self._clock = clock

    def place_order(
        self,
        user_id: uuid.UUID,
        items: Sequence[OrderItemCreate],
        timeout: float | None = None,
    ) -> OrderWithItemsRead:
        """
        Validate, price and persist a new order for `user_id`.

        Raises:
            InvalidOrder: empty items, quantity <= 0, negative price, a
              price with more than 2 decimal places, or amounts past
              MAX_MINOR_UNITS. Nothing is written.
            StoreUnavailable: the first write failed. Nothing is written.
            PartialWriteRolledBack: a later step failed; everything written
              for this order has been rolled back.
            Timeout: `timeout` seconds elapsed. Anything the pending store
              call writes is discarded once it returns.
        """
        self._enter(PlacementState.VALIDATING, user_id)
        lines = self._validate(items)

        self._enter(PlacementState.COMPUTING, user_id)
        total = compute_total([(quantity, price) for _, quantity, price in lines])

        order = Order(
            id=uuid.uuid4(),
            user_id=user_id,
            total_minor=total,
            created_at=self._clock(),
        )
        order_items = [
            OrderItem(
                id=uuid.uuid4(),
                order_id=order.id,
                product_id=product_id,
                quantity=quantity,
                unit_price_minor=price,
            )
            for product_id, quantity, price in lines
        ]

        self._enter(PlacementState.PERSISTING, user_id)
        deadline = Deadline(timeout)
        if self.store.supports_transactions:
            self._persist_in_transaction(order, order_items, deadline)
        else:
            self._persist_with_compensation(order, order_items, deadline)

        logger.info(
            "Order %s %s: %d items, total_minor=%d",
            order.id,
            PlacementState.COMMITTED.value,
            len(order_items),
            total,
        )
        return build_order_with_items(order, order_items)

    @staticmethod
    def _enter(state: PlacementState, user_id: uuid.UUID) -> None:
        logger.debug("Order placement for user %s: %s", user_id, state.value)

    # ---- Validating ----

    def _validate(self, items: Sequence[OrderItemCreate]) -> list[tuple[str, int, int]]:
        if not items:
            raise InvalidOrder("Order must contain at least one item")

        lines: list[tuple[str, int, int]] = []
        total = 0
        for index, item in enumerate(items):
            if item.quantity <= 0:
                raise InvalidOrder(f"Item {index}: quantity must be greater than 0")
            if item.unit_price < 0:
                raise InvalidOrder(f"Item {index}: unit_price cannot be negative")
            try:
                price = to_minor_units(item.unit_price)
            except ValueError as exc:
                raise InvalidOrder(f"Item {index}: {exc}") from None
            if item.quantity > MAX_MINOR_UNITS or price > MAX_MINOR_UNITS:
                raise InvalidOrder(f"Item {index}: quantity or unit_price is too large")
            total += item.quantity * price
            if total > MAX_MINOR_UNITS:
                raise InvalidOrder("Order total is too large")
            lines.append((item.product_id, item.quantity, price))
        return lines

    # ---- Persisting ----

    def _persist_in_transaction(
        self,
        order: Order,
        items: list[OrderItem],
        deadline: Deadline,
    ) -> None:
        tx = self.store.begin_transaction()
        order_written = False
        try:
            deadline.call(self.store.insert, ORDERS, order, tx=tx)
            order_written = True
            deadline.call(self.store.insert_many, ORDER_ITEMS, items, tx=tx)
            deadline.call(self.store.commit, tx)
        except Timeout as exc:
            self._discard_later(exc, order, items, tx)
            raise
        except StoreError as exc:
            self._rollback(tx, order)
            if not order_written:
                raise StoreUnavailable() from exc
            raise PartialWriteRolledBack() from exc
        except Exception:
            self._rollback(tx, order)
            raise

    def _persist_with_compensation(
        self,
        order: Order,
        items: list[OrderItem],
        deadline: Deadline,
    ) -> None:
        try:
            deadline.call(self.store.insert, ORDERS, order)
        except Timeout as exc:
            self._discard_later(exc, order, items)
            raise
        except StoreError as exc:
            raise StoreUnavailable() from exc

        try:
            deadline.call(self.store.insert_many, ORDER_ITEMS, items)
        except Timeout as exc:
            self._discard_later(exc, order, items)
            raise
        except StoreError as exc:
            self._compensate(order, items)
            raise PartialWriteRolledBack() from exc
        except Exception:
            self._compensate(order, items)
            raise

    # ---- Recovery ----

    def _rollback(self, tx: Any, order: Order) -> None:
        try:
            self.store.rollback(tx)
        except StoreError:
            logger.exception("Rollback of order %s failed", order.id)
            raise
        logger.warning("Order %s %s", order.id, PlacementState.ROLLED_BACK.value)

    def _compensate(self, order: Order, items: Sequence[OrderItem]) -> None:
        """
        Delete every item and the order by their pre-assigned ids.

        Items go first so no reader sees an order whose items are vanishing.
        """
        try:
            for item in items:
                self.store.delete(ORDER_ITEMS, item.id)
            self.store.delete(ORDERS, order.id)
        except StoreError:
            logger.exception("Compensation for order %s failed; records may remain", order.id)
            raise
        logger.warning("Order %s %s (compensated)", order.id, PlacementState.ROLLED_BACK.value)

    def _discard_later(
        self,
        exc: Timeout,
        order: Order,
        items: Sequence[OrderItem],
        tx: Any = None,
    ) -> None:
        """
        After a timeout, clean up once the still-running store call returns.

        Without a pending call the cleanup runs now.
        """

        def discard(_future=None) -> None:
            try:
                if tx is not None:
                    self.store.rollback(tx)
            except StoreError:
                logger.exception("Rollback of order %s after timeout failed", order.id)
            finally:
                try:
                    self._compensate(order, items)
                except StoreError:
                    # Logged by _compensate.
                    pass

        logger.warning("Order %s timed out while persisting", order.id)
        if exc.pending is not None:
            exc.pending.add_done_callback(discard)
        else:
            discard()


class OrderService:
    """
    Order reads for the authenticated user.

    Placement itself lives in OrderCoordinator.
    """

    def __init__(self, repo: OrderRepository, coordinator: OrderCoordinator):
        self.repo = repo
        self.coordinator = coordinator

    def place_order(
        self,
        user_id: uuid.UUID,
        items: Sequence[OrderItemCreate],
        timeout: float | None = None,
    ) -> OrderWithItemsRead:
        return self.coordinator.place_order(user_id, items, timeout=timeout)

    def list_user_orders(self, user_id: uuid.UUID) -> list[OrderRead]:
        """
        List orders for the given user (without items), newest first.
        """
        return [build_order_read(order) for order in self.repo.list_for_user(user_id)]

    def get_user_order(self, user_id: uuid.UUID, order_id: uuid.UUID) -> OrderWithItemsRead:
        """
        Get a single order for the user, including items.

        - OrderNotFound if the order does not exist or belongs to another user.
        """
        order = self.repo.get_by_id(order_id)
        if not order or order.user_id != user_id:
            raise OrderNotFound()

        items = self.repo.list_items_for_order(order.id)
        return build_order_with_items(order, items)
