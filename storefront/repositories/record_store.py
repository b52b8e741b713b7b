# storefront/repositories/record_store.py
import uuid
from abc import ABC, abstractmethod
from typing import Any, Mapping, Sequence

from sqlmodel import SQLModel

from storefront.models.order import Order, OrderItem
from storefront.models.user import User

USERS = "users"
ORDERS = "orders"
ORDER_ITEMS = "order_items"

# collection name -> record model
COLLECTIONS: dict[str, type[SQLModel]] = {
    USERS: User,
    ORDERS: Order,
    ORDER_ITEMS: OrderItem,
}


def model_for(collection: str) -> type[SQLModel]:
    try:
        return COLLECTIONS[collection]
    except KeyError:
        raise ValueError(f"Unknown collection: {collection}") from None


class RecordStore(ABC):
    """
    Narrow persistence interface used by the core.

    Records are the SQLModel models registered in COLLECTIONS; every record
    carries a caller-assigned `id`. Predicates are equality filters
    ({"field": value, ...}).

    NOTE:
      - Implementations without multi-record transactions set
        `supports_transactions = False`; callers must then compensate on
        partial failure themselves.
      - Driver errors surface as DuplicateRecord (unique violation) or
        StoreUnavailable (anything else).
    """

    supports_transactions: bool = False

    @abstractmethod
    def init_schema(self) -> None:
        """Create tables / indexes if they do not exist."""

    @abstractmethod
    def find_one(self, collection: str, predicate: Mapping[str, Any]) -> SQLModel | None: ...

    @abstractmethod
    def find_many(
        self,
        collection: str,
        predicate: Mapping[str, Any],
        sort: str | None = None,
    ) -> list[SQLModel]:
        """
        Return all matching records.

        `sort` is a field name, prefixed with "-" for descending order.
        """

    @abstractmethod
    def insert(self, collection: str, record: SQLModel, tx: Any = None) -> uuid.UUID: ...

    @abstractmethod
    def insert_many(
        self,
        collection: str,
        records: Sequence[SQLModel],
        tx: Any = None,
    ) -> list[uuid.UUID]: ...

    @abstractmethod
    def delete(self, collection: str, record_id: uuid.UUID, tx: Any = None) -> bool:
        """Delete by id. Returns False if nothing matched."""

    # ---- Transactions (optional capability) ----

    def begin_transaction(self) -> Any:
        raise NotImplementedError(f"{type(self).__name__} does not support transactions")

    def commit(self, tx: Any) -> None:
        raise NotImplementedError(f"{type(self).__name__} does not support transactions")

    def rollback(self, tx: Any) -> None:
        raise NotImplementedError(f"{type(self).__name__} does not support transactions")

    def close(self) -> None:
        """Release driver resources."""

    # ---- helpers ----

    @staticmethod
    def _check_record(collection: str, record: SQLModel) -> None:
        model = model_for(collection)
        if not isinstance(record, model):
            raise TypeError(f"{collection} expects {model.__name__}, got {type(record).__name__}")

    @staticmethod
    def _split_sort(sort: str | None) -> tuple[str | None, bool]:
        if not sort:
            return None, False
        if sort.startswith("-"):
            return sort[1:], True
        return sort, False
