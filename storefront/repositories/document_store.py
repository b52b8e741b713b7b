# storefront/repositories/document_store.py
import logging
import uuid
from typing import Any, Mapping, Sequence

from pymongo import ASCENDING, DESCENDING
from pymongo.database import Database
from pymongo.errors import BulkWriteError, DuplicateKeyError, PyMongoError
from sqlmodel import SQLModel

from storefront.core.errors import DuplicateRecord, StoreUnavailable
from storefront.repositories.record_store import (
    ORDER_ITEMS,
    ORDERS,
    USERS,
    RecordStore,
    model_for,
)

logger = logging.getLogger(__name__)

DUPLICATE_KEY_CODE = 11000


def _to_bson_value(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


class DocumentRecordStore(RecordStore):
    """
    Document record store on MongoDB (pymongo).

    Documents mirror the SQLModel records; `id` is stored as `_id` and UUIDs
    as their string form.

    Multi-document transactions are not used (standalone servers do not
    offer them), so `supports_transactions` is False and callers compensate.
    """

    supports_transactions = False

    def __init__(self, database: Database):
        self.db = database

    def init_schema(self) -> None:
        try:
            self.db[USERS].create_index("email", unique=True)
            self.db[ORDERS].create_index("user_id")
            self.db[ORDER_ITEMS].create_index("order_id")
        except PyMongoError as exc:
            raise StoreUnavailable() from exc

    # ---- Mapping ----

    @staticmethod
    def _to_document(record: SQLModel) -> dict[str, Any]:
        doc = {key: _to_bson_value(value) for key, value in record.model_dump().items()}
        doc["_id"] = doc.pop("id")
        return doc

    @staticmethod
    def _from_document(collection: str, doc: Mapping[str, Any]) -> SQLModel:
        data = dict(doc)
        data["id"] = data.pop("_id")
        return model_for(collection).model_validate(data)

    @staticmethod
    def _to_query(predicate: Mapping[str, Any]) -> dict[str, Any]:
        return {
            ("_id" if field == "id" else field): _to_bson_value(value)
            for field, value in predicate.items()
        }

    # ---- Reads ----

    def find_one(self, collection: str, predicate: Mapping[str, Any]) -> SQLModel | None:
        model_for(collection)
        try:
            doc = self.db[collection].find_one(self._to_query(predicate))
        except PyMongoError as exc:
            logger.error("find_one on %s failed: %s", collection, exc)
            raise StoreUnavailable() from exc
        return None if doc is None else self._from_document(collection, doc)

    def find_many(
        self,
        collection: str,
        predicate: Mapping[str, Any],
        sort: str | None = None,
    ) -> list[SQLModel]:
        model_for(collection)
        field, descending = self._split_sort(sort)
        try:
            cursor = self.db[collection].find(self._to_query(predicate))
            if field:
                cursor = cursor.sort("_id" if field == "id" else field, DESCENDING if descending else ASCENDING)
            docs = list(cursor)
        except PyMongoError as exc:
            logger.error("find_many on %s failed: %s", collection, exc)
            raise StoreUnavailable() from exc
        return [self._from_document(collection, doc) for doc in docs]

    # ---- Writes ----

    def insert(self, collection: str, record: SQLModel, tx: Any = None) -> uuid.UUID:
        self._check_record(collection, record)
        try:
            self.db[collection].insert_one(self._to_document(record))
        except DuplicateKeyError as exc:
            raise DuplicateRecord() from exc
        except PyMongoError as exc:
            logger.error("insert on %s failed: %s", collection, exc)
            raise StoreUnavailable() from exc
        return record.id

    def insert_many(
        self,
        collection: str,
        records: Sequence[SQLModel],
        tx: Any = None,
    ) -> list[uuid.UUID]:
        for record in records:
            self._check_record(collection, record)
        if not records:
            return []

        try:
            self.db[collection].insert_many([self._to_document(r) for r in records], ordered=True)
        except BulkWriteError as exc:
            errors = exc.details.get("writeErrors", [])
            if any(err.get("code") == DUPLICATE_KEY_CODE for err in errors):
                raise DuplicateRecord() from exc
            logger.error("insert_many on %s failed: %s", collection, exc)
            raise StoreUnavailable() from exc
        except PyMongoError as exc:
            logger.error("insert_many on %s failed: %s", collection, exc)
            raise StoreUnavailable() from exc
        return [record.id for record in records]

    def delete(self, collection: str, record_id: uuid.UUID, tx: Any = None) -> bool:
        model_for(collection)
        try:
            result = self.db[collection].delete_one({"_id": _to_bson_value(record_id)})
        except PyMongoError as exc:
            logger.error("delete on %s failed: %s", collection, exc)
            raise StoreUnavailable() from exc
        return result.deleted_count > 0

    def close(self) -> None:
        self.db.client.close()
