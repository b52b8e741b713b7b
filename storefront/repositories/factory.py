# storefront/repositories/factory.py
from pymongo import MongoClient

from storefront.core.config import Settings
from storefront.database import build_engine
from storefront.repositories.document_store import DocumentRecordStore
from storefront.repositories.record_store import RecordStore
from storefront.repositories.sql_store import SqlRecordStore


def build_record_store(settings: Settings) -> RecordStore:
    """
    Select the record store implementation at startup.

      - RECORD_STORE=sql      -> SqlRecordStore(DATABASE_URL)
      - RECORD_STORE=document -> DocumentRecordStore(MONGODB_URL / MONGODB_DB)

    No connection is opened here; `init_schema()` does the first round trip.
    """
    if settings.RECORD_STORE == "document":
        timeout_ms = None
        if settings.STORE_TIMEOUT_SECONDS is not None:
            timeout_ms = int(settings.STORE_TIMEOUT_SECONDS * 1000)
        client = MongoClient(
            settings.MONGODB_URL,
            serverSelectionTimeoutMS=timeout_ms or 30000,
            socketTimeoutMS=timeout_ms,
            connect=False,
        )
        return DocumentRecordStore(client[settings.MONGODB_DB])

    return SqlRecordStore(build_engine(settings.DATABASE_URL))
