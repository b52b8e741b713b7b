# storefront/repositories/sql_store.py
import logging
import uuid
from typing import Any, Mapping, Sequence

from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, select

from storefront.core.errors import DuplicateRecord, StoreUnavailable
from storefront.database import create_db_and_tables
from storefront.repositories.record_store import RecordStore, model_for

logger = logging.getLogger(__name__)


class SqlRecordStore(RecordStore):
    """
    Relational record store on SQLModel / SQLAlchemy.

    - Each call outside a transaction uses its own Session and commits.
    - begin_transaction() returns a Session; writes passed `tx=session` are
      flushed but stay invisible to other sessions until commit(tx).
    """

    supports_transactions = True

    def __init__(self, engine: Engine):
        self.engine = engine

    def _session(self) -> Session:
        # Records outlive their session; keep loaded attributes after commit.
        return Session(self.engine, expire_on_commit=False)

    def init_schema(self) -> None:
        try:
            create_db_and_tables(self.engine)
        except sa_exc.SQLAlchemyError as exc:
            raise StoreUnavailable() from exc

    # ---- Reads ----

    def _select(self, collection: str, predicate: Mapping[str, Any], sort: str | None = None):
        model = model_for(collection)
        stmt = select(model)
        for field, value in predicate.items():
            stmt = stmt.where(getattr(model, field) == value)

        field, descending = self._split_sort(sort)
        if field:
            column = getattr(model, field)
            stmt = stmt.order_by(column.desc() if descending else column)
        return stmt

    def find_one(self, collection: str, predicate: Mapping[str, Any]) -> SQLModel | None:
        stmt = self._select(collection, predicate)
        try:
            with self._session() as session:
                return session.exec(stmt).first()
        except sa_exc.SQLAlchemyError as exc:
            logger.error("find_one on %s failed: %s", collection, exc)
            raise StoreUnavailable() from exc

    def find_many(
        self,
        collection: str,
        predicate: Mapping[str, Any],
        sort: str | None = None,
    ) -> list[SQLModel]:
        stmt = self._select(collection, predicate, sort)
        try:
            with self._session() as session:
                return list(session.exec(stmt).all())
        except sa_exc.SQLAlchemyError as exc:
            logger.error("find_many on %s failed: %s", collection, exc)
            raise StoreUnavailable() from exc

    # ---- Writes ----

    def _write(self, collection: str, tx: Session | None, op) -> Any:
        """
        Run `op(session)` inside `tx`, or in a fresh session that commits.
        """
        session = tx if tx is not None else self._session()
        try:
            result = op(session)
            if tx is None:
                session.commit()
            return result
        except sa_exc.IntegrityError as exc:
            if tx is None:
                session.rollback()
            raise DuplicateRecord() from exc
        except sa_exc.SQLAlchemyError as exc:
            if tx is None:
                session.rollback()
            logger.error("write on %s failed: %s", collection, exc)
            raise StoreUnavailable() from exc
        finally:
            if tx is None:
                session.close()

    def insert(self, collection: str, record: SQLModel, tx: Session | None = None) -> uuid.UUID:
        self._check_record(collection, record)

        def op(session: Session) -> uuid.UUID:
            session.add(record)
            session.flush()
            return record.id

        return self._write(collection, tx, op)

    def insert_many(
        self,
        collection: str,
        records: Sequence[SQLModel],
        tx: Session | None = None,
    ) -> list[uuid.UUID]:
        for record in records:
            self._check_record(collection, record)

        def op(session: Session) -> list[uuid.UUID]:
            session.add_all(records)
            session.flush()
            return [record.id for record in records]

        return self._write(collection, tx, op)

    def delete(self, collection: str, record_id: uuid.UUID, tx: Session | None = None) -> bool:
        model = model_for(collection)

        def op(session: Session) -> bool:
            record = session.get(model, record_id)
            if record is None:
                return False
            session.delete(record)
            session.flush()
            return True

        return self._write(collection, tx, op)

    # ---- Transactions ----

    def begin_transaction(self) -> Session:
        return self._session()

    def commit(self, tx: Session) -> None:
        try:
            tx.commit()
        except sa_exc.SQLAlchemyError as exc:
            logger.error("commit failed: %s", exc)
            raise StoreUnavailable() from exc
        finally:
            tx.close()

    def rollback(self, tx: Session) -> None:
        try:
            tx.rollback()
        except sa_exc.SQLAlchemyError as exc:
            raise StoreUnavailable() from exc
        finally:
            tx.close()

    def close(self) -> None:
        self.engine.dispose()
