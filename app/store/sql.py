"""
Document store persisted in one SQL table through SQLAlchemy's async engine.

Every document is a row keyed by its path with a JSON body and a version
counter. Transactions are optimistic: the versions seen by ``Transaction.get``
are re-checked by conditional updates when the buffered writes are applied,
all inside a single database transaction.

When the engine hands every session the same connection (in-memory sqlite),
sessions are serialized: a commit or rollback on a shared connection would
otherwise end the transactions of every interleaved session.
"""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager, nullcontext
from datetime import date, datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.exceptions import AppError, ContentionError, NotFoundError, TransactionFailedError
from app.db.models.stored_document import StoredDocument
from app.store.base import (
    DocumentSnapshot,
    DocumentStore,
    Filter,
    T,
    Transaction,
    _PendingWrite,
    apply_query,
    is_collection_path,
    resolve_sentinels,
    split_path,
)

logger = logging.getLogger(__name__)


class _Contention(Exception):
    pass


def encode_value(value: Any) -> Any:
    """Make a document body JSON safe; timestamps are stored as ISO-8601 strings."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: encode_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    return value


def shares_connection(session_factory: async_sessionmaker) -> bool:
    """True when every session of the factory runs on one DBAPI connection."""
    engine = session_factory.kw.get("bind")
    return isinstance(getattr(engine, "pool", None), StaticPool)


class SqlTransaction(Transaction):
    def __init__(self, store: "SqlDocumentStore", session: AsyncSession):
        super().__init__()
        self._store = store
        self._session = session

    async def get(self, path: str) -> DocumentSnapshot:
        if self._writes:
            raise AppError("Transactions require all reads to be executed before all writes.")
        self._store.check_access("read", path)
        snapshot = await self._store._read(self._session, path)
        self._reads[path] = snapshot.version
        return snapshot

    def new_document_id(self) -> str:
        return self._store.new_document_id()


class SqlDocumentStore(DocumentStore):
    def __init__(self, session_factory: async_sessionmaker, rules=None, serialize: Optional[bool] = None):
        super().__init__(rules)
        self._session_factory = session_factory
        if serialize is None:
            serialize = shares_connection(session_factory)
        self._lock = asyncio.Lock() if serialize else None

    @asynccontextmanager
    async def _session(self):
        async with self._lock if self._lock is not None else nullcontext():
            async with self._session_factory() as session:
                yield session

    def new_document_id(self) -> str:
        return uuid.uuid4().hex[:20]

    async def _read(self, session: AsyncSession, path: str) -> DocumentSnapshot:
        result = await session.execute(
            select(StoredDocument.data, StoredDocument.version).where(StoredDocument.path == path)
        )
        row = result.first()
        if row is None:
            return DocumentSnapshot(path=path)
        return DocumentSnapshot(path=path, data=dict(row.data), version=row.version)

    async def get_document(self, path: str) -> DocumentSnapshot:
        split_path(path)
        self.check_access("read", path)
        async with self._session() as session:
            return await self._read(session, path)

    async def get_collection(
        self,
        path: str,
        filters: Optional[List[Filter]] = None,
        order_by: Optional[Tuple[str, str]] = None,
        limit: Optional[int] = None,
    ) -> List[DocumentSnapshot]:
        if not is_collection_path(path):
            raise ValueError(f"Not a collection path: {path}")
        self.check_access("list", path)
        collection_path = path.strip("/")
        async with self._session() as session:
            result = await session.execute(
                select(StoredDocument.path, StoredDocument.data, StoredDocument.version)
                .where(StoredDocument.collection == collection_path)
            )
            snapshots = [
                DocumentSnapshot(path=row.path, data=dict(row.data), version=row.version)
                for row in result.all()
            ]
        return apply_query(snapshots, filters, order_by, limit)

    async def _write(
        self,
        session: AsyncSession,
        write: _PendingWrite,
        now: datetime,
        expected_version: Optional[int],
    ) -> None:
        current = await self._read(session, write.path)
        if expected_version is not None and current.version != expected_version:
            raise _Contention(write.path)

        if write.kind == "delete":
            if current.exists:
                await session.execute(
                    delete(StoredDocument)
                    .where(StoredDocument.path == write.path)
                    .where(StoredDocument.version == current.version)
                )
            return

        data = encode_value(resolve_sentinels(write.data, now))
        if write.kind == "update" and not current.exists:
            raise NotFoundError(f"No document to update: {write.path}")
        if current.exists and (write.kind == "update" or write.merge):
            data = {**current.data, **data}

        if not current.exists:
            collection_path, doc_id = split_path(write.path)
            try:
                await session.execute(
                    insert(StoredDocument).values(
                        path=write.path,
                        collection=collection_path,
                        doc_id=doc_id,
                        data=data,
                        version=1,
                        created_at=now,
                        updated_at=now,
                    )
                )
            except IntegrityError:
                # Created by someone else since we looked
                raise _Contention(write.path)
            return

        result = await session.execute(
            update(StoredDocument)
            .where(StoredDocument.path == write.path)
            .where(StoredDocument.version == current.version)
            .values(data=data, version=current.version + 1, updated_at=now)
        )
        if result.rowcount != 1:
            raise _Contention(write.path)

    async def _commit_in(
        self,
        session: AsyncSession,
        writes: List[_PendingWrite],
        reads: Dict[str, int],
    ) -> None:
        for write in writes:
            split_path(write.path)
            self.check_access("delete" if write.kind == "delete" else "write", write.path, write.data)

        written = {w.path for w in writes}
        for path, version in reads.items():
            if path not in written and (await self._read(session, path)).version != version:
                raise _Contention(path)

        now = datetime.now(timezone.utc)
        for write in writes:
            await self._write(session, write, now, reads.get(write.path))
        try:
            await session.commit()
        except IntegrityError as e:
            raise _Contention(str(e))

    async def _run(self, writes: List[_PendingWrite], max_attempts: int = 3) -> None:
        for attempt in range(1, max_attempts + 1):
            async with self._session() as session:
                try:
                    await self._commit_in(session, writes, {})
                except _Contention:
                    await session.rollback()
                    continue
                except SQLAlchemyError as e:
                    await session.rollback()
                    logger.error(f"Database error writing {[w.path for w in writes]}: {e}")
                    raise TransactionFailedError(f"Database error: {e}")
                except Exception:
                    await session.rollback()
                    raise
            await self._notify(w.path for w in writes)
            return
        raise ContentionError("Write aborted after repeated contention. Please try again.")

    async def set_document(self, path: str, data: Dict[str, Any], merge: bool = False) -> None:
        await self._run([_PendingWrite("set", path, dict(data), merge)])

    async def update_document(self, path: str, data: Dict[str, Any]) -> None:
        await self._run([_PendingWrite("update", path, dict(data))])

    async def delete_document(self, path: str) -> None:
        await self._run([_PendingWrite("delete", path)])

    async def run_transaction(
        self, fn: Callable[[Transaction], Awaitable[T]], max_attempts: int = 5
    ) -> T:
        for attempt in range(1, max_attempts + 1):
            async with self._session() as session:
                tx = SqlTransaction(self, session)
                try:
                    result = await fn(tx)
                    await self._commit_in(session, tx._writes, tx._reads)
                except _Contention as e:
                    await session.rollback()
                    logger.info(f"Transaction contention on {e} (attempt {attempt}/{max_attempts})")
                    continue
                except SQLAlchemyError as e:
                    await session.rollback()
                    logger.error(f"Database error in transaction: {e}")
                    raise TransactionFailedError(f"Database error: {e}")
                except Exception:
                    await session.rollback()
                    raise
            await self._notify(w.path for w in tx._writes)
            return result
        raise ContentionError("Transaction aborted after repeated contention. Please try again.")
