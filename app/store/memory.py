"""In-process document store, used for tests and ``STORE_BACKEND=memory``."""

import asyncio
import copy
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from app.core.exceptions import AppError, ContentionError, NotFoundError
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


class MemoryTransaction(Transaction):
    def __init__(self, store: "MemoryDocumentStore"):
        super().__init__()
        self._store = store

    async def get(self, path: str) -> DocumentSnapshot:
        if self._writes:
            raise AppError("Transactions require all reads to be executed before all writes.")
        self._store.check_access("read", path)
        # Let other tasks interleave, the way a network round trip would.
        await asyncio.sleep(0)
        snapshot = self._store._snapshot(path)
        self._reads[path] = snapshot.version
        return snapshot

    def new_document_id(self) -> str:
        return self._store.new_document_id()


class MemoryDocumentStore(DocumentStore):
    def __init__(self, rules=None):
        super().__init__(rules)
        self._docs: Dict[str, Tuple[int, Dict[str, Any]]] = {}
        self._lock = asyncio.Lock()
        self.write_count = 0

    def new_document_id(self) -> str:
        return uuid.uuid4().hex[:20]

    def _snapshot(self, path: str) -> DocumentSnapshot:
        version, data = self._docs.get(path, (0, None))
        return DocumentSnapshot(path=path, data=copy.deepcopy(data), version=version)

    async def get_document(self, path: str) -> DocumentSnapshot:
        split_path(path)
        self.check_access("read", path)
        return self._snapshot(path)

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
        prefix = path.strip("/") + "/"
        snapshots = [
            self._snapshot(doc_path)
            for doc_path in self._docs
            if doc_path.startswith(prefix) and "/" not in doc_path[len(prefix):]
        ]
        return apply_query(snapshots, filters, order_by, limit)

    def _apply(self, write: _PendingWrite, now: datetime) -> None:
        version, current = self._docs.get(write.path, (0, None))
        if write.kind == "delete":
            self._docs.pop(write.path, None)
            return
        data = resolve_sentinels(copy.deepcopy(write.data), now)
        if write.kind == "update":
            if current is None:
                raise NotFoundError(f"No document to update: {write.path}")
            data = {**current, **data}
        elif write.merge and current is not None:
            data = {**current, **data}
        self._docs[write.path] = (version + 1, data)

    async def _commit(self, writes: List[_PendingWrite], reads: Optional[Dict[str, int]] = None) -> None:
        for write in writes:
            split_path(write.path)
            self.check_access("delete" if write.kind == "delete" else "write", write.path, write.data)
        async with self._lock:
            for path, version in (reads or {}).items():
                if self._docs.get(path, (0, None))[0] != version:
                    raise _Contention(path)
            for write in writes:
                if write.kind == "update" and write.path not in self._docs:
                    raise NotFoundError(f"No document to update: {write.path}")
            now = datetime.now(timezone.utc)
            for write in writes:
                self._apply(write, now)
            self.write_count += len(writes)
        await self._notify(w.path for w in writes)

    async def set_document(self, path: str, data: Dict[str, Any], merge: bool = False) -> None:
        await self._commit([_PendingWrite("set", path, dict(data), merge)])

    async def update_document(self, path: str, data: Dict[str, Any]) -> None:
        await self._commit([_PendingWrite("update", path, dict(data))])

    async def delete_document(self, path: str) -> None:
        await self._commit([_PendingWrite("delete", path)])

    async def run_transaction(
        self, fn: Callable[[Transaction], Awaitable[T]], max_attempts: int = 5
    ) -> T:
        for attempt in range(1, max_attempts + 1):
            tx = MemoryTransaction(self)
            result = await fn(tx)
            try:
                await self._commit(tx._writes, tx._reads)
            except _Contention as e:
                logger.info(f"Transaction contention on {e} (attempt {attempt}/{max_attempts})")
                continue
            return result
        raise ContentionError("Transaction aborted after repeated contention. Please try again.")
