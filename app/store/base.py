"""
Document store interface.

The application talks to persistence only through ``DocumentStore``: collection
reads with simple equality/``in`` filters, single document reads, writes, an
optimistic read-check-write transaction and collection listeners. Paths are
slash separated, e.g. ``"invoices"`` for a collection and ``"invoices/INV1"``
for a document; subcollections nest (``"users/U1/notifications"``).
"""

import abc
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

from app.core.exceptions import PermissionDeniedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

ASCENDING = "asc"
DESCENDING = "desc"


class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


# Replaced with the commit time when the write is applied.
SERVER_TIMESTAMP = _ServerTimestamp()

# (operation, path, data) -> allowed
AccessRules = Callable[[str, str, Optional[Dict[str, Any]]], bool]


@dataclass(frozen=True)
class Filter:
    field: str
    op: str
    value: Any

    def matches(self, data: Dict[str, Any]) -> bool:
        current = data.get(self.field)
        if self.op == "==":
            return current == self.value
        if self.op == "in":
            return current in self.value
        if self.op == "array-contains":
            return isinstance(current, list) and self.value in current
        raise ValueError(f"Unsupported filter operator: {self.op}")


def where(field_name: str, op: str, value: Any) -> Filter:
    return Filter(field_name, op, value)


@dataclass
class DocumentSnapshot:
    path: str
    data: Optional[Dict[str, Any]] = None
    version: int = 0

    @property
    def id(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def exists(self) -> bool:
        return self.data is not None

    def to_dict(self) -> Dict[str, Any]:
        """Document data with its id merged in, the shape every page works with."""
        if self.data is None:
            return {}
        return {**self.data, "id": self.id}


@dataclass
class _PendingWrite:
    kind: str  # "set" | "update" | "delete"
    path: str
    data: Optional[Dict[str, Any]] = None
    merge: bool = False


def split_path(path: str) -> Tuple[str, str]:
    """Split a document path into (collection path, document id)."""
    parts = path.strip("/").split("/")
    if len(parts) < 2 or len(parts) % 2:
        raise ValueError(f"Not a document path: {path}")
    return "/".join(parts[:-1]), parts[-1]


def is_collection_path(path: str) -> bool:
    return len(path.strip("/").split("/")) % 2 == 1


def resolve_sentinels(data: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    resolved = {}
    for key, value in data.items():
        if value is SERVER_TIMESTAMP:
            resolved[key] = now
        elif isinstance(value, dict):
            resolved[key] = resolve_sentinels(value, now)
        else:
            resolved[key] = value
    return resolved


def timestamp_sort_value(value: Any) -> Optional[float]:
    """Normalize datetimes, dates, ISO strings and numbers to epoch seconds."""
    if value is None:
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc).timestamp()
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return timestamp_sort_value(parsed)
    return None


def apply_query(
    snapshots: Iterable[DocumentSnapshot],
    filters: Optional[List[Filter]] = None,
    order_by: Optional[Tuple[str, str]] = None,
    limit: Optional[int] = None,
) -> List[DocumentSnapshot]:
    results = [s for s in snapshots if s.exists]
    for f in filters or []:
        results = [s for s in results if f.matches(s.data)]

    if order_by:
        field_name, direction = order_by
        present = []
        missing = []
        for snapshot in results:
            key = snapshot.data.get(field_name)
            sort_value = timestamp_sort_value(key)
            if sort_value is None and isinstance(key, str):
                present.append((key, snapshot))
            elif sort_value is None:
                missing.append(snapshot)
            else:
                present.append((sort_value, snapshot))
        numeric = [p for p in present if not isinstance(p[0], str)]
        text = [p for p in present if isinstance(p[0], str)]
        reverse = direction == DESCENDING
        numeric.sort(key=lambda p: p[0], reverse=reverse)
        text.sort(key=lambda p: p[0], reverse=reverse)
        results = [s for _, s in numeric] + [s for _, s in text] + missing

    if limit is not None:
        results = results[:limit]
    return results


class Transaction(abc.ABC):
    """
    Read-check-write unit handed to ``run_transaction`` callbacks.

    Reads must come before writes. Writes are buffered and committed together
    only if none of the documents read have changed in the meantime.
    """

    def __init__(self):
        self._writes: List[_PendingWrite] = []
        self._reads: Dict[str, int] = {}

    @abc.abstractmethod
    async def get(self, path: str) -> DocumentSnapshot:
        ...

    @abc.abstractmethod
    def new_document_id(self) -> str:
        ...

    def set(self, path: str, data: Dict[str, Any], merge: bool = False) -> None:
        self._writes.append(_PendingWrite("set", path, dict(data), merge))

    def update(self, path: str, data: Dict[str, Any]) -> None:
        self._writes.append(_PendingWrite("update", path, dict(data)))

    def delete(self, path: str) -> None:
        self._writes.append(_PendingWrite("delete", path))

    def create(self, collection_path: str, data: Dict[str, Any]) -> str:
        doc_id = self.new_document_id()
        self.set(f"{collection_path}/{doc_id}", data)
        return doc_id


class Listener:
    """Handle returned by ``DocumentStore.listen``."""

    def __init__(self, store: "DocumentStore", path: str, callback):
        self._store = store
        self.path = path
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._store._remove_listener(self)


SnapshotCallback = Callable[[List[DocumentSnapshot]], Any]


class DocumentStore(abc.ABC):
    """Async document store used by every service."""

    def __init__(self, rules: Optional[AccessRules] = None):
        self.rules = rules
        self._listeners: Dict[str, List[Listener]] = {}

    # -- access rules -------------------------------------------------------

    def check_access(self, operation: str, path: str, data: Optional[Dict[str, Any]] = None) -> None:
        if self.rules is not None and not self.rules(operation, path, data):
            logger.warning(f"Store rules rejected {operation} on {path}")
            raise PermissionDeniedError(
                f"Missing or insufficient permissions to {operation} {path}. "
                "Check the store access rules."
            )

    # -- reads --------------------------------------------------------------

    @abc.abstractmethod
    async def get_document(self, path: str) -> DocumentSnapshot:
        ...

    @abc.abstractmethod
    async def get_collection(
        self,
        path: str,
        filters: Optional[List[Filter]] = None,
        order_by: Optional[Tuple[str, str]] = None,
        limit: Optional[int] = None,
    ) -> List[DocumentSnapshot]:
        ...

    # -- writes -------------------------------------------------------------

    @abc.abstractmethod
    def new_document_id(self) -> str:
        ...

    @abc.abstractmethod
    async def set_document(self, path: str, data: Dict[str, Any], merge: bool = False) -> None:
        ...

    @abc.abstractmethod
    async def update_document(self, path: str, data: Dict[str, Any]) -> None:
        ...

    @abc.abstractmethod
    async def delete_document(self, path: str) -> None:
        ...

    async def add_document(self, collection_path: str, data: Dict[str, Any]) -> str:
        doc_id = self.new_document_id()
        await self.set_document(f"{collection_path}/{doc_id}", data)
        return doc_id

    # -- transactions -------------------------------------------------------

    @abc.abstractmethod
    async def run_transaction(
        self, fn: Callable[[Transaction], Awaitable[T]], max_attempts: int = 5
    ) -> T:
        ...

    # -- listeners ----------------------------------------------------------

    def listen(self, path: str, callback: SnapshotCallback) -> Listener:
        """
        Subscribe to a collection. The callback receives the current snapshot
        once the caller awaits ``prime`` or after the next committed write.
        """
        if not is_collection_path(path):
            raise ValueError(f"Listeners attach to collections, got {path}")
        listener = Listener(self, path, callback)
        self._listeners.setdefault(path, []).append(listener)
        return listener

    async def prime(self, listener: Listener) -> None:
        """Deliver the current snapshot to a freshly attached listener."""
        if listener.active:
            await self._deliver(listener, await self.get_collection(listener.path))

    def _remove_listener(self, listener: Listener) -> None:
        listeners = self._listeners.get(listener.path, [])
        if listener in listeners:
            listeners.remove(listener)
        if not listeners:
            self._listeners.pop(listener.path, None)

    async def _deliver(self, listener: Listener, snapshots: List[DocumentSnapshot]) -> None:
        """
        Hand a snapshot to one listener.

        Deliveries happen after the write has committed, so a failing
        subscriber is logged and never reported to the writer.
        """
        try:
            result = listener.callback(snapshots)
            if hasattr(result, "__await__"):
                await result
        except Exception as e:
            logger.error(f"Listener on {listener.path} failed: {e}")

    async def _notify(self, touched_paths: Iterable[str]) -> None:
        collections = {split_path(p)[0] for p in touched_paths}
        for collection_path in collections:
            listeners = list(self._listeners.get(collection_path, []))
            if not listeners:
                continue
            snapshots = await self.get_collection(collection_path)
            for listener in listeners:
                if listener.active:
                    await self._deliver(listener, snapshots)

    async def close(self) -> None:
        for listeners in list(self._listeners.values()):
            for listener in list(listeners):
                listener.unsubscribe()
