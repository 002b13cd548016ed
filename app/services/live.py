"""
Live joined views.

A ``LiveView`` subscribes to a primary collection and the lookup collections
its rows reference, re-runs the join whenever any of them changes and hands
the rows to ``send``. Nothing is sent until every collection has delivered at
least once. ``close`` detaches every listener.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from app.core import collections
from app.services import joiner
from app.store.base import DocumentSnapshot, DocumentStore, Listener
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)

Send = Callable[[List[Dict[str, Any]]], Awaitable[None]]

# view name -> (primary collection, lookup collections, join)
VIEWS = {
    "cases": (collections.CASES, (collections.CLIENTS, collections.USERS), joiner.join_cases),
    "files": (collections.FILES, (collections.CLIENTS, collections.USERS), joiner.join_files),
    "appointments": (
        collections.APPOINTMENTS,
        (collections.CLIENTS, collections.USERS),
        joiner.join_appointments,
    ),
    "invoices": (collections.INVOICES, (collections.CLIENTS,), joiner.join_invoices),
    "receipts": (collections.RECEIPTS, (collections.CLIENTS,), joiner.join_receipts),
}

# Joins that render relative times and take the clock as their last argument
TIMED_JOINS = {joiner.join_cases, joiner.join_files}


class LiveView:
    def __init__(self, store: DocumentStore, primary: str, lookups: Sequence[str], join, send: Send):
        self.store = store
        self.primary = primary
        self.paths = [primary, *lookups]
        self.join = join
        self.send = send
        self._data: Dict[str, Optional[List[Dict[str, Any]]]] = {path: None for path in self.paths}
        self._listeners: List[Listener] = []
        self.closed = False

    @classmethod
    def for_view(cls, store: DocumentStore, name: str, send: Send) -> "LiveView":
        if name not in VIEWS:
            raise KeyError(name)
        primary, lookups, join = VIEWS[name]
        return cls(store, primary, lookups, join, send)

    async def start(self) -> None:
        for path in self.paths:
            self._listeners.append(self.store.listen(path, self._callback(path)))
        for listener in list(self._listeners):
            await self.store.prime(listener)
        logger.info(f"Live view on {self.primary} started")

    def _callback(self, path: str):
        async def on_snapshot(snapshots: List[DocumentSnapshot]) -> None:
            self._data[path] = [s.to_dict() for s in snapshots]
            await self._publish()

        return on_snapshot

    def rows(self) -> Optional[List[Dict[str, Any]]]:
        """Current joined rows, or None while a collection is still loading."""
        if any(records is None for records in self._data.values()):
            return None
        lookups = [self._data[path] for path in self.paths[1:]]
        if self.join in TIMED_JOINS:
            lookups.append(utcnow())
        return [row.model_dump(mode="json") for row in self.join(self._data[self.primary], *lookups)]

    async def _publish(self) -> None:
        if self.closed:
            return
        rows = self.rows()
        if rows is not None:
            try:
                await self.send(rows)
            except Exception as e:
                # Socket is gone
                logger.warning(f"Live view on {self.primary} stopped: {e}")
                await self.close()

    async def close(self) -> None:
        self.closed = True
        for listener in self._listeners:
            listener.unsubscribe()
        self._listeners.clear()
        logger.info(f"Live view on {self.primary} closed")
