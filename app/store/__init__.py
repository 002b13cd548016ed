from app.store.base import (
    ASCENDING,
    DESCENDING,
    SERVER_TIMESTAMP,
    DocumentSnapshot,
    DocumentStore,
    Filter,
    Listener,
    Transaction,
    where,
)
from app.store.memory import MemoryDocumentStore

__all__ = [
    'ASCENDING', 'DESCENDING', 'SERVER_TIMESTAMP',
    'DocumentSnapshot', 'DocumentStore', 'Filter', 'Listener', 'Transaction', 'where',
    'MemoryDocumentStore',
]
