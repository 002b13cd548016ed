"""
Optimistic mutation controller.

Applies an update to the caller's local copy of a document before the store
confirms it, then issues exactly one write. On failure the fields touched by
the update are restored to the values they held before the attempt and the
error text is kept for display. There is no retry and no queueing: two
mutations issued back to back race, and the last one applied locally is what
the caller sees.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from app.store.base import DocumentStore

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class LocalState:
    """The locally observed values of one document."""

    values: Dict[str, Any] = field(default_factory=dict)
    in_flight: bool = False
    error: Optional[str] = None

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)


@dataclass
class MutationResult:
    ok: bool
    values: Dict[str, Any]
    error: Optional[str] = None


class OptimisticMutationController:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def mutate(self, local: LocalState, path: str, payload: Dict[str, Any]) -> MutationResult:
        previous = {key: local.values.get(key, _MISSING) for key in payload}

        local.values.update(payload)
        local.in_flight = True
        local.error = None

        try:
            await self.store.update_document(path, payload)
        except Exception as e:
            logger.error(f"Optimistic update of {path} failed, rolling back: {e}")
            for key, value in previous.items():
                if value is _MISSING:
                    local.values.pop(key, None)
                else:
                    local.values[key] = value
            local.error = str(e)
            local.in_flight = False
            return MutationResult(ok=False, values=dict(local.values), error=local.error)

        local.in_flight = False
        logger.info(f"Optimistic update of {path} confirmed: {sorted(payload)}")
        return MutationResult(ok=True, values=dict(local.values))
