"""In-process remote store.

Used when no remote endpoint is configured and as the remote side in tests.
Errors can be queued per operation to simulate flaky networks or a session
that disappears mid-pass.
"""

import asyncio
import copy
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Tuple

from .base import RemoteCollection, RemoteDocument, RemoteStore


logger = logging.getLogger(__name__)


class InMemoryRemoteStore(RemoteStore):
    """Dictionary-backed remote store with failure injection."""

    def __init__(self, latency: float = 0.0):
        self.latency = latency
        self.documents: Dict[Tuple[str, str], Dict[str, Dict[str, Any]]] = defaultdict(dict)
        self.calls: List[Tuple[str, str, Optional[str]]] = []
        self._queued_errors: Dict[str, List[BaseException]] = defaultdict(list)
        self.before_operation: Optional[Callable[[str, str], None]] = None

    def collection(self, principal_id: str, name: str) -> "InMemoryRemoteCollection":
        return InMemoryRemoteCollection(self, principal_id, name)

    def put(self, principal_id: str, name: str, key: str, data: Dict[str, Any]):
        """Seed a document directly, replacing any existing one."""
        self.documents[(principal_id, name)][key] = copy.deepcopy(data)

    def get(self, principal_id: str, name: str, key: str) -> Optional[Dict[str, Any]]:
        data = self.documents[(principal_id, name)].get(key)
        return copy.deepcopy(data) if data is not None else None

    def keys(self, principal_id: str, name: str) -> List[str]:
        return sorted(self.documents[(principal_id, name)].keys())

    def queue_error(self, operation: str, error: BaseException, times: int = 1):
        """Make the next ``times`` calls of ``operation`` raise ``error``.

        ``operation`` is one of ``list``, ``upsert`` or ``delete``.
        """
        self._queued_errors[operation].extend([error] * times)

    async def _enter(self, operation: str, name: str, key: Optional[str] = None):
        self.calls.append((operation, name, key))
        if self.before_operation is not None:
            self.before_operation(operation, name)
        if self.latency:
            await asyncio.sleep(self.latency)
        else:
            await asyncio.sleep(0)
        queued = self._queued_errors.get(operation)
        if queued:
            raise queued.pop(0)


class InMemoryRemoteCollection(RemoteCollection):
    """Collection view over :class:`InMemoryRemoteStore`."""

    def __init__(self, store: InMemoryRemoteStore, principal_id: str, name: str):
        self.store = store
        self.principal_id = principal_id
        self.name = name

    @property
    def _documents(self) -> Dict[str, Dict[str, Any]]:
        return self.store.documents[(self.principal_id, self.name)]

    async def list_documents(self) -> List[RemoteDocument]:
        await self.store._enter("list", self.name)
        return [
            RemoteDocument(key=key, data=copy.deepcopy(data))
            for key, data in self._documents.items()
        ]

    async def upsert_merge(self, key: str, fields: Dict[str, Any]) -> None:
        await self.store._enter("upsert", self.name, key)
        self._documents.setdefault(key, {}).update(copy.deepcopy(fields))

    async def delete(self, key: str) -> None:
        await self.store._enter("delete", self.name, key)
        self._documents.pop(key, None)
