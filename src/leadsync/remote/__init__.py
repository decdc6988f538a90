"""Remote keyed-document store clients."""

from .base import (
    RemoteDocument,
    RemoteCollection,
    RemoteStore,
    LEADS_COLLECTION,
    APPOINTMENTS_COLLECTION,
)
from .memory import InMemoryRemoteStore, InMemoryRemoteCollection
from .http import HttpRemoteStore, HttpRemoteCollection

__all__ = [
    "RemoteDocument",
    "RemoteCollection",
    "RemoteStore",
    "LEADS_COLLECTION",
    "APPOINTMENTS_COLLECTION",
    "InMemoryRemoteStore",
    "InMemoryRemoteCollection",
    "HttpRemoteStore",
    "HttpRemoteCollection",
]
