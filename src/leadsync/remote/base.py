"""Interface of the remote keyed-document store.

Documents live under ``users/{principal_id}/{collection}/{key}``. The engine
only needs listing, merge-upsert and delete.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..utils.datetime import parse_timestamp


LEADS_COLLECTION = "leads"
APPOINTMENTS_COLLECTION = "appointments"


@dataclass
class RemoteDocument:
    """One keyed document from a remote collection."""
    key: str
    data: Dict[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        return self.data.get(name, default)

    def get_timestamp(self, name: str) -> Optional[datetime]:
        """Parsed timestamp field, or None when absent, null or unparseable."""
        return parse_timestamp(self.data.get(name))

    @property
    def modified_at(self) -> Optional[datetime]:
        return self.get_timestamp("dateModified")


class RemoteCollection(ABC):
    """A keyed collection of documents scoped under one principal."""

    @abstractmethod
    async def list_documents(self) -> List[RemoteDocument]:
        """Fetch every document in the collection.

        Raises:
            NetworkError: If the request fails
            NotAuthenticatedError: If the session was rejected
        """
        pass

    @abstractmethod
    async def upsert_merge(self, key: str, fields: Dict[str, Any]) -> None:
        """Create the document or merge ``fields`` into it, leaving other fields alone."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a document; deleting a missing document is not an error."""
        pass


class RemoteStore(ABC):
    """Factory for principal-scoped collections."""

    @abstractmethod
    def collection(self, principal_id: str, name: str) -> RemoteCollection:
        pass

    async def aclose(self) -> None:
        """Release network resources."""
        return None
