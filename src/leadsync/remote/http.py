"""REST client for the remote document store.

Wire format:

- ``GET    {base}/users/{principal}/{collection}?pageSize=N[&pageToken=T]``
  returns ``{"documents": [{"id": ..., "fields": {...}}], "nextPageToken": ...}``
- ``PATCH  {base}/users/{principal}/{collection}/{key}`` merges the JSON body
  into the document, creating it when missing
- ``DELETE {base}/users/{principal}/{collection}/{key}``
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from .base import RemoteCollection, RemoteDocument, RemoteStore
from ..auth import AuthSession
from ..sync.errors import NetworkError, NotAuthenticatedError
from ..utils.datetime import to_iso_string


logger = logging.getLogger(__name__)


def encode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Make document fields JSON-safe; datetimes become ISO-8601 strings."""
    encoded = {}
    for name, value in fields.items():
        if isinstance(value, datetime):
            encoded[name] = to_iso_string(value)
        else:
            encoded[name] = value
    return encoded


class HttpRemoteStore(RemoteStore):
    """Remote store reached over HTTP with a bearer token."""

    def __init__(self, base_url: str, auth: AuthSession, timeout: float = 30.0,
                 page_size: int = 500, transport: Optional[httpx.AsyncBaseTransport] = None):
        """Initialize the client.

        Args:
            base_url: Root URL of the document API
            auth: Session providing the bearer token
            timeout: Request timeout in seconds
            page_size: Documents requested per listing page
            transport: Optional httpx transport (tests use ``httpx.MockTransport``)
        """
        self.base_url = base_url.rstrip("/") + "/"
        self.auth = auth
        self.page_size = page_size
        self.client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)
        self.logger = logging.getLogger(__name__)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    def collection(self, principal_id: str, name: str) -> "HttpRemoteCollection":
        return HttpRemoteCollection(self, principal_id, name)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.auth.token:
            headers["Authorization"] = f"Bearer {self.auth.token}"
        return headers

    async def request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None,
                      json: Optional[Dict[str, Any]] = None,
                      allow_not_found: bool = False) -> Dict[str, Any]:
        """Make an HTTP request and map failures onto the sync error taxonomy.

        Raises:
            NotAuthenticatedError: On 401/403
            NetworkError: On timeouts, transport errors, 429, 5xx and other 4xx
        """
        try:
            response = await self.client.request(
                method, path, params=params, json=json, headers=self._headers()
            )
        except httpx.TimeoutException:
            raise NetworkError(f"{method} {path} timed out")
        except httpx.RequestError as e:
            raise NetworkError(f"{method} {path} failed: {e}")

        if response.status_code in (401, 403):
            raise NotAuthenticatedError(f"Remote store rejected credentials ({response.status_code})")
        if response.status_code == 404 and allow_not_found:
            return {}
        if response.status_code == 429:
            raise NetworkError("Remote store rate limit exceeded")
        if response.status_code >= 400:
            raise NetworkError(f"Remote store error {response.status_code}: {response.text}")

        if response.status_code == 204 or not response.content:
            return {}
        return response.json()


class HttpRemoteCollection(RemoteCollection):
    """One principal-scoped collection on the REST API."""

    def __init__(self, store: HttpRemoteStore, principal_id: str, name: str):
        self.store = store
        self.path = f"users/{quote(principal_id, safe='')}/{quote(name, safe='')}"

    def _document_path(self, key: str) -> str:
        return f"{self.path}/{quote(key, safe='')}"

    async def list_documents(self) -> List[RemoteDocument]:
        documents: List[RemoteDocument] = []
        page_token = None

        while True:
            params: Dict[str, Any] = {"pageSize": self.store.page_size}
            if page_token:
                params["pageToken"] = page_token

            payload = await self.store.request("GET", self.path, params=params)
            for item in payload.get("documents", []):
                key = item.get("id")
                if not isinstance(key, str):
                    logger.warning(f"Ignoring document without a key in {self.path}")
                    continue
                documents.append(RemoteDocument(key=key, data=item.get("fields") or {}))

            page_token = payload.get("nextPageToken")
            if not page_token:
                break

        logger.debug(f"Listed {len(documents)} documents from {self.path}")
        return documents

    async def upsert_merge(self, key: str, fields: Dict[str, Any]) -> None:
        await self.store.request("PATCH", self._document_path(key), json=encode_fields(fields))

    async def delete(self, key: str) -> None:
        await self.store.request("DELETE", self._document_path(key), allow_not_found=True)
