"""REST resource collection client for shopdesk."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .errors import NotFoundError, RequestFailedError

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class ResourceClient:
    """
    Client for a single REST resource collection (e.g. ``/users``).

    The backend is a plain JSON resource store: list endpoints accept
    exact-match query filters and ``PUT`` replaces the whole record.
    """

    def __init__(self, http: httpx.Client, collection: str, kind: str | None = None):
        """
        Initialize ResourceClient.

        Args:
            http: Shared HTTP client, already pointed at the backend base URL.
            collection: Collection name, used as the URL path segment.
            kind: Human readable record name used in NotFound messages.
        """
        self.http = http
        self.collection = collection.strip("/")
        self.kind = kind or self.collection

    def _url(self, record_id: str | None = None) -> str:
        if record_id is None:
            return f"/{self.collection}"
        return f"/{self.collection}/{record_id}"

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        logger.debug("%s %s", method, url)
        try:
            response = self.http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise RequestFailedError(method, url, reason=str(e)) from e
        if not response.is_success:
            if response.status_code == 404 and method == "GET" and url != self._url():
                raise NotFoundError(self.kind, url.rsplit("/", 1)[-1])
            raise RequestFailedError(method, url, response.status_code, response.reason_phrase)
        return response

    def list(self) -> list[Record]:
        """Fetch every record in the collection."""
        return self._send("GET", self._url()).json()

    def get_by_field(self, field: str, value: Any) -> list[Record]:
        """Fetch records whose ``field`` exactly matches ``value``."""
        return self._send("GET", self._url(), params={field: value}).json()

    def get(self, record_id: str) -> Record:
        """
        Fetch a single record by ID.

        Raises:
            NotFoundError: If the backend has no record with this ID.
            RequestFailedError: On any other non-success response.
        """
        return self._send("GET", self._url(record_id)).json()

    def create(self, record: Record) -> Record:
        """Create a record and return the saved version."""
        response = self._send("POST", self._url(), json=record)
        return response.json() if response.content else dict(record)

    def replace(self, record_id: str, record: Record) -> Record:
        """Overwrite a record. ``record`` must be the complete, merged object."""
        response = self._send("PUT", self._url(record_id), json=record)
        return response.json() if response.content else dict(record)

    def remove(self, record_id: str) -> str:
        """Delete a record and return its ID."""
        self._send("DELETE", self._url(record_id))
        return record_id
