"""
Graph store client for a REST endpoint.

Endpoints:
    POST {base_url}/nodes  {"kind", "identity", "attributes"} -> {"id": ...}
    POST {base_url}/links  {"source", "target", "relation"}
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import requests

from topopoll.core.exceptions import StoreConnectionError, StoreResponseError
from topopoll.store.base import NodeRef

logger = logging.getLogger(__name__)


class HttpGraphStore:
    """
    Forwards upserts and links to a graph service over HTTP.

    Usage:
        store = HttpGraphStore("http://graph.example.net/api")
        device = store.upsert("device", {"address": "10.0.0.1"}, {"name": "core1"})
    """

    DEFAULT_TIMEOUT: int = 30

    def __init__(self, base_url: str, timeout: int = DEFAULT_TIMEOUT, session: requests.Session | None = None):
        """
        Initialize the client.

        Args:
            base_url: Service base URL
            timeout: Request timeout in seconds
            session: Session to reuse; a new one is created by default
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> HttpGraphStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _handle_response(self, response: requests.Response) -> dict[str, Any]:
        """
        Parse a response, raising on error status codes.

        Raises:
            StoreResponseError: For 4xx/5xx responses
        """
        try:
            data = response.json()
        except ValueError:
            data = {"raw": response.text}
        if not isinstance(data, dict):
            data = {"data": data}

        if response.status_code >= 400:
            error_msg = data.get("error") or data.get("message") or response.text
            raise StoreResponseError(f"Graph store error: {error_msg}", response.status_code)
        return data

    def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        logger.debug(f"Store POST {path}")
        try:
            response = self._session.post(url, json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise StoreConnectionError(f"Request timed out: {e}") from e
        except requests.exceptions.ConnectionError as e:
            raise StoreConnectionError(f"Connection failed: {e}") from e
        return self._handle_response(response)

    def upsert(self, kind: str, identity: Mapping[str, Any], attributes: Mapping[str, Any]) -> NodeRef:
        data = self._post(
            "/nodes",
            {
                "kind": kind,
                "identity": {k: v for k, v in identity.items() if v is not None},
                "attributes": {k: v for k, v in attributes.items() if v is not None},
            },
        )
        node_id = data.get("id")
        if node_id is None:
            raise StoreResponseError("Graph store returned no node id")
        return NodeRef(kind, str(node_id))

    def link(self, source: NodeRef, target: NodeRef, relation: str) -> None:
        self._post(
            "/links",
            {
                "source": {"kind": source.kind, "id": source.id},
                "target": {"kind": target.kind, "id": target.id},
                "relation": relation,
            },
        )
