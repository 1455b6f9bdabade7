"""HTTP document store for the visual-components CRUD backend.

Every response is wrapped as ``{"success": bool, "data": {...}, "message": str}``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.errors import DocumentNotFound, SaveFailed

logger = logging.getLogger(__name__)

COMPONENTS_PATH = "/visual-components"


class HttpDocumentStore:
    def __init__(
        self,
        base_url: str,
        content_field: str = "jsxCode",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.content_field = content_field
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def create(self, initial_content: str) -> str:
        response = await self._client.post(COMPONENTS_PATH, json={self.content_field: initial_content})
        data = self._unwrap(response)
        logger.info("Created remote document %s", data["id"])
        return str(data["id"])

    async def get_by_id(self, document_id: str) -> str:
        response = await self._client.get(f"{COMPONENTS_PATH}/{document_id}")
        return self._unwrap(response, document_id)[self.content_field]

    async def update(self, document_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        response = await self._client.put(f"{COMPONENTS_PATH}/{document_id}", json=fields)
        return self._unwrap(response, document_id)

    async def aclose(self) -> None:
        await self._client.aclose()

    def _unwrap(self, response: httpx.Response, document_id: str | None = None) -> dict[str, Any]:
        if response.status_code == 404:
            raise DocumentNotFound(f"Document {document_id} not found")
        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.is_error or not body.get("success", False):
            message = body.get("message") or f"HTTP {response.status_code}"
            raise SaveFailed(message, {"status": response.status_code, "error": body.get("error")})
        return body["data"]
