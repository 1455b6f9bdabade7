"""Persistence collaborator interface and an in-memory implementation."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Protocol, runtime_checkable

from app.errors import DocumentNotFound

logger = logging.getLogger(__name__)


@runtime_checkable
class DocumentStore(Protocol):
    """Where document source text is persisted.

    ``create`` returns the new document's id; ``update`` takes a partial field
    mapping such as ``{"jsxCode": source}`` and returns the stored record.
    """

    async def create(self, initial_content: str) -> str: ...

    async def get_by_id(self, document_id: str) -> str: ...

    async def update(self, document_id: str, fields: dict[str, Any]) -> dict[str, Any]: ...


class InMemoryDocumentStore:
    def __init__(self, content_field: str = "jsxCode") -> None:
        self.content_field = content_field
        self._documents: dict[str, dict[str, Any]] = {}

    async def create(self, initial_content: str) -> str:
        document_id = uuid.uuid4().hex
        self._documents[document_id] = {
            "id": document_id,
            "name": f"Component_{int(time.time() * 1000)}",
            self.content_field: initial_content,
        }
        logger.info("Created document %s", document_id)
        return document_id

    async def get_by_id(self, document_id: str) -> str:
        return self._get(document_id)[self.content_field]

    async def update(self, document_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        record = self._get(document_id)
        record.update(fields)
        logger.debug("Updated document %s (%s)", document_id, ", ".join(fields))
        return dict(record)

    def _get(self, document_id: str) -> dict[str, Any]:
        try:
            return self._documents[document_id]
        except KeyError:
            raise DocumentNotFound(f"Document {document_id} not found") from None
