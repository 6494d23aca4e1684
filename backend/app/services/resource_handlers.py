"""Resource Handlers — the five generic CRUD operations over any ResourceStore.

Invariants:
    - Only local decision: store returned nothing → DocumentNotFoundError
    - Store errors propagate unmodified to the error boundary (no try/except here)
    - Multi-document envelopes carry results == len(data.data)
    - No state kept between calls; one handler instance per request

Design Decisions:
    - Store injected per request (it wraps the request's AsyncSession)
    - get_all takes the ambient scope explicitly instead of reading it off the request
    - update_one is the generic path only — credential changes belong to a dedicated flow
      (update schemas reject unknown keys, so credentials cannot slip through)
"""

import logging
from typing import Any, Mapping, Sequence

from app.core.domain_types import DocumentId, RequestDescriptor
from app.core.errors import DocumentNotFoundError
from app.core.query_features import build_query_spec
from app.core.resource_protocols import Document, ResourceStore

logger = logging.getLogger(__name__)


def success_envelope(data: Any) -> dict:
    return {"status": "success", "data": {"data": data}}


def list_envelope(documents: list[Document]) -> dict:
    return {
        "status": "success",
        "results": len(documents),
        "data": {"data": documents},
    }


class ResourceHandlers:
    """Generic handlers bound to one store."""

    def __init__(self, store: ResourceStore):
        self.store = store

    @property
    def resource_name(self) -> str:
        return self.store.resource_name

    def _document_id(self, request: RequestDescriptor) -> DocumentId:
        return request.params["id"]

    def _not_found(self, document_id: DocumentId) -> DocumentNotFoundError:
        return DocumentNotFoundError(self.resource_name, str(document_id))

    async def create_one(self, request: RequestDescriptor) -> dict:
        document = await self.store.create(request.body)
        logger.info(
            f"Created {self.resource_name} {document.get('id')}",
            extra={"resource": self.resource_name, "document_id": str(document.get("id"))},
        )
        return success_envelope(document)

    async def get_one(
        self, request: RequestDescriptor, expand: Sequence[str] = (),
    ) -> dict:
        document_id = self._document_id(request)
        document = await self.store.find_by_id(document_id, expand)
        if document is None:
            raise self._not_found(document_id)
        return success_envelope(document)

    async def get_all(
        self,
        request: RequestDescriptor,
        scope: Mapping[str, Any] | None = None,
    ) -> dict:
        spec = build_query_spec(request.query, base_filter=scope)
        documents = await self.store.find(spec)
        logger.debug(
            f"Listed {len(documents)} {self.resource_name} document(s)",
            extra={"resource": self.resource_name, "results": len(documents)},
        )
        return list_envelope(documents)

    async def update_one(self, request: RequestDescriptor) -> dict:
        document_id = self._document_id(request)
        document = await self.store.update_by_id(document_id, request.body)
        if document is None:
            raise self._not_found(document_id)
        logger.info(
            f"Updated {self.resource_name} {document_id}",
            extra={"resource": self.resource_name, "document_id": str(document_id)},
        )
        return success_envelope(document)

    async def delete_one(self, request: RequestDescriptor) -> None:
        document_id = self._document_id(request)
        if not await self.store.delete_by_id(document_id):
            raise self._not_found(document_id)
        logger.info(
            f"Deleted {self.resource_name} {document_id}",
            extra={"resource": self.resource_name, "document_id": str(document_id)},
        )
