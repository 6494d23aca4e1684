"""Boundary Protocols — contract between the generic handlers and a resource store.

Invariants:
    - Handlers NEVER import the ORM — they see documents as plain dicts
    - "Not found" is signalled by None / False, never by raising
    - Store-level failures (validation, duplicate key, bad query, database) are raised
      by the store as TourbookError subclasses and propagate untouched

Design Decisions:
    - Protocol over ABC: structural subtyping; the SQL store and test fakes need no common base
    - Async in Protocol: implementations do IO; QuerySpec building stays synchronous and pure
"""

from typing import Any, Mapping, Protocol, Sequence

from app.core.domain_types import DocumentId
from app.core.query_features import QuerySpec

Document = dict[str, Any]


class ResourceStore(Protocol):
    """Capability set a resource must offer to be served by ResourceHandlers."""

    resource_name: str

    async def find(self, spec: QuerySpec) -> list[Document]: ...

    async def find_by_id(
        self, document_id: DocumentId, expand: Sequence[str] = (),
    ) -> Document | None: ...

    async def create(self, fields: Mapping[str, Any]) -> Document: ...

    async def update_by_id(
        self, document_id: DocumentId, fields: Mapping[str, Any],
    ) -> Document | None: ...

    async def delete_by_id(self, document_id: DocumentId) -> bool: ...
