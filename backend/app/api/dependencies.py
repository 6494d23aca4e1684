"""Route Dependencies — per-request handler wiring and request normalisation.

Invariants:
    - Each request gets its own store bound to its own AsyncSession
    - Query strings are folded with parse_query_pairs before reaching handlers
    - Path params declared on the route (already parsed) override raw path strings
"""

from typing import Any, Callable, Mapping

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import RequestDescriptor
from app.core.query_features import parse_query_pairs
from app.infrastructure.database import get_db
from app.infrastructure.resource_store import ResourceDefinition, SQLResourceStore
from app.services.resource_handlers import ResourceHandlers


def resource_handlers(
    resource: ResourceDefinition,
) -> Callable[..., Any]:
    """Build a FastAPI dependency yielding ResourceHandlers for one resource."""

    async def dependency(db: AsyncSession = Depends(get_db)) -> ResourceHandlers:
        return ResourceHandlers(SQLResourceStore(db, resource))

    dependency.__name__ = f"get_{resource.name}_handlers"
    return dependency


def build_request_descriptor(
    request: Request,
    body: Mapping[str, Any] | None = None,
    **params: Any,
) -> RequestDescriptor:
    return RequestDescriptor(
        params={**request.path_params, **params},
        query=parse_query_pairs(request.query_params.multi_items()),
        body=dict(body or {}),
    )
