"""Review Routes — CRUD for reviews across all tours.

Invariants:
    - Listing here is unscoped; /tours/{tour_id}/reviews gives the per-tour view
    - Every write recomputes the reviewed tour's rating statistics (store hook)
"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Request, Response, status

from app.api.dependencies import build_request_descriptor, resource_handlers
from app.services.resource_definitions import REVIEW_RESOURCE
from app.services.resource_handlers import ResourceHandlers

router = APIRouter(prefix="/reviews", tags=["reviews"])

get_review_handlers = resource_handlers(REVIEW_RESOURCE)


@router.get("")
async def get_all_reviews(
    request: Request, handlers: ResourceHandlers = Depends(get_review_handlers),
):
    return await handlers.get_all(build_request_descriptor(request))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_review(
    request: Request,
    body: dict[str, Any] = Body(...),
    handlers: ResourceHandlers = Depends(get_review_handlers),
):
    return await handlers.create_one(build_request_descriptor(request, body))


@router.get("/{review_id}")
async def get_review(
    review_id: UUID,
    request: Request,
    handlers: ResourceHandlers = Depends(get_review_handlers),
):
    return await handlers.get_one(build_request_descriptor(request, id=review_id))


@router.patch("/{review_id}")
async def update_review(
    review_id: UUID,
    request: Request,
    body: dict[str, Any] = Body(...),
    handlers: ResourceHandlers = Depends(get_review_handlers),
):
    return await handlers.update_one(
        build_request_descriptor(request, body, id=review_id),
    )


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_review(
    review_id: UUID,
    request: Request,
    handlers: ResourceHandlers = Depends(get_review_handlers),
):
    await handlers.delete_one(build_request_descriptor(request, id=review_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
