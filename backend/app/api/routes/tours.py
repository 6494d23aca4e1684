"""Tour Routes — CRUD, aliases, aggregates and nested reviews for tours.

Invariants:
    - Static paths (top-5-cheap, tour-stats, monthly-plan) registered before /{tour_id}
    - GET /{tour_id} expands the tour's guides and reviews
    - Nested review routes scope listings to the tour and default the new review's tour_id

Design Decisions:
    - Nested reviews live here rather than in reviews.py: the scope comes from this path
"""

from dataclasses import replace
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import build_request_descriptor, resource_handlers
from app.core.tour_aliases import alias_top_tours
from app.infrastructure.database import get_db
from app.services.resource_definitions import (
    REVIEW_RESOURCE, TOUR_DETAIL_EXPAND, TOUR_RESOURCE,
)
from app.services.resource_handlers import ResourceHandlers
from app.services.tour_stats import compute_monthly_plan, compute_tour_stats

router = APIRouter(prefix="/tours", tags=["tours"])

get_tour_handlers = resource_handlers(TOUR_RESOURCE)
get_review_handlers = resource_handlers(REVIEW_RESOURCE)


@router.get("/top-5-cheap")
async def get_top_cheap_tours(
    request: Request, handlers: ResourceHandlers = Depends(get_tour_handlers),
):
    """Five best-rated, cheapest tours."""
    descriptor = build_request_descriptor(request)
    return await handlers.get_all(
        replace(descriptor, query=alias_top_tours(descriptor.query)),
    )


@router.get("/tour-stats")
async def get_tour_stats(db: AsyncSession = Depends(get_db)):
    """Per-difficulty statistics for tours rated 4.5 and above."""
    stats = await compute_tour_stats(db)
    return {"status": "success", "data": {"stats": stats}}


@router.get("/monthly-plan/{year}")
async def get_monthly_plan(
    year: int = Path(ge=1, le=9999), db: AsyncSession = Depends(get_db),
):
    """Tour departures per month of one year, busiest month first."""
    plan = await compute_monthly_plan(db, year)
    return {"status": "success", "data": {"plan": plan}}


@router.get("")
async def get_all_tours(
    request: Request, handlers: ResourceHandlers = Depends(get_tour_handlers),
):
    return await handlers.get_all(build_request_descriptor(request))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_tour(
    request: Request,
    body: dict[str, Any] = Body(...),
    handlers: ResourceHandlers = Depends(get_tour_handlers),
):
    return await handlers.create_one(build_request_descriptor(request, body))


@router.get("/{tour_id}")
async def get_tour(
    tour_id: UUID,
    request: Request,
    handlers: ResourceHandlers = Depends(get_tour_handlers),
):
    return await handlers.get_one(
        build_request_descriptor(request, id=tour_id), expand=TOUR_DETAIL_EXPAND,
    )


@router.patch("/{tour_id}")
async def update_tour(
    tour_id: UUID,
    request: Request,
    body: dict[str, Any] = Body(...),
    handlers: ResourceHandlers = Depends(get_tour_handlers),
):
    return await handlers.update_one(
        build_request_descriptor(request, body, id=tour_id),
    )


@router.delete("/{tour_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tour(
    tour_id: UUID,
    request: Request,
    handlers: ResourceHandlers = Depends(get_tour_handlers),
):
    await handlers.delete_one(build_request_descriptor(request, id=tour_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ─── Nested reviews ─────────────────────────────────────────────

@router.get("/{tour_id}/reviews")
async def get_tour_reviews(
    tour_id: UUID,
    request: Request,
    handlers: ResourceHandlers = Depends(get_review_handlers),
):
    """Reviews of one tour; query features apply on top of the tour scope."""
    return await handlers.get_all(
        build_request_descriptor(request), scope={"tour_id": tour_id},
    )


@router.post("/{tour_id}/reviews", status_code=status.HTTP_201_CREATED)
async def create_tour_review(
    tour_id: UUID,
    request: Request,
    body: dict[str, Any] = Body(...),
    handlers: ResourceHandlers = Depends(get_review_handlers),
):
    """Create a review; tour_id defaults to the path when the body omits it."""
    payload = {"tour_id": str(tour_id), **body}
    return await handlers.create_one(build_request_descriptor(request, payload))
