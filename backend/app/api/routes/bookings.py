"""Booking Routes — CRUD for bookings recorded outside the checkout flow."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Request, Response, status

from app.api.dependencies import build_request_descriptor, resource_handlers
from app.services.resource_definitions import BOOKING_RESOURCE
from app.services.resource_handlers import ResourceHandlers

router = APIRouter(prefix="/bookings", tags=["bookings"])

get_booking_handlers = resource_handlers(BOOKING_RESOURCE)


@router.get("")
async def get_all_bookings(
    request: Request, handlers: ResourceHandlers = Depends(get_booking_handlers),
):
    return await handlers.get_all(build_request_descriptor(request))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_booking(
    request: Request,
    body: dict[str, Any] = Body(...),
    handlers: ResourceHandlers = Depends(get_booking_handlers),
):
    return await handlers.create_one(build_request_descriptor(request, body))


@router.get("/{booking_id}")
async def get_booking(
    booking_id: UUID,
    request: Request,
    handlers: ResourceHandlers = Depends(get_booking_handlers),
):
    return await handlers.get_one(build_request_descriptor(request, id=booking_id))


@router.patch("/{booking_id}")
async def update_booking(
    booking_id: UUID,
    request: Request,
    body: dict[str, Any] = Body(...),
    handlers: ResourceHandlers = Depends(get_booking_handlers),
):
    return await handlers.update_one(
        build_request_descriptor(request, body, id=booking_id),
    )


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(
    booking_id: UUID,
    request: Request,
    handlers: ResourceHandlers = Depends(get_booking_handlers),
):
    await handlers.delete_one(build_request_descriptor(request, id=booking_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
