"""User Routes — profile CRUD.

Invariants:
    - Password/token fields are never writable here: user schemas reject unknown keys,
      credential changes belong to the authentication service
    - Inactive users are invisible to every route in this module
"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Request, Response, status

from app.api.dependencies import build_request_descriptor, resource_handlers
from app.services.resource_definitions import USER_RESOURCE
from app.services.resource_handlers import ResourceHandlers

router = APIRouter(prefix="/users", tags=["users"])

get_user_handlers = resource_handlers(USER_RESOURCE)


@router.get("")
async def get_all_users(
    request: Request, handlers: ResourceHandlers = Depends(get_user_handlers),
):
    return await handlers.get_all(build_request_descriptor(request))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    request: Request,
    body: dict[str, Any] = Body(...),
    handlers: ResourceHandlers = Depends(get_user_handlers),
):
    return await handlers.create_one(build_request_descriptor(request, body))


@router.get("/{user_id}")
async def get_user(
    user_id: UUID,
    request: Request,
    handlers: ResourceHandlers = Depends(get_user_handlers),
):
    return await handlers.get_one(build_request_descriptor(request, id=user_id))


@router.patch("/{user_id}")
async def update_user(
    user_id: UUID,
    request: Request,
    body: dict[str, Any] = Body(...),
    handlers: ResourceHandlers = Depends(get_user_handlers),
):
    return await handlers.update_one(
        build_request_descriptor(request, body, id=user_id),
    )


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: UUID,
    request: Request,
    handlers: ResourceHandlers = Depends(get_user_handlers),
):
    await handlers.delete_one(build_request_descriptor(request, id=user_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
