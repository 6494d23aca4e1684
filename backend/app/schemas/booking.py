"""Booking Schemas — validation for booking writes."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

_SCHEMA_CONFIG = ConfigDict(extra="forbid")


class BookingCreate(BaseModel):
    model_config = _SCHEMA_CONFIG

    tour_id: UUID
    user_id: UUID
    price: float = Field(ge=0)
    paid: bool = True


class BookingUpdate(BaseModel):
    model_config = _SCHEMA_CONFIG

    price: float = Field(None, ge=0)
    paid: bool = None
