"""Review Schemas — validation for review writes.

Invariants:
    - review text non-empty; rating 1-5 when given
    - tour_id/user_id fixed at creation; updates may only touch review and rating
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.ratings import MAX_RATING, MIN_RATING

_SCHEMA_CONFIG = ConfigDict(extra="forbid", str_strip_whitespace=True)


class ReviewCreate(BaseModel):
    model_config = _SCHEMA_CONFIG

    review: str = Field(min_length=1, max_length=5000)
    rating: float | None = Field(None, ge=MIN_RATING, le=MAX_RATING)
    tour_id: UUID
    user_id: UUID


class ReviewUpdate(BaseModel):
    model_config = _SCHEMA_CONFIG

    review: str = Field(None, min_length=1, max_length=5000)
    rating: float | None = Field(None, ge=MIN_RATING, le=MAX_RATING)
