"""Tour Schemas — Pydantic models validating tour writes at the store boundary.

Invariants:
    - name: 10-40 chars, letters and spaces only, stripped
    - ratings_average: 1.0-5.0, rounded to one decimal on input
    - price_discount must be below price when both are known
    - Partial updates re-check cross-field rules against the stored document
      (check_merged_tour, run by the store after merging)
    - start_dates are stored as ISO-8601 strings; guides are user ids
    - Unknown keys are rejected (extra="forbid")

Design Decisions:
    - Update schema types required fields as non-optional with a None default: omitting
      a field is fine, sending null for it is a validation error
"""

from datetime import datetime
from typing import Any, Mapping
from uuid import UUID

from pydantic import (
    BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator,
)

from app.core.domain_types import Difficulty
from app.core.ratings import DEFAULT_RATINGS_AVERAGE, MAX_RATING, MIN_RATING, round_rating

_SCHEMA_CONFIG = ConfigDict(
    extra="forbid", str_strip_whitespace=True, use_enum_values=True,
)


def _check_name(v: str | None) -> str | None:
    if v is not None and not all(c.isalpha() or c == " " for c in v):
        raise ValueError("A tour name must only contain letters")
    return v


def _check_discount(price: float | None, discount: float | None) -> None:
    if price is not None and discount is not None and discount >= price:
        raise ValueError(
            f"Discount price ({discount}) must be below the regular price",
        )


def _iso_dates(dates: list[datetime] | None) -> list[str] | None:
    return [d.isoformat() for d in dates] if dates is not None else dates


def check_merged_tour(document: Mapping[str, Any]) -> None:
    """Rules spanning several fields, checked against stored values merged with a patch."""
    _check_discount(document.get("price"), document.get("price_discount"))


class TourCreate(BaseModel):
    """Tour creation payload."""
    model_config = _SCHEMA_CONFIG

    name: str = Field(min_length=10, max_length=40)
    duration: int = Field(gt=0)
    max_group_size: int = Field(gt=0)
    difficulty: Difficulty
    ratings_average: float = Field(
        DEFAULT_RATINGS_AVERAGE, ge=MIN_RATING, le=MAX_RATING,
    )
    ratings_quantity: int = Field(0, ge=0)
    price: float = Field(ge=0)
    price_discount: float | None = Field(None, ge=0)
    summary: str = Field(min_length=1)
    description: str | None = None
    image_cover: str = Field(min_length=1, max_length=255)
    images: list[str] = Field(default_factory=list)
    secret_tour: bool = False
    start_dates: list[datetime] = Field(default_factory=list)
    guides: list[UUID] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def name_letters_only(cls, v: str | None) -> str | None:
        return _check_name(v)

    @field_validator("ratings_average")
    @classmethod
    def round_ratings_average(cls, v: float) -> float:
        return round_rating(v)

    @model_validator(mode="after")
    def validate_discount(self):
        _check_discount(self.price, self.price_discount)
        return self

    @field_serializer("start_dates")
    def dump_start_dates(self, v: list[datetime] | None) -> list[str] | None:
        return _iso_dates(v)


class TourUpdate(BaseModel):
    """Partial tour update — only keys present in the request are applied."""
    model_config = _SCHEMA_CONFIG

    name: str = Field(None, min_length=10, max_length=40)
    duration: int = Field(None, gt=0)
    max_group_size: int = Field(None, gt=0)
    difficulty: Difficulty = None
    ratings_average: float = Field(None, ge=MIN_RATING, le=MAX_RATING)
    ratings_quantity: int = Field(None, ge=0)
    price: float = Field(None, ge=0)
    price_discount: float | None = Field(None, ge=0)
    summary: str = Field(None, min_length=1)
    description: str | None = None
    image_cover: str = Field(None, min_length=1, max_length=255)
    images: list[str] = None
    secret_tour: bool = None
    start_dates: list[datetime] = None
    guides: list[UUID] = None

    @field_validator("name")
    @classmethod
    def name_letters_only(cls, v: str | None) -> str | None:
        return _check_name(v)

    @field_validator("ratings_average")
    @classmethod
    def round_ratings_average(cls, v: float) -> float:
        return round_rating(v)

    @model_validator(mode="after")
    def validate_discount(self):
        _check_discount(self.price, self.price_discount)
        return self

    @field_serializer("start_dates")
    def dump_start_dates(self, v: list[datetime] | None) -> list[str] | None:
        return _iso_dates(v)
