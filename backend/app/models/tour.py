"""Tour ORM — persists bookable tours, the parent resource of reviews and bookings.

Invariants:
    - id is UUID primary key (client-side default)
    - name is unique; slug is re-derived whenever name is assigned
    - version is managed by the ORM (optimistic concurrency) and hidden from clients
    - secret tours exist in the table but are excluded by the resource's default scope
    - guides reference users through tour_guides; rows cascade with either side

Design Decisions:
    - ratings_average/ratings_quantity denormalized: recomputed from reviews on every
      review write so listings can sort by rating without a JOIN
    - reviews relationship uses passive_deletes: the database cascades, the ORM never
      lazy-loads children during an async delete
"""

import re
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, Column, DateTime, Float, ForeignKey, Index, Integer, JSON, String,
    Table, Text, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from app.core.ratings import DEFAULT_RATINGS_AVERAGE
from app.db.base import Base


# Tour <-> User (guides), many-to-many
tour_guides = Table(
    "tour_guides",
    Base.metadata,
    Column("tour_id", Uuid, ForeignKey("tours.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


def slugify(text: str) -> str:
    """'The Forest Hiker' -> 'the-forest-hiker'."""
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


class Tour(Base):
    """Tour entity — a guided trip with pricing and rating statistics."""
    __tablename__ = "tours"
    __table_args__ = (
        Index("ix_tours_price_ratings_average", "price", "ratings_average"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(40), nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(String(60), nullable=False, index=True)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    max_group_size: Mapped[int] = mapped_column(Integer, nullable=False)
    difficulty: Mapped[str] = mapped_column(String(20), nullable=False)
    ratings_average: Mapped[float] = mapped_column(
        Float, nullable=False, default=DEFAULT_RATINGS_AVERAGE,
    )
    ratings_quantity: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    price: Mapped[float] = mapped_column(Float, nullable=False)
    price_discount: Mapped[float | None] = mapped_column(Float, nullable=True)
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_cover: Mapped[str] = mapped_column(String(255), nullable=False)
    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    # ISO-8601 strings, one per scheduled departure
    start_dates: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    secret_tour: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    reviews: Mapped[list["Review"]] = relationship(
        "Review", back_populates="tour",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    guides: Mapped[list["User"]] = relationship(
        "User", secondary=tour_guides, passive_deletes=True,
    )

    __mapper_args__ = {"version_id_col": version}

    @validates("name")
    def _derive_slug(self, key: str, value: str) -> str:
        self.slug = slugify(value)
        return value
