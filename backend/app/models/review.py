"""Review ORM — persists a user's rating and text for one tour.

Invariants:
    - Always belongs to a Tour (tour_id FK) and a User (user_id FK)
    - (tour_id, user_id) is unique: one review per user per tour
    - rating in [1, 5] (enforced by the schema layer)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    DateTime, Float, ForeignKey, Integer, Text, UniqueConstraint, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Review(Base):
    """Review entity — a rating linked to a tour and its author."""
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("tour_id", "user_id", name="uq_reviews_tour_user"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    review: Mapped[str] = mapped_column(Text, nullable=False)
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    tour_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tours.id", ondelete="CASCADE"), nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    tour: Mapped["Tour"] = relationship("Tour", back_populates="reviews")
    user: Mapped["User"] = relationship("User")

    __mapper_args__ = {"version_id_col": version}
