"""Review Ratings — keeps a tour's rating statistics in sync with its reviews.

Invariants:
    - ratings_quantity counts rated reviews only; ratings_average is their mean, rounded
    - A tour with no rated reviews falls back to the defaults (0, 4.5)
    - Runs inside the caller's session; the caller commits

Design Decisions:
    - Recomputed from scratch on every review write: one aggregate query, no drift
"""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.ratings import DEFAULT_RATINGS_AVERAGE, round_rating
from app.models.review import Review
from app.models.tour import Tour

logger = logging.getLogger(__name__)


async def refresh_tour_ratings(db: AsyncSession, tour_id: UUID) -> None:
    """Recompute ratings_quantity/ratings_average for one tour."""
    result = await db.execute(
        select(func.count(Review.rating), func.avg(Review.rating))
        .where(Review.tour_id == tour_id),
    )
    quantity, average = result.one()
    tour = await db.get(Tour, tour_id)
    if tour is None:
        return
    if quantity:
        tour.ratings_quantity = quantity
        tour.ratings_average = round_rating(average)
    else:
        tour.ratings_quantity = 0
        tour.ratings_average = DEFAULT_RATINGS_AVERAGE
    logger.debug(
        f"Tour {tour_id} ratings: {tour.ratings_average} ({tour.ratings_quantity})",
        extra={"resource": "tour", "document_id": str(tour_id)},
    )


async def after_review_write(db: AsyncSession, review: Review) -> None:
    await refresh_tour_ratings(db, review.tour_id)
