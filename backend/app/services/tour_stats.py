"""Tour Stats — aggregate reports over the tour table.

Invariants:
    - Reports read every tour, secret ones included (no default scope)
    - Stats: tours rated >= min_rating grouped by difficulty, cheapest group first
    - Monthly plan: one entry per month of `year` with departures, busiest first,
      ties broken by month; tour names listed alphabetically

Design Decisions:
    - Monthly plan unwinds start_dates in Python: dates live in a JSON column whose
      SQL functions differ between PostgreSQL and SQLite
"""

from collections import defaultdict
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.tour import Tour

STATS_MIN_RATING = 4.5
MONTHS_PER_YEAR = 12


async def compute_tour_stats(
    db: AsyncSession, min_rating: float = STATS_MIN_RATING,
) -> list[dict]:
    """Group tours rated >= min_rating by difficulty, cheapest group first."""
    difficulty = func.upper(Tour.difficulty)
    avg_price = func.avg(Tour.price)
    stmt = (
        select(
            difficulty.label("difficulty"),
            func.count(Tour.id).label("num_tours"),
            func.sum(Tour.ratings_quantity).label("num_ratings"),
            func.avg(Tour.ratings_average).label("avg_rating"),
            avg_price.label("avg_price"),
            func.min(Tour.price).label("min_price"),
            func.max(Tour.price).label("max_price"),
        )
        .where(Tour.ratings_average >= min_rating)
        .group_by(difficulty)
        .order_by(avg_price)
    )
    result = await db.execute(stmt)
    return [dict(row) for row in result.mappings().all()]


async def compute_monthly_plan(db: AsyncSession, year: int) -> list[dict]:
    """Departures per month of one year: [{month, num_tour_starts, tours}]."""
    result = await db.execute(
        select(Tour.name, Tour.start_dates).order_by(Tour.name),
    )
    tours_by_month: dict[int, list[str]] = defaultdict(list)
    for name, start_dates in result.all():
        for text in start_dates or ():
            starts_at = datetime.fromisoformat(text)
            if starts_at.year == year:
                tours_by_month[starts_at.month].append(name)

    plan = [
        {"month": month, "num_tour_starts": len(names), "tours": names}
        for month, names in tours_by_month.items()
    ]
    plan.sort(key=lambda entry: (-entry["num_tour_starts"], entry["month"]))
    return plan[:MONTHS_PER_YEAR]
