"""Ratings — rating arithmetic shared by tour schemas and review aggregation.

Invariants:
    - Ratings live in [1.0, 5.0] with one decimal place
    - A tour without reviews falls back to DEFAULT_RATINGS_AVERAGE / quantity 0
"""

import math

DEFAULT_RATINGS_AVERAGE = 4.5
MIN_RATING = 1
MAX_RATING = 5


def round_rating(value: float) -> float:
    """Round half up to one decimal (4.66 -> 4.7, 4.25 -> 4.3)."""
    return math.floor(value * 10 + 0.5) / 10
