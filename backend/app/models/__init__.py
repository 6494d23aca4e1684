"""ORM Models — SQLAlchemy declarative models for all resources.

Invariants:
    - All models inherit from Base (db/base.py)
    - Every model has a UUID id and an ORM-managed version column

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from app.models.tour import Tour  # noqa: F401
from app.models.user import User  # noqa: F401
from app.models.review import Review  # noqa: F401
from app.models.booking import Booking  # noqa: F401
