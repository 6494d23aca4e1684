"""Resource Definitions — the concrete resources served by the generic handlers.

Invariants:
    - One ResourceDefinition per resource; routes never build their own
    - Default scopes hide secret tours and inactive users from every lookup
    - Reads of reviews/bookings expand their references with a narrow field set
    - Tour writes carry guide ids; the tour detail view expands guides and reviews

Design Decisions:
    - Scopes are callables so the SQL expression is built per query, not at import
"""

from app.infrastructure.resource_store import ResourceDefinition
from app.models.booking import Booking
from app.models.review import Review
from app.models.tour import Tour
from app.models.user import User
from app.schemas.booking import BookingCreate, BookingUpdate
from app.schemas.review import ReviewCreate, ReviewUpdate
from app.schemas.tour import TourCreate, TourUpdate, check_merged_tour
from app.schemas.user import UserCreate, UserUpdate
from app.services.review_ratings import after_review_write

TOUR_RESOURCE = ResourceDefinition(
    name="tour",
    model=Tour,
    create_schema=TourCreate,
    update_schema=TourUpdate,
    default_scope=lambda: Tour.secret_tour.is_not(True),
    merged_check=check_merged_tour,
    references={"guides": User},
    expansion_fields={"guides": ("id", "name", "email", "photo", "role")},
)

# Expanded by GET /tours/{id}
TOUR_DETAIL_EXPAND = ("guides", "reviews")

REVIEW_RESOURCE = ResourceDefinition(
    name="review",
    model=Review,
    create_schema=ReviewCreate,
    update_schema=ReviewUpdate,
    default_expand=("user",),
    expansion_fields={"user": ("id", "name", "photo")},
    after_write=after_review_write,
)

USER_RESOURCE = ResourceDefinition(
    name="user",
    model=User,
    create_schema=UserCreate,
    update_schema=UserUpdate,
    default_scope=lambda: User.active.is_not(False),
)

BOOKING_RESOURCE = ResourceDefinition(
    name="booking",
    model=Booking,
    create_schema=BookingCreate,
    update_schema=BookingUpdate,
    default_expand=("tour", "user"),
    expansion_fields={
        "tour": ("id", "name", "duration"),
        "user": ("id", "name", "email"),
    },
)
