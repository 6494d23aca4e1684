"""User ORM — persists account profile data.

Invariants:
    - email is unique
    - role is one of UserRole; defaults to "user"
    - inactive users stay in the table but are excluded by the resource's default scope

Design Decisions:
    - No credential columns: password storage and token issuance live outside this service
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.core.domain_types import UserRole
from app.db.base import Base


class User(Base):
    """User entity — a customer, guide or administrator."""
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    photo: Mapped[str] = mapped_column(
        String(255), nullable=False, default="default.jpg",
    )
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserRole.USER.value,
    )
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
