"""Initial schema — tours, users, reviews, bookings.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "tours",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("name", sa.String(40), nullable=False, unique=True),
        sa.Column("slug", sa.String(60), nullable=False),
        sa.Column("duration", sa.Integer, nullable=False),
        sa.Column("max_group_size", sa.Integer, nullable=False),
        sa.Column("difficulty", sa.String(20), nullable=False),
        sa.Column("ratings_average", sa.Float, nullable=False, server_default="4.5"),
        sa.Column("ratings_quantity", sa.Integer, nullable=False, server_default="0"),
        sa.Column("price", sa.Float, nullable=False),
        sa.Column("price_discount", sa.Float, nullable=True),
        sa.Column("summary", sa.Text, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("image_cover", sa.String(255), nullable=False),
        sa.Column("images", sa.JSON, nullable=False),
        sa.Column("secret_tour", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("version", sa.Integer, nullable=False),
    )
    op.create_index("ix_tours_slug", "tours", ["slug"])
    op.create_index("ix_tours_price_ratings_average", "tours", ["price", "ratings_average"])

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("photo", sa.String(255), nullable=False, server_default="default.jpg"),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        sa.Column("active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("version", sa.Integer, nullable=False),
    )

    op.create_table(
        "reviews",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("review", sa.Text, nullable=False),
        sa.Column("rating", sa.Float, nullable=True),
        sa.Column("tour_id", sa.Uuid, sa.ForeignKey("tours.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("version", sa.Integer, nullable=False),
        sa.UniqueConstraint("tour_id", "user_id", name="uq_reviews_tour_user"),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("tour_id", sa.Uuid, sa.ForeignKey("tours.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("price", sa.Float, nullable=False),
        sa.Column("paid", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("version", sa.Integer, nullable=False),
    )


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("reviews")
    op.drop_table("users")
    op.drop_index("ix_tours_price_ratings_average", table_name="tours")
    op.drop_index("ix_tours_slug", table_name="tours")
    op.drop_table("tours")
