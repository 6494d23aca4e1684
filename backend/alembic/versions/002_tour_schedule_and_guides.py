"""Tour start dates and guides.

Revision ID: 002_tour_schedule
Revises: 001_initial
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002_tour_schedule"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        "tours",
        sa.Column("start_dates", sa.JSON, nullable=False, server_default="[]"),
    )
    op.create_table(
        "tour_guides",
        sa.Column("tour_id", sa.Uuid, sa.ForeignKey("tours.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", sa.Uuid, sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    )


def downgrade() -> None:
    op.drop_table("tour_guides")
    op.drop_column("tours", "start_dates")
