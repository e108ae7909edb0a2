"""Guest reviews with moderation

Revision ID: booking_002
Revises: booking_001
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "booking_002"
down_revision = "booking_001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "reviews",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("hotel_id", sa.Uuid, sa.ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("overall_rating", sa.Integer, nullable=False),
        sa.Column("cleanliness_rating", sa.Integer),
        sa.Column("service_rating", sa.Integer),
        sa.Column("location_rating", sa.Integer),
        sa.Column("value_rating", sa.Integer),
        sa.Column("title", sa.String(255)),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("pros", sa.Text),
        sa.Column("cons", sa.Text),
        sa.Column("stay_date", sa.Date),
        sa.Column("is_verified", sa.Boolean, server_default=sa.false()),
        sa.Column("is_approved", sa.Boolean, server_default=sa.false()),
        sa.Column("moderated_by", sa.Uuid, sa.ForeignKey("users.id")),
        sa.Column("moderated_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "hotel_id", name="uq_reviews_user_hotel"),
    )
    op.create_index("ix_reviews_hotel_id", "reviews", ["hotel_id"])


def downgrade() -> None:
    op.drop_index("ix_reviews_hotel_id")
    op.drop_table("reviews")
