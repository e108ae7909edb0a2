"""Booking core: users, hotels, rooms, inventory, rate plans, promotions, bookings, payments

Revision ID: booking_001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "booking_001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(32)),
        sa.Column("role", sa.String(20), server_default="guest"),
        sa.Column("is_active", sa.Boolean, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # --- hotels ---
    op.create_table(
        "hotels",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False, unique=True),
        sa.Column("description", sa.Text),
        sa.Column("island", sa.String(100)),
        sa.Column("atoll", sa.String(100)),
        sa.Column("email", sa.String(255)),
        sa.Column("phone", sa.String(32)),
        sa.Column("star_rating", sa.Integer),
        sa.Column("currency", sa.String(3), server_default="USD"),
        sa.Column("manager_id", sa.Uuid, sa.ForeignKey("users.id")),
        sa.Column("is_active", sa.Boolean, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- rooms ---
    op.create_table(
        "rooms",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("hotel_id", sa.Uuid, sa.ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("type", sa.String(30), server_default="STANDARD_ROOM"),
        sa.Column("capacity", sa.Integer, server_default="2"),
        sa.Column("bed_type", sa.String(50)),
        sa.Column("view", sa.String(100)),
        sa.Column("base_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), server_default="USD"),
        sa.Column("total_units", sa.Integer, server_default="1"),
        sa.Column("is_active", sa.Boolean, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("hotel_id", "slug", name="uq_rooms_hotel_slug"),
    )
    op.create_index("ix_rooms_hotel_id", "rooms", ["hotel_id"])

    # --- inventory ---
    op.create_table(
        "inventory",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("hotel_id", sa.Uuid, sa.ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False),
        sa.Column("room_id", sa.Uuid, sa.ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("available", sa.Integer, nullable=False, server_default="0"),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), server_default="USD"),
        sa.Column("min_stay", sa.Integer),
        sa.Column("max_stay", sa.Integer),
        sa.Column("is_blocked", sa.Boolean, server_default=sa.false()),
        sa.Column("reason", sa.Text),
        sa.UniqueConstraint("room_id", "date", name="uq_inventory_room_date"),
        sa.CheckConstraint("available >= 0", name="ck_inventory_available_non_negative"),
    )
    op.create_index("idx_inventory_hotel_date", "inventory", ["hotel_id", "date"])

    # --- rate_plans ---
    op.create_table(
        "rate_plans",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("room_id", sa.Uuid, sa.ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("base_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("min_stay", sa.Integer),
        sa.Column("max_stay", sa.Integer),
        sa.Column("discount", sa.Numeric(5, 2)),
        sa.Column("markup", sa.Numeric(5, 2)),
        sa.Column("priority", sa.Integer, server_default="0"),
        sa.Column("is_active", sa.Boolean, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_rate_plans_room_id", "rate_plans", ["room_id"])

    # --- promotions ---
    op.create_table(
        "promotions",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("hotel_id", sa.Uuid, sa.ForeignKey("hotels.id", ondelete="CASCADE")),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("code", sa.String(50), unique=True),
        sa.Column("discount_type", sa.String(20), nullable=False),
        sa.Column("discount_value", sa.Numeric(10, 2), nullable=False),
        sa.Column("max_discount", sa.Numeric(10, 2)),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("usage_limit", sa.Integer),
        sa.Column("usage_count", sa.Integer, server_default="0"),
        sa.Column("min_amount", sa.Numeric(10, 2)),
        sa.Column("min_nights", sa.Integer),
        sa.Column("is_active", sa.Boolean, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_promotions_hotel_id", "promotions", ["hotel_id"])

    # --- bookings ---
    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("booking_number", sa.String(40), nullable=False, unique=True),
        sa.Column("user_id", sa.Uuid, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("hotel_id", sa.Uuid, sa.ForeignKey("hotels.id"), nullable=False),
        sa.Column("promotion_id", sa.Uuid, sa.ForeignKey("promotions.id")),
        sa.Column("guest_first_name", sa.String(100), nullable=False),
        sa.Column("guest_last_name", sa.String(100), nullable=False),
        sa.Column("guest_email", sa.String(255), nullable=False),
        sa.Column("guest_phone", sa.String(32), nullable=False),
        sa.Column("check_in", sa.Date, nullable=False),
        sa.Column("check_out", sa.Date, nullable=False),
        sa.Column("nights", sa.Integer, nullable=False),
        sa.Column("adults", sa.Integer, server_default="1"),
        sa.Column("children", sa.Integer, server_default="0"),
        sa.Column("infants", sa.Integer, server_default="0"),
        sa.Column("subtotal", sa.Numeric(10, 2), nullable=False),
        sa.Column("taxes", sa.Numeric(10, 2), nullable=False),
        sa.Column("fees", sa.Numeric(10, 2), nullable=False),
        sa.Column("discount", sa.Numeric(10, 2), server_default="0"),
        sa.Column("total", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), server_default="USD"),
        sa.Column("status", sa.String(20), server_default="PENDING"),
        sa.Column("payment_status", sa.String(20), server_default="PENDING"),
        sa.Column("special_requests", sa.Text),
        sa.Column("stripe_payment_id", sa.String(255)),
        sa.Column("cancelled_at", sa.DateTime(timezone=True)),
        sa.Column("cancellation_reason", sa.Text),
        sa.Column("refund_amount", sa.Numeric(10, 2)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_hotel_id", "bookings", ["hotel_id"])
    op.create_index("idx_bookings_hotel_stay", "bookings", ["hotel_id", "check_in", "check_out"])

    # --- booking_rooms ---
    op.create_table(
        "booking_rooms",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("booking_id", sa.Uuid, sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("room_id", sa.Uuid, sa.ForeignKey("rooms.id"), nullable=False),
        sa.Column("rate_plan_id", sa.Uuid, sa.ForeignKey("rate_plans.id")),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("total", sa.Numeric(10, 2), nullable=False),
    )
    op.create_index("ix_booking_rooms_booking_id", "booking_rooms", ["booking_id"])

    # --- payments ---
    op.create_table(
        "payments",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("booking_id", sa.Uuid, sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("method", sa.String(20), server_default="STRIPE"),
        sa.Column("status", sa.String(20), server_default="PENDING"),
        sa.Column("stripe_payment_id", sa.String(255)),
        sa.Column("gateway_response", sa.JSON),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_payments_booking_id", "payments", ["booking_id"])
    op.create_index("ix_payments_stripe_payment_id", "payments", ["stripe_payment_id"])


def downgrade() -> None:
    op.drop_table("payments")
    op.drop_table("booking_rooms")
    op.drop_table("bookings")
    op.drop_table("promotions")
    op.drop_table("rate_plans")
    op.drop_table("inventory")
    op.drop_table("rooms")
    op.drop_table("hotels")
    op.drop_index("ix_users_email")
    op.drop_table("users")
