"""Initial schema: users, categories, locations, events, tickets, settings.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LIVE = sa.text("deleted = false")


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _tombstone() -> list:
    return [
        sa.Column("deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'participant'")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        *_tombstone(),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_deleted", "users", ["deleted"])
    # Email is unique among live accounts; a deleted account frees it
    op.create_index("uq_users_email_live", "users", ["email"], unique=True, postgresql_where=LIVE)

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        *_timestamps(),
        *_tombstone(),
    )
    op.create_index("ix_categories_id", "categories", ["id"])
    op.create_index("ix_categories_deleted", "categories", ["deleted"])
    op.create_index("uq_categories_name_live", "categories", ["name"], unique=True, postgresql_where=LIVE)

    op.create_table(
        "locations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(2000), nullable=True),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("validated_by_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
        *_tombstone(),
    )
    op.create_index("ix_locations_id", "locations", ["id"])
    op.create_index("ix_locations_created_by_id", "locations", ["created_by_id"])
    op.create_index("ix_locations_status", "locations", ["status"])
    op.create_index("ix_locations_deleted", "locations", ["deleted"])
    op.create_index("uq_locations_name_live", "locations", ["name"], unique=True, postgresql_where=LIVE)

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(5000), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_online", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("online_url", sa.String(2048), nullable=True),
        sa.Column("location_id", sa.Integer(), sa.ForeignKey("locations.id"), nullable=True),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("categories.id"), nullable=False),
        sa.Column("organizer_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(30), nullable=False, server_default=sa.text("'draft'")),
        sa.Column("rejection_reason", sa.String(2000), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("max_participants", sa.Integer(), nullable=False),
        sa.Column("participant_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("images", sa.JSON(), nullable=False),
        *_timestamps(),
        *_tombstone(),
        sa.CheckConstraint("end_date >= start_date", name="check_event_dates_ordered"),
        sa.CheckConstraint("price >= 0", name="check_event_price_non_negative"),
        sa.CheckConstraint("max_participants >= 1", name="check_event_capacity_positive"),
        sa.CheckConstraint("participant_count >= 0", name="check_participants_non_negative"),
        # Last line of defence for the conditional seat claim
        sa.CheckConstraint("participant_count <= max_participants", name="check_participants_lte_capacity"),
    )
    op.create_index("ix_events_id", "events", ["id"])
    op.create_index("ix_events_location_id", "events", ["location_id"])
    op.create_index("ix_events_category_id", "events", ["category_id"])
    op.create_index("ix_events_organizer_id", "events", ["organizer_id"])
    op.create_index("ix_events_deleted", "events", ["deleted"])
    op.create_index("ix_events_start_date", "events", ["start_date"])
    # Serves both the public listing (published, end_date >= now) and the finished sweep
    op.create_index("ix_events_status_end_date", "events", ["status", "end_date"])

    op.create_table(
        "tickets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("ticket_number", sa.String(64), nullable=False, unique=True),
        sa.Column("qr_code_data", sa.String(64), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'valid'")),
        sa.Column("purchase_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("price_at_purchase", sa.Numeric(10, 2), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_tickets_id", "tickets", ["id"])
    op.create_index("ix_tickets_event_id", "tickets", ["event_id"])
    op.create_index("ix_tickets_user_id", "tickets", ["user_id"])
    # One active ticket per (event, user); cancelled tickets stay as history
    op.create_index(
        "uq_tickets_event_user_active",
        "tickets",
        ["event_id", "user_id"],
        unique=True,
        postgresql_where=sa.text("status != 'cancelled'"),
    )

    op.create_table(
        "settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("main_logo", sa.String(500), nullable=False),
        sa.Column("dark_mode_logo", sa.String(500), nullable=False),
        sa.Column("carousel", sa.JSON(), nullable=False),
        sa.Column("about_text", sa.String(5000), nullable=False),
        sa.Column("carousel_welcome_text", sa.String(255), nullable=False),
        sa.Column("carousel_app_name_text", sa.String(255), nullable=False),
        sa.Column("carousel_description_text", sa.String(500), nullable=False),
        sa.Column("founder_name", sa.String(255), nullable=False),
        sa.Column("founder_role", sa.String(255), nullable=False),
        sa.Column("founder_image", sa.String(500), nullable=False),
        sa.Column("founder_bio", sa.String(5000), nullable=False),
        sa.Column("call_to_action_text", sa.String(2000), nullable=False),
        sa.Column("values", sa.JSON(), nullable=False),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("settings")
    op.drop_table("tickets")
    op.drop_table("events")
    op.drop_table("locations")
    op.drop_table("categories")
    op.drop_table("users")
