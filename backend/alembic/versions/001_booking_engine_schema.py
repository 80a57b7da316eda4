# backend/alembic/versions/001_booking_engine_schema.py
"""Directory read models + booking engine tables

Revision ID: 001_booking_engine_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_booking_engine_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BOOKING_STATUSES = (
    "'pending','confirmed','in_progress','completed','cancelled','no_show','rescheduled'"
)


def _create_extension_prefer_extensions_schema(extension_name: str) -> None:
    """Create extension using extensions schema when available."""

    bind = op.get_bind()
    if bind is None or bind.dialect.name != "postgresql":
        return

    op.execute(
        f"""
        DO $$
        DECLARE
            extensions_schema_exists BOOLEAN;
            extension_installed BOOLEAN;
        BEGIN
            SELECT EXISTS (
                SELECT 1 FROM pg_namespace WHERE nspname = 'extensions'
            ) INTO extensions_schema_exists;

            SELECT EXISTS (
                SELECT 1 FROM pg_extension WHERE extname = '{extension_name}'
            ) INTO extension_installed;

            IF NOT extension_installed THEN
                IF extensions_schema_exists THEN
                    EXECUTE 'CREATE EXTENSION IF NOT EXISTS {extension_name} WITH SCHEMA extensions';
                ELSE
                    EXECUTE 'CREATE EXTENSION IF NOT EXISTS {extension_name}';
                END IF;
            END IF;
        END
        $$;
        """
    )


def upgrade() -> None:
    """Create directory tables, bookings and reschedule history."""
    print("Creating booking engine tables...")

    bind = op.get_bind()
    dialect_name = bind.dialect.name if bind is not None else "postgresql"
    is_postgres = dialect_name == "postgresql"

    print("Creating users table...")
    op.create_table(
        "users",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="owner"),
        sa.Column("account_status", sa.String(20), nullable=False, server_default="active"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("role IN ('admin', 'mechanic', 'owner')", name="ck_users_role"),
        sa.CheckConstraint(
            "account_status IN ('active', 'inactive', 'suspended')",
            name="ck_users_account_status",
        ),
    )
    op.create_index("ix_users_id", "users", ["id"], unique=False)
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"], unique=False)

    print("Creating vehicles table...")
    op.create_table(
        "vehicles",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("owner_id", sa.String(26), nullable=False),
        sa.Column("make", sa.String(50), nullable=False),
        sa.Column("model", sa.String(50), nullable=False),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("license_plate", sa.String(20), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_vehicles_id", "vehicles", ["id"], unique=False)
    op.create_index("ix_vehicles_owner_id", "vehicles", ["owner_id"], unique=False)

    print("Creating services table...")
    op.create_table(
        "services",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("service_name", sa.String(100), nullable=False),
        sa.Column("category", sa.String(50), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("base_cost", sa.Numeric(10, 2), nullable=False),
        sa.Column("estimated_duration", sa.Integer(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("mechanic_id", sa.String(26), nullable=True),
        sa.Column("total_bookings", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["mechanic_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("base_cost >= 0", name="check_service_cost_non_negative"),
        sa.CheckConstraint("estimated_duration >= 15", name="check_service_duration_minimum"),
        sa.CheckConstraint("estimated_duration <= 480", name="check_service_duration_maximum"),
    )
    op.create_index("ix_services_id", "services", ["id"], unique=False)

    print("Creating bookings table...")
    op.create_table(
        "bookings",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("owner_id", sa.String(26), nullable=False),
        sa.Column("mechanic_id", sa.String(26), nullable=False),
        sa.Column("vehicle_id", sa.String(26), nullable=False),
        sa.Column("service_id", sa.String(26), nullable=False),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("booking_time", sa.String(5), nullable=False),
        sa.Column("estimated_duration", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("service_location", sa.String(30), nullable=False, server_default="at_garage"),
        sa.Column("priority", sa.String(10), nullable=False, server_default="normal"),
        sa.Column("special_instructions", sa.Text(), nullable=True),
        sa.Column("estimated_cost", sa.Numeric(10, 2), nullable=False),
        sa.Column("actual_cost", sa.Numeric(10, 2), nullable=True),
        sa.Column("customer_note", sa.Text(), nullable=True),
        sa.Column("mechanic_note", sa.Text(), nullable=True),
        sa.Column("admin_note", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by_id", sa.String(26), nullable=True),
        sa.Column("cancellation_reason", sa.String(200), nullable=True),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["mechanic_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["cancelled_by_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["vehicle_id"], ["vehicles.id"]),
        sa.ForeignKeyConstraint(["service_id"], ["services.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(f"status IN ({BOOKING_STATUSES})", name="ck_bookings_status"),
        sa.CheckConstraint(
            "service_location IN ('at_garage','mobile','pickup_delivery','roadside')",
            name="ck_bookings_service_location",
        ),
        sa.CheckConstraint(
            "priority IN ('low','normal','high','urgent')", name="ck_bookings_priority"
        ),
        sa.CheckConstraint("estimated_duration >= 15", name="check_duration_minimum"),
        sa.CheckConstraint("estimated_duration <= 480", name="check_duration_maximum"),
        sa.CheckConstraint("estimated_cost >= 0", name="check_estimated_cost_non_negative"),
        sa.CheckConstraint(
            "actual_cost IS NULL OR actual_cost >= 0", name="check_actual_cost_non_negative"
        ),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"], unique=False)
    op.create_index("ix_bookings_owner_id", "bookings", ["owner_id"], unique=False)
    op.create_index("ix_bookings_mechanic_id", "bookings", ["mechanic_id"], unique=False)
    op.create_index("ix_bookings_booking_date", "bookings", ["booking_date"], unique=False)
    op.create_index("ix_bookings_status", "bookings", ["status"], unique=False)
    op.create_index(
        "ix_bookings_mechanic_status_date",
        "bookings",
        ["mechanic_id", "status", "booking_date"],
        unique=False,
    )

    if is_postgres:
        # Storage-level backstop: active bookings of one mechanic never overlap
        _create_extension_prefer_extensions_schema("btree_gist")
        op.execute(
            """
            ALTER TABLE bookings
              ADD COLUMN IF NOT EXISTS booking_span tsrange
              GENERATED ALWAYS AS (
                tsrange(
                  booking_date + make_time(
                    split_part(booking_time, ':', 1)::int,
                    split_part(booking_time, ':', 2)::int,
                    0
                  ),
                  booking_date + make_time(
                    split_part(booking_time, ':', 1)::int,
                    split_part(booking_time, ':', 2)::int,
                    0
                  ) + make_interval(mins => estimated_duration),
                  '[)'
                )
              ) STORED
            """
        )
        op.execute(
            """
            ALTER TABLE bookings
              ADD CONSTRAINT bookings_no_overlap_per_mechanic
              EXCLUDE USING gist (
                mechanic_id WITH =,
                booking_span WITH &&
              )
              WHERE (status IN ('confirmed','in_progress'))
            """
        )

    print("Creating booking_reschedule_history table...")
    op.create_table(
        "booking_reschedule_history",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("booking_id", sa.String(26), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("original_date", sa.Date(), nullable=False),
        sa.Column("original_time", sa.String(5), nullable=False),
        sa.Column("new_date", sa.Date(), nullable=False),
        sa.Column("new_time", sa.String(5), nullable=False),
        sa.Column("reason", sa.String(200), nullable=False),
        sa.Column("changed_by_id", sa.String(26), nullable=False),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["changed_by_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("booking_id", "sequence", name="uq_booking_reschedule_sequence"),
    )
    op.create_index(
        "ix_booking_reschedule_history_booking_id",
        "booking_reschedule_history",
        ["booking_id"],
        unique=False,
    )

    print("Booking engine tables created")


def downgrade() -> None:
    """Drop booking engine tables."""
    print("Dropping booking engine tables...")

    op.drop_index(
        "ix_booking_reschedule_history_booking_id", table_name="booking_reschedule_history"
    )
    op.drop_table("booking_reschedule_history")

    bind = op.get_bind()
    if bind is not None and bind.dialect.name == "postgresql":
        op.execute("ALTER TABLE bookings DROP CONSTRAINT IF EXISTS bookings_no_overlap_per_mechanic")
        op.execute("ALTER TABLE bookings DROP COLUMN IF EXISTS booking_span")

    for index_name in (
        "ix_bookings_mechanic_status_date",
        "ix_bookings_status",
        "ix_bookings_booking_date",
        "ix_bookings_mechanic_id",
        "ix_bookings_owner_id",
        "ix_bookings_id",
    ):
        op.drop_index(index_name, table_name="bookings")
    op.drop_table("bookings")

    op.drop_index("ix_services_id", table_name="services")
    op.drop_table("services")

    op.drop_index("ix_vehicles_owner_id", table_name="vehicles")
    op.drop_index("ix_vehicles_id", table_name="vehicles")
    op.drop_table("vehicles")

    op.drop_index("ix_users_role", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_id", table_name="users")
    op.drop_table("users")
