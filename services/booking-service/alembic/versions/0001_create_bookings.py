from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("booking_id", sa.String(), nullable=False),
        sa.Column("booking_type", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("total_amount", sa.Float(), nullable=False),
        sa.Column("payment_method", sa.String(), nullable=False),
        sa.Column("payment_status", sa.String(), nullable=False),
        sa.Column("booker_id", sa.String(), nullable=False),
        sa.Column("booker_name", sa.String(), nullable=False),
        sa.Column("booker_email", sa.String(), nullable=False),
        sa.Column("booker_phone", sa.String(), nullable=False),
        sa.Column("booker_address", sa.String(), nullable=False),
        sa.Column("listing_id", sa.String(), nullable=False),
        sa.Column("listing_model", sa.String(), nullable=False),
        sa.Column("listing_title", sa.String(), nullable=False),
        sa.Column("listing_price", sa.Float(), nullable=False),
        sa.Column("listing_image", sa.String(), nullable=True),
        sa.Column("owner_id", sa.String(), nullable=False),
        sa.Column("owner_name", sa.String(), nullable=False),
        sa.Column("owner_email", sa.String(), nullable=False),
        sa.Column("owner_phone", sa.String(), nullable=False),
        sa.Column("special_requests", sa.Text(), nullable=False),
        sa.Column("number_of_guests", sa.Integer(), nullable=True),
        sa.Column("pickup_location", sa.String(), nullable=True),
        sa.Column("dropoff_location", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_bookings_booking_id", "bookings", ["booking_id"], unique=True)
    op.create_index("ix_bookings_booker_status", "bookings", ["booker_id", "status"], unique=False)
    op.create_index("ix_bookings_owner_status", "bookings", ["owner_id", "status"], unique=False)
    op.create_index("ix_bookings_listing_status", "bookings", ["listing_id", "status"], unique=False)
    op.create_index("ix_bookings_dates", "bookings", ["start_date", "end_date"], unique=False)

def downgrade():
    op.drop_index("ix_bookings_dates", table_name="bookings")
    op.drop_index("ix_bookings_listing_status", table_name="bookings")
    op.drop_index("ix_bookings_owner_status", table_name="bookings")
    op.drop_index("ix_bookings_booker_status", table_name="bookings")
    op.drop_index("ix_bookings_booking_id", table_name="bookings")
    op.drop_table("bookings")
