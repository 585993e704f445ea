from alembic import op
import sqlalchemy as sa

revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        "owner_earnings",
        sa.Column("owner_id", sa.String(), primary_key=True),
        sa.Column("total_earnings", sa.Float(), nullable=False, server_default="0"),
        sa.Column("completed_bookings", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("pending_payout", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_payout", sa.Float(), nullable=False, server_default="0"),
    )
    op.create_table(
        "earnings_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.String(), nullable=False),
        sa.Column("booking_id", sa.String(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("booking_type", sa.String(), nullable=False),
        sa.Column("listing_title", sa.String(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.UniqueConstraint("booking_id", name="uq_earnings_history_booking_id"),
    )
    op.create_index("ix_earnings_history_owner_id", "earnings_history", ["owner_id"], unique=False)

def downgrade():
    op.drop_index("ix_earnings_history_owner_id", table_name="earnings_history")
    op.drop_table("earnings_history")
    op.drop_table("owner_earnings")
