"""add exclusion constraint preventing overlapping active bookings per theatre

Revision ID: 2
Revises: 1
Create Date: 2025-09-02 09:30:00.000000

"""
from alembic import op


# revision identifiers, used by Alembic.
revision = '2'
down_revision = '1'
branch_labels = None
depends_on = None


def upgrade():
    # PostgreSQL only. Two non-cancelled bookings in one theatre may not share
    # any instant of [date + start, date + end).
    bind = op.get_bind()
    if bind.dialect.name != 'postgresql':
        return
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
    op.execute(
        """
        ALTER TABLE bookings
        ADD CONSTRAINT bookings_no_overlap
        EXCLUDE USING gist (
            operation_theater WITH =,
            tsrange(booking_date + start_time, booking_date + end_time, '[)') WITH &&
        )
        WHERE (status <> 'cancelled')
        """
    )


def downgrade():
    bind = op.get_bind()
    if bind.dialect.name != 'postgresql':
        return
    op.execute("ALTER TABLE bookings DROP CONSTRAINT IF EXISTS bookings_no_overlap")
