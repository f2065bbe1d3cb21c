"""Add exclusion constraint preventing overlapping active bookings

Revision ID: 8e4d0a6b1c75
Revises: 3f1b7c2a9d40
Create Date: 2026-10-19

Two pending/approved bookings of the same facility may not have
overlapping [start, end) ranges on the same date. The application checks
this under a facility row lock; the constraint guarantees it across
processes. PostgreSQL only (needs btree_gist), skipped on SQLite.
"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '8e4d0a6b1c75'
down_revision: Union[str, None] = '3f1b7c2a9d40'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    if op.get_bind().dialect.name != 'postgresql':
        return

    op.execute('CREATE EXTENSION IF NOT EXISTS btree_gist')
    op.execute(
        """
        ALTER TABLE bookings
        ADD CONSTRAINT no_booking_overlap
        EXCLUDE USING gist (
            facility_id WITH =,
            tsrange(date + start_time, date + end_time, '[)') WITH &&
        )
        WHERE (status IN ('pending', 'approved'))
        """
    )


def downgrade() -> None:
    if op.get_bind().dialect.name != 'postgresql':
        return

    op.execute('ALTER TABLE bookings DROP CONSTRAINT IF EXISTS no_booking_overlap')
