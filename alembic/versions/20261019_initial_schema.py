"""Initial schema: users, residents, staff, facilities, bookings, maintenance

Revision ID: 3f1b7c2a9d40
Revises:
Create Date: 2026-10-19

Creates every table of the reservation system. Resident and staff
name/email/address columns hold Fernet ciphertext, hence Text.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1b7c2a9d40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table('users',
        sa.Column('user_type', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('google_id', sa.String(length=255), nullable=True),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        *_audit_columns(),
        sa.CheckConstraint("user_type IN ('resident', 'staff')", name='ck_user_type'),
        sa.CheckConstraint("status IN ('active', 'inactive', 'suspended')", name='ck_user_status'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('google_id'),
    )

    op.create_table('residents',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('encrypted_address', sa.Text(), nullable=True),
        sa.Column('membership_type', sa.String(length=20), nullable=False),
        sa.Column('membership_start_date', sa.Date(), nullable=True),
        sa.Column('membership_end_date', sa.Date(), nullable=True),
        *_audit_columns(),
        sa.CheckConstraint("membership_type IN ('standard', 'premium', 'family')", name='ck_resident_membership'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )

    op.create_table('staff',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.String(length=50), nullable=False),
        sa.Column('position', sa.String(length=100), nullable=False),
        sa.Column('department', sa.String(length=100), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=False),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('email', sa.Text(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
        sa.UniqueConstraint('employee_id'),
    )
    op.create_index('idx_staff_admin', 'staff', ['is_admin'], unique=False)

    op.create_table('facilities',
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('location', sa.String(length=100), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('is_indoor', sa.Boolean(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('open_time', sa.Time(), nullable=False),
        sa.Column('close_time', sa.Time(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        *_audit_columns(),
        sa.CheckConstraint('capacity > 0', name='ck_facility_capacity_positive'),
        sa.CheckConstraint("status IN ('open', 'closed', 'maintenance')", name='ck_facility_status'),
        sa.ForeignKeyConstraint(['created_by'], ['staff.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_facility_type', 'facilities', ['type'], unique=False)
    op.create_index('idx_facility_status', 'facilities', ['status'], unique=False)

    op.create_table('facility_ratings',
        sa.Column('facility_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('rating', sa.Float(), nullable=False),
        sa.Column('comment', sa.String(length=500), nullable=True),
        *_audit_columns(),
        sa.CheckConstraint('rating >= 1.0 AND rating <= 5.0', name='ck_rating_range'),
        sa.ForeignKeyConstraint(['facility_id'], ['facilities.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('facility_id', 'user_id', name='uq_rating_facility_user'),
    )
    op.create_index('idx_rating_facility', 'facility_ratings', ['facility_id'], unique=False)

    op.create_table('staff_facility_assignments',
        sa.Column('staff_id', sa.Integer(), nullable=False),
        sa.Column('facility_id', sa.Integer(), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False),
        sa.Column('assigned_date', sa.Date(), nullable=False),
        sa.Column('is_primary', sa.Boolean(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['staff_id'], ['staff.id']),
        sa.ForeignKeyConstraint(['facility_id'], ['facilities.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('staff_id', 'facility_id', name='uq_assignment_staff_facility'),
    )
    op.create_index('idx_assignment_staff', 'staff_facility_assignments', ['staff_id'], unique=False)
    op.create_index('idx_assignment_facility', 'staff_facility_assignments', ['facility_id'], unique=False)

    op.create_table('bookings',
        sa.Column('facility_id', sa.Integer(), nullable=False),
        sa.Column('resident_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('purpose', sa.String(length=200), nullable=False),
        sa.Column('attendees', sa.Integer(), nullable=False),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('approval_date', sa.DateTime(timezone=True), nullable=True),
        *_audit_columns(),
        sa.CheckConstraint('start_time < end_time', name='ck_booking_time_order'),
        sa.CheckConstraint('attendees >= 1', name='ck_booking_attendees'),
        sa.CheckConstraint("status IN ('pending', 'approved', 'rejected', 'cancelled')", name='ck_booking_status'),
        sa.ForeignKeyConstraint(['facility_id'], ['facilities.id']),
        sa.ForeignKeyConstraint(['resident_id'], ['residents.id']),
        sa.ForeignKeyConstraint(['approved_by'], ['staff.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_booking_resident', 'bookings', ['resident_id'], unique=False)
    op.create_index('idx_booking_status', 'bookings', ['status'], unique=False)
    op.create_index(
        'idx_booking_facility_date_time', 'bookings',
        ['facility_id', 'date', 'start_time', 'end_time'], unique=False,
    )

    op.create_table('maintenance_reports',
        sa.Column('facility_id', sa.Integer(), nullable=False),
        sa.Column('reported_by_resident', sa.Integer(), nullable=True),
        sa.Column('reported_by_staff', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('priority', sa.String(length=20), nullable=False),
        sa.Column('reported_date', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('assigned_to', sa.Integer(), nullable=True),
        sa.Column('scheduled_date', sa.Date(), nullable=True),
        sa.Column('completion_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('feedback', sa.Text(), nullable=True),
        *_audit_columns(),
        sa.CheckConstraint(
            '(reported_by_resident IS NULL) <> (reported_by_staff IS NULL)',
            name='ck_report_single_reporter',
        ),
        sa.CheckConstraint(
            "status IN ('reported', 'in-progress', 'scheduled', 'completed')",
            name='ck_report_status',
        ),
        sa.CheckConstraint(
            "priority IN ('low', 'medium', 'high', 'critical')",
            name='ck_report_priority',
        ),
        sa.ForeignKeyConstraint(['facility_id'], ['facilities.id']),
        sa.ForeignKeyConstraint(['reported_by_resident'], ['residents.id']),
        sa.ForeignKeyConstraint(['reported_by_staff'], ['staff.id']),
        sa.ForeignKeyConstraint(['assigned_to'], ['staff.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_report_facility', 'maintenance_reports', ['facility_id'], unique=False)
    op.create_index('idx_report_status', 'maintenance_reports', ['status'], unique=False)
    op.create_index('idx_report_priority', 'maintenance_reports', ['priority'], unique=False)


def downgrade() -> None:
    op.drop_table('maintenance_reports')
    op.drop_table('bookings')
    op.drop_table('staff_facility_assignments')
    op.drop_table('facility_ratings')
    op.drop_table('facilities')
    op.drop_table('staff')
    op.drop_table('residents')
    op.drop_table('users')
