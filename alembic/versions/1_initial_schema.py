"""initial schema: users, doctors, patients, bookings, audit logs

Revision ID: 1
Revises:
Create Date: 2025-09-02 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '1'
down_revision = None
branch_labels = None
depends_on = None

SPECIALIZATIONS = (
    'surgeon', 'orthopedic', 'neuro', 'cardiac', 'general', 'pediatric',
    'gynecology', 'ent', 'ophthalmology', 'anesthesiology',
)


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'doctors',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=True, unique=True),
        sa.Column('employee_id', sa.String(50), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('qualification', sa.String(255), nullable=False),
        sa.Column('specialization', sa.Enum(*SPECIALIZATIONS, name='specialization'), nullable=False),
        sa.Column('contact', sa.String(50), nullable=False),
        sa.Column('role', sa.Enum('doctor', 'admin', name='user_role'), nullable=False, server_default='doctor'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_doctors_employee_id', 'doctors', ['employee_id'], unique=True)
    op.create_index('idx_doctors_role', 'doctors', ['role'])

    op.create_table(
        'patients',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('patient_id', sa.String(50), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('age', sa.Integer(), nullable=False),
        sa.Column('gender', sa.String(20), nullable=True),
        sa.Column('condition', sa.Text(), nullable=False),
        sa.Column('emergency_contact', sa.String(50), nullable=True),
        sa.Column('medical_history', sa.Text(), nullable=True),
        sa.Column('icu_days', sa.Integer(), nullable=True),
        sa.Column('expected_hospital_stay', sa.Integer(), nullable=True),
        sa.Column('insurance', sa.String(255), nullable=True),
        sa.Column('instruments', sa.Text(), nullable=True),
        sa.Column('date_of_admission', sa.Date(), nullable=True),
        sa.Column('date_of_discharge', sa.Date(), nullable=True),
        sa.Column('sms_service', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('age >= 0', name='ck_patients_age_non_negative'),
    )
    op.create_index('ix_patients_patient_id', 'patients', ['patient_id'], unique=True)
    op.create_index('idx_patients_name', 'patients', ['name'])

    op.create_table(
        'bookings',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('doctor_id', sa.String(36), sa.ForeignKey('doctors.id'), nullable=False),
        sa.Column('patient_id', sa.String(36), sa.ForeignKey('patients.id'), nullable=False),
        sa.Column('booking_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('operation_theater', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('status', sa.Enum('booked', 'completed', 'cancelled', name='booking_status'), nullable=False, server_default='booked'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('end_time > start_time', name='ck_bookings_end_after_start'),
        sa.CheckConstraint('operation_theater > 0', name='ck_bookings_theater_positive'),
    )
    op.create_index('ix_bookings_booking_date', 'bookings', ['booking_date'])
    op.create_index('idx_bookings_theater_date', 'bookings', ['operation_theater', 'booking_date'])
    op.create_index('idx_bookings_doctor_date', 'bookings', ['doctor_id', 'booking_date'])
    op.create_index('idx_bookings_status_date', 'bookings', ['status', 'booking_date'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('action', sa.Enum('CREATE', 'UPDATE', 'DELETE', 'LOGIN', 'LOGOUT', 'SIGNUP', 'BULK_ACTION', name='audit_action'), nullable=False),
        sa.Column('category', sa.String(50), nullable=False),
        sa.Column('severity', sa.String(20), nullable=False, server_default='INFO'),
        sa.Column('resource_type', sa.String(50), nullable=True),
        sa.Column('resource_id', sa.String(36), nullable=True),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_audit_logs_id', 'audit_logs', ['id'])
    op.create_index('ix_audit_logs_timestamp', 'audit_logs', ['timestamp'])
    op.create_index('idx_audit_logs_category_time', 'audit_logs', ['category', 'timestamp'])


def downgrade():
    op.drop_table('audit_logs')
    op.drop_table('bookings')
    op.drop_table('patients')
    op.drop_table('doctors')
    op.drop_table('users')
    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        for enum_name in ('audit_action', 'booking_status', 'user_role', 'specialization'):
            op.execute(f"DROP TYPE IF EXISTS {enum_name}")
