"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

user_role = sa.Enum('SUPER_ADMIN', 'ADMIN', 'DENTIST', 'STAFF', 'PATIENT', name='userrole')
appointment_status = sa.Enum(
    'SCHEDULED', 'CONFIRMED', 'URGENT', 'IN_PROGRESS', 'COMPLETED', 'CANCELLED', 'NO_SHOW',
    name='appointmentstatus'
)
service_type = sa.Enum(
    'CHECKUP', 'CLEANING', 'FILLING', 'EXTRACTION', 'ROOT_CANAL', 'CROWN',
    'ORTHODONTICS', 'WHITENING', 'CONSULTATION', 'EMERGENCY', 'OTHER',
    name='servicetype'
)
leave_type = sa.Enum(
    'ANNUAL', 'SICK', 'EMERGENCY', 'CONFERENCE', 'TRAINING', 'PERSONAL', 'OTHER',
    name='leavetype'
)
leave_status = sa.Enum('PENDING', 'APPROVED', 'REJECTED', 'CANCELLED', name='leavestatus')
shift_type = sa.Enum('MORNING', 'AFTERNOON', 'EVENING', 'NIGHT', 'FULL_DAY', name='shifttype')
staff_schedule_status = sa.Enum('SCHEDULED', 'COMPLETED', 'CANCELLED', 'NO_SHOW', name='staffschedulestatus')
recurrence_frequency = sa.Enum('DAILY', 'WEEKLY', 'MONTHLY', name='recurrencefrequency')
notification_type = sa.Enum(
    'APPOINTMENT_CONFIRMATION', 'URGENT_APPOINTMENT', 'APPOINTMENT_REMINDER',
    'APPOINTMENT_CANCELLED', 'APPOINTMENT_RESCHEDULED', 'APPOINTMENT_STATUS',
    'SCHEDULE_ASSIGNMENT', 'SCHEDULE_CHANGE', 'SCHEDULE_CANCELLED', 'SCHEDULE_CONFLICT',
    name='notificationtype'
)
notification_priority = sa.Enum('LOW', 'NORMAL', 'HIGH', 'URGENT', name='notificationpriority')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
    ]


def upgrade() -> None:
    # Users
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('permissions', sa.JSON(), nullable=True),
        sa.Column('specialization', sa.String(length=100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # Clinics
    op.create_table(
        'clinics',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('code', sa.String(length=20), nullable=False),
        sa.Column('address', sa.String(length=500), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('timezone', sa.String(length=50), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_clinics_code', 'clinics', ['code'], unique=True)

    op.create_table(
        'clinic_operating_hours',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('clinic_id', sa.Uuid(), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('open_time', sa.Time(), nullable=False),
        sa.Column('close_time', sa.Time(), nullable=False),
        sa.Column('is_closed', sa.Boolean(), nullable=True),
        sa.CheckConstraint('day_of_week >= 0 AND day_of_week <= 6', name='check_hours_day_of_week'),
        sa.CheckConstraint('open_time < close_time', name='check_hours_order'),
        sa.ForeignKeyConstraint(['clinic_id'], ['clinics.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('clinic_id', 'day_of_week', name='unique_clinic_day')
    )

    op.create_table(
        'clinic_staff',
        sa.Column('clinic_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(['clinic_id'], ['clinics.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('clinic_id', 'user_id')
    )

    # Patients
    op.create_table(
        'patients',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('patient_number', sa.String(length=20), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('notifications_enabled', sa.Boolean(), nullable=True),
        sa.Column('notify_email', sa.Boolean(), nullable=True),
        sa.Column('notify_sms', sa.Boolean(), nullable=True),
        sa.Column('notify_in_app', sa.Boolean(), nullable=True),
        sa.Column('reminder_hours', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id')
    )
    op.create_index('ix_patients_patient_number', 'patients', ['patient_number'], unique=True)

    # Dentist schedules and leaves
    op.create_table(
        'doctor_schedules',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('doctor_id', sa.Uuid(), nullable=False),
        sa.Column('clinic_id', sa.Uuid(), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('break_start', sa.Time(), nullable=True),
        sa.Column('break_end', sa.Time(), nullable=True),
        sa.Column('effective_from', sa.Date(), nullable=False),
        sa.Column('effective_until', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('day_of_week >= 0 AND day_of_week <= 6', name='check_day_of_week'),
        sa.CheckConstraint('start_time < end_time', name='check_time_order'),
        sa.ForeignKeyConstraint(['doctor_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['clinic_id'], ['clinics.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_doctor_schedules_doctor_id', 'doctor_schedules', ['doctor_id'])
    op.create_index('ix_doctor_schedules_clinic_id', 'doctor_schedules', ['clinic_id'])

    op.create_table(
        'doctor_leaves',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('doctor_id', sa.Uuid(), nullable=False),
        sa.Column('leave_type', leave_type, nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=True),
        sa.Column('end_time', sa.Time(), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('status', leave_status, nullable=True),
        sa.Column('approved_by', sa.Uuid(), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('start_date <= end_date', name='check_leave_dates'),
        sa.ForeignKeyConstraint(['doctor_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['approved_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_doctor_leaves_doctor_id', 'doctor_leaves', ['doctor_id'])

    # Appointments
    op.create_table(
        'appointments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('appointment_number', sa.String(length=50), nullable=False),
        sa.Column('patient_id', sa.Uuid(), nullable=False),
        sa.Column('dentist_id', sa.Uuid(), nullable=True),
        sa.Column('clinic_id', sa.Uuid(), nullable=False),
        sa.Column('appointment_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('service_type', service_type, nullable=False),
        sa.Column('status', appointment_status, nullable=False),
        sa.Column('is_emergency', sa.Boolean(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('treatment_provided', sa.Text(), nullable=True),
        sa.Column('follow_up_required', sa.Boolean(), nullable=True),
        sa.Column('follow_up_date', sa.Date(), nullable=True),
        sa.Column('reminder_hours', sa.JSON(), nullable=True),
        sa.Column('reminder_sent', sa.Boolean(), nullable=True),
        sa.Column('reminder_sent_at', sa.DateTime(), nullable=True),
        sa.Column('reminder_offsets_sent', sa.JSON(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_by', sa.Uuid(), nullable=True),
        sa.Column('cancelled_reason', sa.Text(), nullable=True),
        *_timestamps(),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.CheckConstraint('duration_minutes >= 15 AND duration_minutes <= 480', name='check_duration_range'),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id']),
        sa.ForeignKeyConstraint(['dentist_id'], ['users.id']),
        sa.ForeignKeyConstraint(['clinic_id'], ['clinics.id']),
        sa.ForeignKeyConstraint(['cancelled_by'], ['users.id']),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_appointments_appointment_number', 'appointments', ['appointment_number'], unique=True)
    op.create_index('ix_appointments_patient_id', 'appointments', ['patient_id'])
    op.create_index('ix_appointments_dentist_id', 'appointments', ['dentist_id'])
    op.create_index('ix_appointments_clinic_id', 'appointments', ['clinic_id'])
    op.create_index('ix_appointments_appointment_date', 'appointments', ['appointment_date'])

    # Staff schedules
    op.create_table(
        'staff_schedules',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('staff_id', sa.Uuid(), nullable=False),
        sa.Column('clinic_id', sa.Uuid(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('shift_type', shift_type, nullable=False),
        sa.Column('status', staff_schedule_status, nullable=False),
        sa.Column('is_recurring', sa.Boolean(), nullable=True),
        sa.Column('recurrence_frequency', recurrence_frequency, nullable=True),
        sa.Column('recurrence_days_of_week', sa.JSON(), nullable=True),
        sa.Column('recurrence_end_date', sa.Date(), nullable=True),
        sa.Column('notify_email', sa.Boolean(), nullable=True),
        sa.Column('notify_sms', sa.Boolean(), nullable=True),
        sa.Column('notify_in_app', sa.Boolean(), nullable=True),
        sa.Column('reminder_minutes', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('start_time < end_time', name='check_shift_time_order'),
        sa.CheckConstraint('reminder_minutes >= 0 AND reminder_minutes <= 1440', name='check_reminder_minutes'),
        sa.ForeignKeyConstraint(['staff_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['clinic_id'], ['clinics.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_staff_schedules_staff_id', 'staff_schedules', ['staff_id'])
    op.create_index('ix_staff_schedules_clinic_id', 'staff_schedules', ['clinic_id'])
    op.create_index('ix_staff_schedules_date', 'staff_schedules', ['date'])

    # Notifications
    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('type', notification_type, nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('priority', notification_priority, nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=True),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.Column('appointment_id', sa.Uuid(), nullable=True),
        sa.Column('staff_schedule_id', sa.Uuid(), nullable=True),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['appointment_id'], ['appointments.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['staff_schedule_id'], ['staff_schedules.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])


def downgrade() -> None:
    op.drop_table('notifications')
    op.drop_table('staff_schedules')
    op.drop_table('appointments')
    op.drop_table('doctor_leaves')
    op.drop_table('doctor_schedules')
    op.drop_table('patients')
    op.drop_table('clinic_staff')
    op.drop_table('clinic_operating_hours')
    op.drop_table('clinics')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in (
        notification_priority, notification_type, recurrence_frequency, staff_schedule_status,
        shift_type, appointment_status, service_type, leave_status, leave_type, user_role,
    ):
        enum_type.drop(bind, checkfirst=True)
