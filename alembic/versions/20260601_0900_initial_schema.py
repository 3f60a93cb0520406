"""Initial schema - users, roles, employees, onboarding, OTPs, audit logs

Revision ID: 20260601_0900_initial_schema
Revises:
Create Date: 2026-06-01 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '20260601_0900_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


USER_ROLES = ('admin', 'hr_officer', 'manager', 'employee', 'contractor')
EMPLOYEE_STATUSES = ('active', 'inactive')
ONBOARDING_STATUSES = (
    'invited', 'pending_review', 'changes_requested', 'approved', 'rejected', 'completed',
)
AUDIT_ACTIONS = ('OTP_SENT', 'OTP_RESENT', 'OTP_VERIFIED', 'OTP_VERIFY_FAILED')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # =====================================================
    # ROLES (lookup)
    # =====================================================
    roles = op.create_table(
        'roles',
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('name', name=op.f('pk_roles')),
    )

    # =====================================================
    # USERS
    # =====================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('role', sa.Enum(*USER_ROLES, name='user_role'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('email_verified', sa.Boolean(), nullable=False),
        sa.Column('reset_token', sa.String(128), nullable=True),
        sa.Column('reset_token_expiry', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users')),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_reset_token'), 'users', ['reset_token'], unique=False)

    # =====================================================
    # EMPLOYEES
    # =====================================================
    op.create_table(
        'employees',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=True),
        sa.Column('employee_id', sa.String(20), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('department', sa.String(100), nullable=True),
        sa.Column('position', sa.String(100), nullable=True),
        sa.Column('joining_date', sa.Date(), nullable=True),
        sa.Column('salary', sa.Numeric(12, 2), nullable=True),
        sa.Column('pan', sa.Text(), nullable=True),
        sa.Column('aadhaar', sa.Text(), nullable=True),
        sa.Column('ifsc', sa.Text(), nullable=True),
        sa.Column('bank_account_number', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum(*EMPLOYEE_STATUSES, name='employee_status'), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name=op.f('fk_employees_user_id_users'), ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_employees')),
    )
    op.create_index(op.f('ix_employees_employee_id'), 'employees', ['employee_id'], unique=True)
    op.create_index(op.f('ix_employees_email'), 'employees', ['email'], unique=False)
    op.create_index(op.f('ix_employees_user_id'), 'employees', ['user_id'], unique=False)

    op.create_table(
        'employee_id_sequences',
        sa.Column('company_code', sa.String(2), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('last_sequence', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('company_code', 'year', name=op.f('pk_employee_id_sequences')),
    )

    # =====================================================
    # ONBOARDING
    # =====================================================
    op.create_table(
        'onboarding_requests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('candidate_email', sa.String(255), nullable=False),
        sa.Column('candidate_name', sa.String(255), nullable=False),
        sa.Column('department', sa.String(100), nullable=True),
        sa.Column('position', sa.String(100), nullable=True),
        sa.Column('joining_date', sa.Date(), nullable=True),
        sa.Column('token', sa.String(128), nullable=False),
        sa.Column('status', sa.Enum(*ONBOARDING_STATUSES, name='onboarding_status'), nullable=False),
        sa.Column('personal_info', sa.JSON(), nullable=True),
        sa.Column('pan', sa.String(10), nullable=True),
        sa.Column('aadhaar', sa.String(14), nullable=True),
        sa.Column('bank_info', sa.JSON(), nullable=True),
        sa.Column('documents', sa.JSON(), nullable=True),
        sa.Column('step_completed', sa.Integer(), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('approved_by', sa.Uuid(), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('linked_employee_id', sa.Uuid(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('rejected_by', sa.Uuid(), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('review_comments', sa.Text(), nullable=True),
        sa.Column('fields_to_change', sa.JSON(), nullable=True),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['approved_by'], ['users.id'],
            name=op.f('fk_onboarding_requests_approved_by_users'), ondelete='SET NULL',
        ),
        sa.ForeignKeyConstraint(
            ['rejected_by'], ['users.id'],
            name=op.f('fk_onboarding_requests_rejected_by_users'), ondelete='SET NULL',
        ),
        sa.ForeignKeyConstraint(
            ['created_by'], ['users.id'],
            name=op.f('fk_onboarding_requests_created_by_users'), ondelete='SET NULL',
        ),
        sa.ForeignKeyConstraint(
            ['linked_employee_id'], ['employees.id'],
            name=op.f('fk_onboarding_requests_linked_employee_id_employees'), ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_onboarding_requests')),
    )
    op.create_index(op.f('ix_onboarding_requests_token'), 'onboarding_requests', ['token'], unique=True)
    op.create_index(op.f('ix_onboarding_requests_candidate_email'), 'onboarding_requests', ['candidate_email'])
    op.create_index(op.f('ix_onboarding_requests_status'), 'onboarding_requests', ['status'])
    op.create_index(op.f('ix_onboarding_requests_pan'), 'onboarding_requests', ['pan'])
    op.create_index(op.f('ix_onboarding_requests_aadhaar'), 'onboarding_requests', ['aadhaar'])

    # =====================================================
    # EMAIL OTPS
    # =====================================================
    op.create_table(
        'email_otps',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('otp_hash', sa.String(255), nullable=False),
        sa.Column('otp_plain', sa.String(10), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('used', sa.Boolean(), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_email_otps')),
    )
    op.create_index(op.f('ix_email_otps_email'), 'email_otps', ['email'])
    op.create_index(op.f('ix_email_otps_expires_at'), 'email_otps', ['expires_at'])

    # =====================================================
    # AUDIT LOGS
    # =====================================================
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('actor_email', sa.String(255), nullable=True),
        sa.Column('action', sa.Enum(*AUDIT_ACTIONS, name='audit_action'), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_audit_logs')),
    )
    op.create_index(op.f('ix_audit_logs_actor_email'), 'audit_logs', ['actor_email'])
    op.create_index(op.f('ix_audit_logs_action'), 'audit_logs', ['action'])
    op.create_index(op.f('ix_audit_logs_created_at'), 'audit_logs', ['created_at'])

    # =====================================================
    # SEED ROLES
    # =====================================================
    op.bulk_insert(
        roles,
        [
            {'name': 'admin', 'description': 'System administrator with full access'},
            {'name': 'hr_officer', 'description': 'HR officer managing employees and onboarding'},
            {'name': 'manager', 'description': 'Manager with team-level access'},
            {'name': 'employee', 'description': 'Regular employee'},
            {'name': 'contractor', 'description': 'External contractor with limited access'},
        ],
    )


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('email_otps')
    op.drop_table('onboarding_requests')
    op.drop_table('employee_id_sequences')
    op.drop_table('employees')
    op.drop_table('users')
    op.drop_table('roles')

    bind = op.get_bind()
    for enum_name in ('audit_action', 'onboarding_status', 'employee_status', 'user_role'):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
