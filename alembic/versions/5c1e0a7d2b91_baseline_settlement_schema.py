"""baseline_settlement_schema

Revision ID: 5c1e0a7d2b91
Revises:
Create Date: 2026-10-19 10:12:44.118204

Creates the identity, plan, coupon, payment, commission, subscription and
job tables. Tables that already exist are left untouched.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '5c1e0a7d2b91'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    ]


def _plan_holder_columns():
    return [
        sa.Column('plan_id', sa.Integer(), nullable=True),
        sa.Column('plan_started_at', sa.DateTime(), nullable=True),
        sa.Column('plan_expires_at', sa.DateTime(), nullable=True),
        sa.Column('plan_is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(['plan_id'], ['plans.id'], ondelete='SET NULL'),
    ]


def _create_subscription_table(table_name: str, owner_table: str) -> None:
    op.create_table(table_name,
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('plan_id', sa.Integer(), nullable=False),
        sa.Column('payment_id', sa.Integer(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        sa.Column('jobs_remaining', sa.Integer(), nullable=True),
        sa.Column('contact_views_remaining', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['owner_id'], [f'{owner_table}.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['plan_id'], ['plans.id']),
        sa.ForeignKeyConstraint(['payment_id'], ['payments.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    for column in ('id', 'owner_id', 'plan_id', 'payment_id', 'status'):
        op.create_index(op.f(f'ix_{table_name}_{column}'), table_name, [column], unique=False)


def upgrade() -> None:
    if not table_exists('plans'):
        op.create_table('plans',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=255), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('owner_type', sa.String(length=20), nullable=False),
            sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
            sa.Column('validity_days', sa.Integer(), nullable=False),
            sa.Column('is_default', sa.Boolean(), nullable=False),
            sa.Column('jobs_can_apply', sa.Integer(), nullable=False),
            sa.Column('contact_details_can_view', sa.Integer(), nullable=False),
            sa.Column('whatsapp_alerts', sa.Boolean(), nullable=False),
            sa.Column('sms_alerts', sa.Boolean(), nullable=False),
            sa.Column('employer_can_view_contact_free', sa.Boolean(), nullable=False),
            sa.Column('jobs_can_post', sa.Integer(), nullable=False),
            sa.Column('employee_contact_details_can_view', sa.Integer(), nullable=False),
            sa.Column('commission_rate', sa.Numeric(precision=5, scale=4), nullable=True),
            *_timestamps(),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_plans_id'), 'plans', ['id'], unique=False)
        op.create_index(op.f('ix_plans_owner_type'), 'plans', ['owner_type'], unique=False)
        op.create_index(op.f('ix_plans_is_default'), 'plans', ['is_default'], unique=False)

    if not table_exists('plan_features'):
        op.create_table('plan_features',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('plan_id', sa.Integer(), nullable=False),
            sa.Column('feature_name', sa.String(length=255), nullable=False),
            sa.Column('feature_value', sa.String(length=255), nullable=False),
            sa.ForeignKeyConstraint(['plan_id'], ['plans.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_plan_features_id'), 'plan_features', ['id'], unique=False)
        op.create_index(op.f('ix_plan_features_plan_id'), 'plan_features', ['plan_id'], unique=False)

    if not table_exists('admins'):
        op.create_table('admins',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('email', sa.String(), nullable=False),
            sa.Column('password_hash', sa.String(), nullable=False),
            sa.Column('role', sa.String(length=20), nullable=False),
            sa.Column('manager_id', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['manager_id'], ['admins.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_admins_id'), 'admins', ['id'], unique=False)
        op.create_index(op.f('ix_admins_email'), 'admins', ['email'], unique=True)
        op.create_index(op.f('ix_admins_role'), 'admins', ['role'], unique=False)
        op.create_index(op.f('ix_admins_manager_id'), 'admins', ['manager_id'], unique=False)

    if not table_exists('employees'):
        op.create_table('employees',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('email', sa.String(), nullable=False),
            sa.Column('mobile', sa.String(), nullable=False),
            sa.Column('password_hash', sa.String(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            *_plan_holder_columns(),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_employees_id'), 'employees', ['id'], unique=False)
        op.create_index(op.f('ix_employees_email'), 'employees', ['email'], unique=True)
        op.create_index(op.f('ix_employees_mobile'), 'employees', ['mobile'], unique=True)
        op.create_index(op.f('ix_employees_plan_id'), 'employees', ['plan_id'], unique=False)

    if not table_exists('employers'):
        op.create_table('employers',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('company_name', sa.String(), nullable=False),
            sa.Column('email', sa.String(), nullable=False),
            sa.Column('contact', sa.String(), nullable=False),
            sa.Column('address', sa.String(), nullable=True),
            sa.Column('password_hash', sa.String(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            *_plan_holder_columns(),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_employers_id'), 'employers', ['id'], unique=False)
        op.create_index(op.f('ix_employers_email'), 'employers', ['email'], unique=True)
        op.create_index(op.f('ix_employers_contact'), 'employers', ['contact'], unique=True)
        op.create_index(op.f('ix_employers_plan_id'), 'employers', ['plan_id'], unique=False)

    if not table_exists('coupons'):
        op.create_table('coupons',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('code', sa.String(length=191), nullable=False),
            sa.Column('name', sa.String(length=191), nullable=False),
            sa.Column('discount_percentage', sa.Numeric(precision=5, scale=2), nullable=False),
            sa.Column('coupon_for', sa.String(length=20), nullable=False),
            sa.Column('expiry_date', sa.Date(), nullable=True),
            sa.Column('status', sa.String(length=20), nullable=False),
            sa.Column('created_by', sa.Integer(), nullable=False),
            sa.Column('approved_by', sa.Integer(), nullable=True),
            sa.Column('approved_at', sa.DateTime(), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(['created_by'], ['admins.id']),
            sa.ForeignKeyConstraint(['approved_by'], ['admins.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_coupons_id'), 'coupons', ['id'], unique=False)
        op.create_index(op.f('ix_coupons_code'), 'coupons', ['code'], unique=True)
        op.create_index(op.f('ix_coupons_coupon_for'), 'coupons', ['coupon_for'], unique=False)
        op.create_index(op.f('ix_coupons_status'), 'coupons', ['status'], unique=False)
        op.create_index(op.f('ix_coupons_created_by'), 'coupons', ['created_by'], unique=False)
        op.create_index(op.f('ix_coupons_created_at'), 'coupons', ['created_at'], unique=False)

    if not table_exists('coupon_users'):
        op.create_table('coupon_users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('coupon_id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('user_type', sa.String(length=20), nullable=False),
            sa.Column('assigned_by', sa.Integer(), nullable=False),
            sa.Column('assigned_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['coupon_id'], ['coupons.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['assigned_by'], ['admins.id']),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('coupon_id', 'user_id', 'user_type', name='uq_coupon_user')
        )
        op.create_index(op.f('ix_coupon_users_id'), 'coupon_users', ['id'], unique=False)
        op.create_index(op.f('ix_coupon_users_coupon_id'), 'coupon_users', ['coupon_id'], unique=False)

    if not table_exists('payments'):
        op.create_table('payments',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_type', sa.String(length=20), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('plan_id', sa.Integer(), nullable=False),
            sa.Column('coupon_id', sa.Integer(), nullable=True),
            sa.Column('original_amount', sa.Numeric(precision=10, scale=2), nullable=False),
            sa.Column('discount_amount', sa.Numeric(precision=10, scale=2), nullable=False),
            sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
            sa.Column('payment_method', sa.String(length=50), nullable=False),
            sa.Column('transaction_id', sa.String(length=100), nullable=True),
            sa.Column('status', sa.String(length=20), nullable=False),
            sa.Column('paid_at', sa.DateTime(), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(['plan_id'], ['plans.id']),
            sa.ForeignKeyConstraint(['coupon_id'], ['coupons.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_payments_id'), 'payments', ['id'], unique=False)
        op.create_index(op.f('ix_payments_plan_id'), 'payments', ['plan_id'], unique=False)
        op.create_index(op.f('ix_payments_coupon_id'), 'payments', ['coupon_id'], unique=False)
        op.create_index(op.f('ix_payments_transaction_id'), 'payments', ['transaction_id'], unique=False)
        op.create_index(op.f('ix_payments_status'), 'payments', ['status'], unique=False)
        op.create_index(op.f('ix_payments_created_at'), 'payments', ['created_at'], unique=False)
        op.create_index('idx_payment_user', 'payments', ['user_type', 'user_id'], unique=False)

    if not table_exists('commission_transactions'):
        op.create_table('commission_transactions',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('staff_id', sa.Integer(), nullable=False),
            sa.Column('payment_id', sa.Integer(), nullable=True),
            sa.Column('amount_earned', sa.Numeric(precision=10, scale=2), nullable=False),
            sa.Column('type', sa.String(length=20), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['staff_id'], ['admins.id']),
            sa.ForeignKeyConstraint(['payment_id'], ['payments.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_commission_transactions_id'), 'commission_transactions', ['id'], unique=False)
        op.create_index(op.f('ix_commission_transactions_staff_id'), 'commission_transactions', ['staff_id'], unique=False)
        op.create_index(op.f('ix_commission_transactions_payment_id'), 'commission_transactions', ['payment_id'], unique=False)
        op.create_index(op.f('ix_commission_transactions_type'), 'commission_transactions', ['type'], unique=False)
        op.create_index(op.f('ix_commission_transactions_created_at'), 'commission_transactions', ['created_at'], unique=False)

    if not table_exists('employee_plan_subscriptions'):
        _create_subscription_table('employee_plan_subscriptions', 'employees')

    if not table_exists('employer_plan_subscriptions'):
        _create_subscription_table('employer_plan_subscriptions', 'employers')

    if not table_exists('jobs'):
        op.create_table('jobs',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('employer_id', sa.Integer(), nullable=False),
            sa.Column('title', sa.String(length=255), nullable=False),
            sa.Column('description', sa.Text(), nullable=False),
            sa.Column('salary', sa.String(length=100), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['employer_id'], ['employers.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_jobs_id'), 'jobs', ['id'], unique=False)
        op.create_index(op.f('ix_jobs_employer_id'), 'jobs', ['employer_id'], unique=False)
        op.create_index(op.f('ix_jobs_created_at'), 'jobs', ['created_at'], unique=False)

    if not table_exists('job_applications'):
        op.create_table('job_applications',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('job_id', sa.Integer(), nullable=False),
            sa.Column('employee_id', sa.Integer(), nullable=False),
            sa.Column('status', sa.String(length=20), nullable=False),
            sa.Column('applied_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('job_id', 'employee_id', name='uq_job_application')
        )
        op.create_index(op.f('ix_job_applications_id'), 'job_applications', ['id'], unique=False)
        op.create_index(op.f('ix_job_applications_job_id'), 'job_applications', ['job_id'], unique=False)
        op.create_index(op.f('ix_job_applications_employee_id'), 'job_applications', ['employee_id'], unique=False)

    if not table_exists('contact_views'):
        op.create_table('contact_views',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('viewer_type', sa.String(length=20), nullable=False),
            sa.Column('viewer_id', sa.Integer(), nullable=False),
            sa.Column('target_id', sa.Integer(), nullable=False),
            sa.Column('job_id', sa.Integer(), nullable=True),
            sa.Column('application_id', sa.Integer(), nullable=True),
            sa.Column('viewed_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='SET NULL'),
            sa.ForeignKeyConstraint(['application_id'], ['job_applications.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('viewer_type', 'viewer_id', 'target_id', name='uq_contact_view')
        )
        op.create_index(op.f('ix_contact_views_id'), 'contact_views', ['id'], unique=False)
        op.create_index(op.f('ix_contact_views_viewer_id'), 'contact_views', ['viewer_id'], unique=False)


def downgrade() -> None:
    for table_name in (
        'contact_views',
        'job_applications',
        'jobs',
        'employer_plan_subscriptions',
        'employee_plan_subscriptions',
        'commission_transactions',
        'payments',
        'coupon_users',
        'coupons',
        'employers',
        'employees',
        'admins',
        'plan_features',
        'plans',
    ):
        if table_exists(table_name):
            op.drop_table(table_name)
