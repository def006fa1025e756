"""initial schema

Revision ID: 3f9a1c2b7d10
Revises:
Create Date: 2026-10-19 09:12:44.218305

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9a1c2b7d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'tbl_accounts',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('verified', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('email', name='uq_tbl_accounts_email'),
    )

    op.create_table(
        'tbl_administrators',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('role', sa.String(length=10), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('email', name='uq_tbl_administrators_email'),
    )

    op.create_table(
        'tbl_otp_challenges',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('otp', sa.String(length=16), nullable=False),
        sa.Column('otp_expires', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('kind', 'email', name='uq_otp_challenge_kind_email'),
    )
    op.create_index('ix_tbl_otp_challenges_otp_expires', 'tbl_otp_challenges', ['otp_expires'])

    op.create_table(
        'tbl_subscription_plans',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('plan_name', sa.String(length=255), nullable=False),
        sa.Column('plan_type', sa.String(length=100), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('simulations_limit', sa.Integer(), nullable=True),
        sa.Column('simulations_unlimited', sa.Boolean(), nullable=False),
        sa.Column('features', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('active_plan', sa.Boolean(), nullable=False),
        sa.Column('stripe_price_id', sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('plan_name', name='uq_tbl_subscription_plans_plan_name'),
    )

    op.create_table(
        'tbl_user_profiles',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('tbl_accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('profile_image', sa.Text(), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('gender', sa.String(length=50), nullable=False),
        sa.Column('monthly_income', sa.Float(), nullable=False),
        sa.Column('fixed_expenses', sa.Float(), nullable=False),
        sa.Column('variable_expenses', sa.Float(), nullable=False),
        sa.Column('existing_loans', sa.Float(), nullable=False),
        sa.Column('total_monthly_loan_payments', sa.Float(), nullable=False),
        sa.Column('current_savings', sa.Float(), nullable=False),
        sa.Column('dependents', sa.JSON(), nullable=False),
        sa.Column('household_responsibility_level', sa.String(length=100), nullable=False),
        sa.Column('income_stability', sa.String(length=100), nullable=False),
        sa.Column('risk_tolerance', sa.String(length=100), nullable=False),
        sa.Column('plan_name', sa.String(length=255), nullable=False),
        sa.Column('target_amount', sa.Float(), nullable=False),
        sa.Column('target_date', sa.Date(), nullable=True),
        sa.Column('goal_description', sa.Text(), nullable=False),
        sa.Column(
            'subscription_plan_id',
            sa.Uuid(),
            sa.ForeignKey('tbl_subscription_plans.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('subscription_plan_name', sa.String(length=255), nullable=False),
        sa.Column('subscription_started_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('subscription_expires_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('stripe_customer_id', sa.String(length=255), nullable=False),
        sa.Column('stripe_subscription_id', sa.String(length=255), nullable=False),
        sa.Column('stripe_price_id', sa.String(length=255), nullable=False),
        sa.Column('subscription_is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('user_id', name='uq_tbl_user_profiles_user_id'),
    )
    op.create_index(
        'ix_tbl_user_profiles_stripe_subscription_id', 'tbl_user_profiles', ['stripe_subscription_id']
    )

    op.create_table(
        'tbl_tickets',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('ticket_id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('tbl_accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_email', sa.String(length=320), nullable=False),
        sa.Column('subject', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=7), nullable=False),
        sa.Column(
            'admin_id',
            sa.Uuid(),
            sa.ForeignKey('tbl_administrators.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('admin_ticket_id', sa.String(length=64), nullable=False),
        sa.Column('reply', sa.Text(), nullable=False),
        sa.Column('date_submitted', sa.TIMESTAMP(timezone=True), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('ticket_id', name='uq_tbl_tickets_ticket_id'),
    )
    op.create_index('ix_tbl_tickets_user_id', 'tbl_tickets', ['user_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_tbl_tickets_user_id', table_name='tbl_tickets')
    op.drop_table('tbl_tickets')
    op.drop_index('ix_tbl_user_profiles_stripe_subscription_id', table_name='tbl_user_profiles')
    op.drop_table('tbl_user_profiles')
    op.drop_table('tbl_subscription_plans')
    op.drop_index('ix_tbl_otp_challenges_otp_expires', table_name='tbl_otp_challenges')
    op.drop_table('tbl_otp_challenges')
    op.drop_table('tbl_administrators')
    op.drop_table('tbl_accounts')
