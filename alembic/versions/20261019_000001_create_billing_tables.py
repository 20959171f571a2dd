"""Create billing tables

Revision ID: 20261019_000001
Revises: None
Create Date: 2026-10-19

Societies, residents, flats, billing configuration with charge heads,
bills with their line items, and payment transactions.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


OCCUPANCY_STATUS = sa.Enum('vacant', 'owner_occupied', 'rented', name='occupancy_status')
COMPUTATION_TYPE = sa.Enum('per_area', 'fixed', 'percentage_of', name='computation_type')
LATE_FEE_TYPE = sa.Enum('fixed', 'percentage', name='late_fee_type')
BILL_STATUS = sa.Enum('pending', 'pending_clearance', 'paid', 'overdue', name='bill_status')
PAYMENT_METHOD = sa.Enum('upi', 'cheque', 'bank_transfer', 'cash', name='payment_method')
TRANSACTION_STATUS = sa.Enum('success', 'pending_clearance', 'failed', name='transaction_status')


def upgrade() -> None:
    """Create the billing tables."""
    op.create_table(
        'societies',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_societies'),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('society_id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('role', sa.String(50), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.ForeignKeyConstraint(['society_id'], ['societies.id'], name='fk_users_society_id', ondelete='CASCADE'),
    )
    op.create_index('ix_users_society_id', 'users', ['society_id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'flats',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('society_id', sa.Integer(), nullable=False),
        sa.Column('wing', sa.String(20), nullable=False),
        sa.Column('flat_number', sa.String(50), nullable=False),
        sa.Column('floor', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('area_sqft', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('occupancy_status', OCCUPANCY_STATUS, nullable=False, server_default='vacant'),
        sa.Column('owner_id', sa.Integer(), nullable=True),
        sa.Column('tenant_occupant_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_flats'),
        sa.ForeignKeyConstraint(['society_id'], ['societies.id'], name='fk_flats_society_id', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], name='fk_flats_owner_id'),
        sa.ForeignKeyConstraint(['tenant_occupant_id'], ['users.id'], name='fk_flats_tenant_occupant_id'),
        sa.UniqueConstraint('society_id', 'wing', 'flat_number', name='uq_flats_society_wing_number'),
    )
    op.create_index('ix_flats_society_id', 'flats', ['society_id'])

    op.create_table(
        'billing_configs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('society_id', sa.Integer(), nullable=False),
        sa.Column('default_due_day', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('late_fee_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('late_fee_amount', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('late_fee_type', LATE_FEE_TYPE, nullable=False, server_default='fixed'),
        sa.Column('late_fee_grace_days', sa.Integer(), nullable=False, server_default='15'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_billing_configs'),
        sa.ForeignKeyConstraint(
            ['society_id'], ['societies.id'], name='fk_billing_configs_society_id', ondelete='CASCADE'
        ),
    )
    op.create_index('ix_billing_configs_society_id', 'billing_configs', ['society_id'], unique=True)

    op.create_table(
        'charge_heads',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('billing_config_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('computation_type', COMPUTATION_TYPE, nullable=False),
        sa.Column('rate', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('percentage_of_name', sa.String(100), nullable=True),
        sa.Column('is_non_occupancy_only', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_reserve_fund', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint('id', name='pk_charge_heads'),
        sa.ForeignKeyConstraint(
            ['billing_config_id'], ['billing_configs.id'],
            name='fk_charge_heads_billing_config_id', ondelete='CASCADE'
        ),
    )
    op.create_index('ix_charge_heads_billing_config_id', 'charge_heads', ['billing_config_id'])

    op.create_table(
        'bills',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('society_id', sa.Integer(), nullable=False),
        sa.Column('flat_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('billing_period', sa.String(50), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('status', BILL_STATUS, nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_bills'),
        sa.ForeignKeyConstraint(['society_id'], ['societies.id'], name='fk_bills_society_id', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['flat_id'], ['flats.id'], name='fk_bills_flat_id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_bills_user_id'),
        # One bill per flat per billing period
        sa.UniqueConstraint('society_id', 'flat_id', 'billing_period', name='uq_bills_society_flat_period'),
    )
    op.create_index('ix_bills_society_id', 'bills', ['society_id'])
    op.create_index('ix_bills_flat_id', 'bills', ['flat_id'])
    op.create_index('ix_bills_user_id', 'bills', ['user_id'])
    op.create_index('ix_bills_billing_period', 'bills', ['billing_period'])
    op.create_index('ix_bills_due_date', 'bills', ['due_date'])
    op.create_index('ix_bills_status', 'bills', ['status'])

    op.create_table(
        'bill_line_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('bill_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('charge_name', sa.String(100), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('is_reserve_fund', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint('id', name='pk_bill_line_items'),
        sa.ForeignKeyConstraint(['bill_id'], ['bills.id'], name='fk_bill_line_items_bill_id', ondelete='CASCADE'),
    )
    op.create_index('ix_bill_line_items_bill_id', 'bill_line_items', ['bill_id'])

    op.create_table(
        'payment_transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('society_id', sa.Integer(), nullable=False),
        sa.Column('bill_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('amount_paid', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('payment_method', PAYMENT_METHOD, nullable=False),
        sa.Column('transaction_ref', sa.String(255), nullable=True),
        sa.Column('status', TRANSACTION_STATUS, nullable=False, server_default='success'),
        sa.Column('payment_date', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_payment_transactions'),
        sa.ForeignKeyConstraint(
            ['society_id'], ['societies.id'], name='fk_payment_transactions_society_id', ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['bill_id'], ['bills.id'], name='fk_payment_transactions_bill_id', ondelete='RESTRICT'
        ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_payment_transactions_user_id'),
    )
    op.create_index('ix_payment_transactions_society_id', 'payment_transactions', ['society_id'])
    op.create_index('ix_payment_transactions_bill_id', 'payment_transactions', ['bill_id'])
    op.create_index('ix_payment_transactions_user_id', 'payment_transactions', ['user_id'])


def downgrade() -> None:
    """Drop the billing tables."""
    op.drop_table('payment_transactions')
    op.drop_table('bill_line_items')
    op.drop_table('bills')
    op.drop_table('charge_heads')
    op.drop_table('billing_configs')
    op.drop_table('flats')
    op.drop_table('users')
    op.drop_table('societies')
