"""Create commission, withdrawal and activation code tables

Revision ID: create_commission_schema
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'create_commission_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(with_updated=True):
    columns = [sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())]
    if with_updated:
        columns.append(sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True))
    return columns


def upgrade() -> None:
    """Create the full commission bookkeeping schema."""
    op.create_table(
        'distributors',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('distributor_code', sa.String(20), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('commission_rate', sa.Numeric(5, 2), nullable=False, server_default='15.00'),
        sa.Column('tier_level', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('total_commissions', sa.Numeric(10, 2), nullable=False, server_default='0.00'),
        *_timestamps(),
    )
    op.create_index('ix_distributors_distributor_code', 'distributors', ['distributor_code'], unique=True)

    op.create_table(
        'products',
        sa.Column('id', sa.String(50), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('commission_rate', sa.Numeric(5, 2), nullable=False),
        sa.Column('product_type', sa.String(20), nullable=False, server_default='product'),
        sa.Column('is_active', sa.Boolean(), nullable=True, server_default=sa.true()),
        *_timestamps(with_updated=False),
    )

    op.create_table(
        'purchases',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('distributor_id', sa.Uuid(), sa.ForeignKey('distributors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.String(50), nullable=False),
        sa.Column('product_name', sa.String(200), nullable=False),
        sa.Column('product_type', sa.String(20), nullable=False, server_default='product'),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('commission_rate', sa.Numeric(5, 2), nullable=False),
        sa.Column('client_name', sa.String(200), nullable=False),
        sa.Column('client_email', sa.String(255), nullable=True),
        sa.Column('session_id', sa.String(100), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='completed'),
        *_timestamps(with_updated=False),
    )
    op.create_index('ix_purchases_distributor_id', 'purchases', ['distributor_id'])
    op.create_index('ix_purchases_session_id', 'purchases', ['session_id'])

    op.create_table(
        'commissions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('distributor_id', sa.Uuid(), sa.ForeignKey('distributors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.String(50), nullable=True),
        sa.Column('product_name', sa.String(200), nullable=False),
        sa.Column('product_type', sa.String(20), nullable=False, server_default='product'),
        sa.Column('client_name', sa.String(200), nullable=False),
        sa.Column('client_email', sa.String(255), nullable=True),
        sa.Column('sale_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('commission_rate', sa.Numeric(5, 2), nullable=False),
        sa.Column('commission_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('session_id', sa.String(100), nullable=True),
        sa.Column('approved_by', sa.String(100), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_commissions_distributor_id', 'commissions', ['distributor_id'])
    op.create_index('ix_commissions_status', 'commissions', ['status'])
    op.create_index('ix_commissions_session_id', 'commissions', ['session_id'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('distributor_id', sa.Uuid(), sa.ForeignKey('distributors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('transaction_type', sa.String(30), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('reference_id', sa.Uuid(), nullable=True),
        sa.Column('description', sa.String(500), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_transactions_distributor_id', 'transactions', ['distributor_id'])
    op.create_index('ix_transactions_reference_id', 'transactions', ['reference_id'])

    op.create_table(
        'withdrawals',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('distributor_id', sa.Uuid(), sa.ForeignKey('distributors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('withdrawal_method', sa.String(50), nullable=False),
        sa.Column('payment_details', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        *_timestamps(),
    )
    op.create_index('ix_withdrawals_distributor_id', 'withdrawals', ['distributor_id'])

    op.create_table(
        'activation_codes',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('code', sa.String(8), nullable=False),
        sa.Column('distributor_id', sa.Uuid(), sa.ForeignKey('distributors.id', ondelete='SET NULL'), nullable=True),
        sa.Column('session_id', sa.String(100), nullable=True),
        sa.Column('customer_name', sa.String(200), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=False),
        sa.Column('assessment_type', sa.String(20), nullable=False, server_default='individual'),
        sa.Column('plan_type', sa.String(20), nullable=False, server_default='annual'),
        sa.Column('purchase_id', sa.Uuid(), nullable=True),
        sa.Column('purchase_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('activated_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(with_updated=False),
    )
    op.create_index('ix_activation_codes_code', 'activation_codes', ['code'], unique=True)
    op.create_index('ix_activation_codes_distributor_id', 'activation_codes', ['distributor_id'])
    op.create_index('ix_activation_codes_session_id', 'activation_codes', ['session_id'])

    op.create_table(
        'auth_users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('user_metadata', sa.JSON(), nullable=True),
        sa.Column('email_confirmed', sa.Boolean(), nullable=True, server_default=sa.false()),
        *_timestamps(with_updated=False),
    )
    op.create_index('ix_auth_users_email', 'auth_users', ['email'], unique=True)

    op.create_table(
        'system_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('log_type', sa.String(50), nullable=False),
        sa.Column('distributor_id', sa.Uuid(), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True),
        *_timestamps(with_updated=False),
    )
    op.create_index('ix_system_logs_log_type', 'system_logs', ['log_type'])
    op.create_index('ix_system_logs_distributor_id', 'system_logs', ['distributor_id'])
    op.create_index('ix_system_logs_created_at', 'system_logs', ['created_at'])

    op.create_table(
        'realtime_events',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('channel', sa.String(100), nullable=False),
        sa.Column('event', sa.String(100), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=True),
        *_timestamps(with_updated=False),
    )
    op.create_index('ix_realtime_events_channel', 'realtime_events', ['channel'])
    op.create_index('ix_realtime_events_created_at', 'realtime_events', ['created_at'])


def downgrade() -> None:
    """Drop the commission bookkeeping schema."""
    for table in (
        'realtime_events',
        'system_logs',
        'auth_users',
        'activation_codes',
        'withdrawals',
        'transactions',
        'commissions',
        'purchases',
        'products',
        'distributors',
    ):
        op.drop_table(table)
