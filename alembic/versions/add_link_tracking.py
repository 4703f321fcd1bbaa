"""Add assessment link tracking tables

Revision ID: add_link_tracking
Revises: create_commission_schema
Create Date: 2026-10-18 15:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'add_link_tracking'
down_revision = 'create_commission_schema'
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create assessment_links and link_analytics."""
    op.create_table(
        'assessment_links',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('distributor_id', sa.Uuid(), sa.ForeignKey('distributors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('link_code', sa.String(120), nullable=False),
        sa.Column('campaign_name', sa.String(200), nullable=False),
        sa.Column('link_type', sa.String(20), nullable=False, server_default='customer'),
        sa.Column('target_audience', sa.String(200), nullable=True),
        sa.Column('focus_area', sa.String(100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('click_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('conversion_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_assessment_links_link_code', 'assessment_links', ['link_code'], unique=True)
    op.create_index('ix_assessment_links_distributor_id', 'assessment_links', ['distributor_id'])

    op.create_table(
        'link_analytics',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('link_id', sa.Uuid(), sa.ForeignKey('assessment_links.id', ondelete='CASCADE'), nullable=False),
        sa.Column('event_type', sa.String(20), nullable=False),
        sa.Column('visitor_id', sa.String(64), nullable=True),
        sa.Column('session_id', sa.String(100), nullable=True),
        sa.Column('ip_address', sa.String(64), nullable=True),
        sa.Column('user_agent', sa.String(500), nullable=True),
        sa.Column('referrer', sa.String(500), nullable=True),
        sa.Column('conversion_value', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_link_analytics_link_id', 'link_analytics', ['link_id'])
    op.create_index('ix_link_analytics_session_id', 'link_analytics', ['session_id'])
    op.create_index('ix_link_analytics_created_at', 'link_analytics', ['created_at'])


def downgrade() -> None:
    """Drop the link tracking tables."""
    op.drop_table('link_analytics')
    op.drop_table('assessment_links')
