"""Initial lead schema: website_configs, leads, lead_status_changes, spam_rules, daily_lead_reports

Revision ID: 3f9a0c6d2e71
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9a0c6d2e71'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('website_configs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Text(), nullable=False),
        sa.Column('website_name', sa.Text(), nullable=False),
        sa.Column('website_url', sa.Text(), nullable=True),
        sa.Column('api_key', sa.Text(), nullable=False),
        sa.Column('webhook_secret', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('daily_report_enabled', sa.Boolean(), nullable=True),
        sa.Column('daily_report_emails', sa.JSON(), nullable=True),
        sa.Column('last_sync_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('api_key'),
    )
    op.create_index('ix_website_configs_tenant_id', 'website_configs', ['tenant_id'])

    op.create_table('leads',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Text(), nullable=False),
        sa.Column('website_config_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('phone', sa.Text(), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('enquiry_date', sa.Text(), nullable=True),
        sa.Column('booked_date', sa.Text(), nullable=True),
        sa.Column('arrival_date', sa.Text(), nullable=True),
        sa.Column('departure_date', sa.Text(), nullable=True),
        sa.Column('adults', sa.Integer(), nullable=True),
        sa.Column('children', sa.Integer(), nullable=True),
        sa.Column('interested_in', sa.Text(), nullable=True),
        sa.Column('nationality', sa.Text(), nullable=True),
        sa.Column('lead_value', sa.Float(), nullable=True),
        sa.Column('lead_source', sa.Text(), nullable=True),
        sa.Column('form_id', sa.Text(), nullable=False),
        sa.Column('form_title', sa.Text(), nullable=True),
        sa.Column('entry_id', sa.Text(), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('source_url', sa.Text(), nullable=True),
        sa.Column('utm_source', sa.Text(), nullable=True),
        sa.Column('utm_medium', sa.Text(), nullable=True),
        sa.Column('utm_campaign', sa.Text(), nullable=True),
        sa.Column('referrer', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.Text(), nullable=True),
        sa.Column('quality_score', sa.Float(), nullable=True),
        sa.Column('quality_tier', sa.Text(), nullable=True),
        sa.Column('quality_reasons', sa.JSON(), nullable=True),
        sa.Column('spam_score', sa.Float(), nullable=True),
        sa.Column('spam_flags', sa.JSON(), nullable=True),
        sa.Column('is_spam', sa.Boolean(), nullable=True),
        sa.Column('is_duplicate', sa.Boolean(), nullable=True),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('webhook_payload', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['website_config_id'], ['website_configs.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('website_config_id', 'form_id', 'entry_id', name='uq_lead_composite_key'),
    )
    op.create_index('ix_leads_tenant_id', 'leads', ['tenant_id'])
    op.create_index('ix_leads_submitted_at', 'leads', ['submitted_at'])

    op.create_table('lead_status_changes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('lead_id', sa.Integer(), nullable=False),
        sa.Column('field_changed', sa.Text(), nullable=False),
        sa.Column('old_value', sa.Text(), nullable=True),
        sa.Column('new_value', sa.Text(), nullable=False),
        sa.Column('changed_by', sa.Text(), nullable=True),
        sa.Column('change_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['lead_id'], ['leads.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_lead_status_changes_lead_id', 'lead_status_changes', ['lead_id'])

    op.create_table('spam_rules',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Text(), nullable=True),
        sa.Column('rule_name', sa.Text(), nullable=False),
        sa.Column('rule_type', sa.Text(), nullable=False),
        sa.Column('rule_value', sa.Text(), nullable=False),
        sa.Column('score_increment', sa.Float(), nullable=True),
        sa.Column('is_blocking', sa.Boolean(), nullable=True),
        sa.Column('enabled', sa.Boolean(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_spam_rules_tenant_id', 'spam_rules', ['tenant_id'])

    op.create_table('daily_lead_reports',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Text(), nullable=False),
        sa.Column('report_date', sa.Date(), nullable=False),
        sa.Column('total_leads', sa.Integer(), nullable=True),
        sa.Column('high_quality_leads', sa.Integer(), nullable=True),
        sa.Column('medium_quality_leads', sa.Integer(), nullable=True),
        sa.Column('low_quality_leads', sa.Integer(), nullable=True),
        sa.Column('spam_leads', sa.Integer(), nullable=True),
        sa.Column('duplicate_leads', sa.Integer(), nullable=True),
        sa.Column('exceptions', sa.JSON(), nullable=True),
        sa.Column('exception_count', sa.Integer(), nullable=True),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('report_html', sa.Text(), nullable=True),
        sa.Column('sent_to', sa.JSON(), nullable=True),
        sa.Column('delivery_status', sa.Text(), nullable=True),
        sa.Column('delivery_error', sa.Text(), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'report_date', name='uq_daily_report_tenant_date'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('daily_lead_reports')
    op.drop_index('ix_spam_rules_tenant_id', table_name='spam_rules')
    op.drop_table('spam_rules')
    op.drop_index('ix_lead_status_changes_lead_id', table_name='lead_status_changes')
    op.drop_table('lead_status_changes')
    op.drop_index('ix_leads_submitted_at', table_name='leads')
    op.drop_index('ix_leads_tenant_id', table_name='leads')
    op.drop_table('leads')
    op.drop_index('ix_website_configs_tenant_id', table_name='website_configs')
    op.drop_table('website_configs')
