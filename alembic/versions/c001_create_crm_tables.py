"""Create CRM clients, subscriptions, campaigns, email jobs and events

Revision ID: c001
Revises:
Create Date: 2026-10-17

This migration creates tables for:
- Clients with tags and per-channel subscriptions
- Campaigns and their per-recipient email jobs (with tracking tokens)
- The append-only tracking event log
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'c001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ==== CLIENTS & TAGS ====
    op.create_table(
        'clients',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('company', sa.String(200), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('state', sa.String(100), nullable=True),
        sa.Column('postal_code', sa.String(20), nullable=True),
        sa.Column('country', sa.String(100), nullable=True),
        sa.Column('custom_fields', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_clients_email', 'clients', ['email'], unique=True)

    op.create_table(
        'tags',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_tags_name', 'tags', ['name'], unique=True)

    op.create_table(
        'client_tags',
        sa.Column(
            'client_id',
            sa.String(),
            sa.ForeignKey('clients.id', ondelete='CASCADE'),
            primary_key=True,
        ),
        sa.Column(
            'tag_id',
            sa.String(),
            sa.ForeignKey('tags.id', ondelete='CASCADE'),
            primary_key=True,
        ),
    )

    # ==== SUBSCRIPTIONS ====
    op.create_table(
        'subscriptions',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column(
            'client_id',
            sa.String(),
            sa.ForeignKey('clients.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('channel', sa.String(20), nullable=False, server_default=sa.text("'email'")),
        sa.Column('status', sa.String(20), nullable=False, server_default=sa.text("'subscribed'")),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),

        # One subscription row per client per channel
        sa.UniqueConstraint('client_id', 'channel', name='uq_subscription_client_channel'),
    )
    op.create_index('ix_subscriptions_client_id', 'subscriptions', ['client_id'])

    # ==== CAMPAIGNS ====
    op.create_table(
        'campaigns',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('subject', sa.String(500), nullable=False),
        sa.Column('from_email', sa.String(255), nullable=False),
        sa.Column('from_name', sa.String(200), nullable=True),
        sa.Column('body_html', sa.Text(), nullable=False),
        sa.Column('body_text', sa.Text(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default=sa.text("'DRAFT'")),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_check_constraint(
        'check_campaign_status',
        'campaigns',
        "status IN ('DRAFT', 'SCHEDULED', 'SENDING', 'SENT', 'CANCELLED')"
    )
    op.create_index('ix_campaigns_status', 'campaigns', ['status'])

    # ==== EMAIL JOBS ====
    op.create_table(
        'email_jobs',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column(
            'campaign_id',
            sa.String(),
            sa.ForeignKey('campaigns.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'client_id',
            sa.String(),
            sa.ForeignKey('clients.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('to_email', sa.String(255), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column('error', sa.Text(), nullable=True),

        # Tracking tokens
        sa.Column('open_token', sa.String(64), nullable=False),
        sa.Column('click_token', sa.String(64), nullable=False),
        sa.Column('unsub_token', sa.String(64), nullable=False),

        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('opened_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('clicked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('unsub_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),

        sa.UniqueConstraint('open_token', name='uq_email_jobs_open_token'),
        sa.UniqueConstraint('click_token', name='uq_email_jobs_click_token'),
        sa.UniqueConstraint('unsub_token', name='uq_email_jobs_unsub_token'),
        sa.UniqueConstraint('campaign_id', 'client_id', name='uq_email_job_campaign_client'),
    )
    op.create_check_constraint(
        'check_email_job_status',
        'email_jobs',
        "status IN ('PENDING', 'SENDING', 'SENT', 'FAILED', 'SUPPRESSED')"
    )
    op.create_index('ix_email_jobs_campaign_id', 'email_jobs', ['campaign_id'])
    op.create_index('ix_email_jobs_client_id', 'email_jobs', ['client_id'])
    op.create_index('ix_email_jobs_status', 'email_jobs', ['status'])

    # ==== EVENTS ====
    op.create_table(
        'events',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column(
            'client_id',
            sa.String(),
            sa.ForeignKey('clients.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'job_id',
            sa.String(),
            sa.ForeignKey('email_jobs.id', ondelete='CASCADE'),
            nullable=True,
        ),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_events_type', 'events', ['type'])
    op.create_index('ix_events_client_id', 'events', ['client_id'])
    op.create_index('ix_events_job_id', 'events', ['job_id'])


def downgrade() -> None:
    op.drop_index('ix_events_job_id', table_name='events')
    op.drop_index('ix_events_client_id', table_name='events')
    op.drop_index('ix_events_type', table_name='events')
    op.drop_table('events')

    op.drop_index('ix_email_jobs_status', table_name='email_jobs')
    op.drop_index('ix_email_jobs_client_id', table_name='email_jobs')
    op.drop_index('ix_email_jobs_campaign_id', table_name='email_jobs')
    op.drop_constraint('check_email_job_status', 'email_jobs', type_='check')
    op.drop_table('email_jobs')

    op.drop_index('ix_campaigns_status', table_name='campaigns')
    op.drop_constraint('check_campaign_status', 'campaigns', type_='check')
    op.drop_table('campaigns')

    op.drop_index('ix_subscriptions_client_id', table_name='subscriptions')
    op.drop_table('subscriptions')

    op.drop_table('client_tags')
    op.drop_index('ix_tags_name', table_name='tags')
    op.drop_table('tags')
    op.drop_index('ix_clients_email', table_name='clients')
    op.drop_table('clients')
