"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

Creates the Liftx tables:
- users: Identity and subscription state
- posts / post_platforms: Posts and their per-platform fan-out rows
- connected_accounts: Linked social accounts
- post_metrics: Engagement counters per post and platform
- processed_webhook_events: Stripe webhook idempotency
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    """Create all tables."""

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('open_id', sa.String(255), nullable=False),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('email', sa.String(320), nullable=True),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('login_method', sa.String(64), nullable=True),
        sa.Column('role', sa.String(16), server_default='user', nullable=False),
        sa.Column('subscription_tier', sa.String(16), server_default='trial', nullable=False),
        sa.Column('stripe_customer_id', sa.String(128), nullable=True),
        sa.Column('stripe_subscription_id', sa.String(128), nullable=True),
        sa.Column('subscription_status', sa.String(32), server_default='active', nullable=False),
        sa.Column('subscription_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('pro_post_limit', sa.Integer(), nullable=True),
        sa.Column('last_signed_in', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_users_open_id', 'users', ['open_id'], unique=True)
    op.create_index('ix_users_stripe_customer_id', 'users', ['stripe_customer_id'], unique=True)

    op.create_table(
        'posts',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('caption', sa.Text(), nullable=True),
        sa.Column('content_type', sa.String(16), nullable=False),
        sa.Column('media_urls', sa.JSON(), nullable=True),
        sa.Column('media_keys', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(16), server_default='draft', nullable=False),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('failure_reason', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_posts_user_id', 'posts', ['user_id'])
    op.create_index('ix_posts_status', 'posts', ['status'])
    # Daily quota count: user_id + created_at range
    op.create_index('ix_posts_user_id_created_at', 'posts', ['user_id', 'created_at'])

    op.create_table(
        'post_platforms',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('post_id', sa.Integer(), sa.ForeignKey('posts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('platform', sa.String(16), nullable=False),
        sa.Column('status', sa.String(16), server_default='pending', nullable=False),
        sa.Column('platform_post_id', sa.String(256), nullable=True),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('failure_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('post_id', 'platform', name='uq_post_platforms_post_platform'),
    )
    op.create_index('ix_post_platforms_post_id', 'post_platforms', ['post_id'])

    op.create_table(
        'connected_accounts',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('platform', sa.String(16), nullable=False),
        sa.Column('platform_user_id', sa.String(128), nullable=True),
        sa.Column('platform_username', sa.String(128), nullable=True),
        sa.Column('platform_display_name', sa.Text(), nullable=True),
        sa.Column('platform_avatar_url', sa.Text(), nullable=True),
        sa.Column('access_token', sa.Text(), nullable=True),
        sa.Column('refresh_token', sa.Text(), nullable=True),
        sa.Column('token_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'platform', name='uq_connected_accounts_user_platform'),
    )
    op.create_index('ix_connected_accounts_user_id', 'connected_accounts', ['user_id'])

    op.create_table(
        'post_metrics',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('post_id', sa.Integer(), sa.ForeignKey('posts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('post_platform_id', sa.Integer(), sa.ForeignKey('post_platforms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('platform', sa.String(16), nullable=False),
        sa.Column('impressions', sa.BigInteger(), server_default='0', nullable=False),
        sa.Column('reach', sa.BigInteger(), server_default='0', nullable=False),
        sa.Column('likes', sa.BigInteger(), server_default='0', nullable=False),
        sa.Column('comments', sa.BigInteger(), server_default='0', nullable=False),
        sa.Column('shares', sa.BigInteger(), server_default='0', nullable=False),
        sa.Column('clicks', sa.BigInteger(), server_default='0', nullable=False),
        sa.Column('saves', sa.BigInteger(), server_default='0', nullable=False),
        sa.Column('estimated_revenue', sa.String(32), server_default='0.00', nullable=False),
        sa.Column('fetched_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_post_metrics_post_id', 'post_metrics', ['post_id'])

    op.create_table(
        'processed_webhook_events',
        sa.Column('event_id', sa.String(255), primary_key=True),
        sa.Column('event_type', sa.String(255), nullable=False),
        sa.Column(
            'processed_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
    )
    # Index for cleanup queries (delete events older than X days)
    op.create_index(
        'ix_processed_webhook_events_processed_at',
        'processed_webhook_events',
        ['processed_at'],
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index('ix_processed_webhook_events_processed_at', table_name='processed_webhook_events')
    op.drop_table('processed_webhook_events')
    op.drop_index('ix_post_metrics_post_id', table_name='post_metrics')
    op.drop_table('post_metrics')
    op.drop_index('ix_connected_accounts_user_id', table_name='connected_accounts')
    op.drop_table('connected_accounts')
    op.drop_index('ix_post_platforms_post_id', table_name='post_platforms')
    op.drop_table('post_platforms')
    op.drop_index('ix_posts_user_id_created_at', table_name='posts')
    op.drop_index('ix_posts_status', table_name='posts')
    op.drop_index('ix_posts_user_id', table_name='posts')
    op.drop_table('posts')
    op.drop_index('ix_users_stripe_customer_id', table_name='users')
    op.drop_index('ix_users_open_id', table_name='users')
    op.drop_table('users')
