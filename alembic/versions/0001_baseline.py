"""Baseline migration - users, households, requests, incidents, notifications

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-18

users.household_id and households.owner_id reference each other, so the
users -> households foreign key is added after both tables exist.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables."""

    # ==========================================================================
    # Users and households
    # ==========================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(32), nullable=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='user'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('household_id', sa.String(8), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_users_household', 'users', ['household_id'])
    op.create_index('idx_users_position', 'users', ['latitude', 'longitude'])

    op.create_table(
        'households',
        sa.Column('id', sa.String(8), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('number_of_members', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('owner_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )

    with op.batch_alter_table('users') as batch:
        batch.create_foreign_key(
            'fk_users_household_id', 'households', ['household_id'], ['id']
        )

    op.create_table(
        'unregistered_household_members',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('household_id', sa.String(8), sa.ForeignKey('households.id'), nullable=False),
    )
    op.create_index(
        'ix_unregistered_household_members_household_id',
        'unregistered_household_members',
        ['household_id'],
    )

    op.create_table(
        'membership_requests',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('household_id', sa.String(8), sa.ForeignKey('households.id'), nullable=False),
        sa.Column('sender_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('receiver_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        'idx_mreq_household_type_status', 'membership_requests',
        ['household_id', 'type', 'status'],
    )
    op.create_index(
        'idx_mreq_receiver_type_status', 'membership_requests',
        ['receiver_id', 'type', 'status'],
    )
    op.create_index('idx_mreq_sender_status', 'membership_requests', ['sender_id', 'status'])

    # ==========================================================================
    # Scenarios and incidents
    # ==========================================================================
    op.create_table(
        'scenarios',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('to_do', sa.Text(), nullable=True),
        sa.Column('packing_list', sa.Text(), nullable=True),
        sa.Column('icon_name', sa.String(100), nullable=True),
    )

    op.create_table(
        'incidents',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('impact_radius', sa.Float(), nullable=False),
        sa.Column('severity', sa.String(20), nullable=False, server_default='green'),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('scenario_id', sa.Uuid(), sa.ForeignKey('scenarios.id'), nullable=False),
    )

    # ==========================================================================
    # Notifications
    # ==========================================================================
    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index('idx_notif_user_timestamp', 'notifications', ['user_id', 'timestamp'])
    op.create_index('idx_notif_user_unread', 'notifications', ['user_id', 'is_read'])

    # ==========================================================================
    # Storage (read by the expiry scan) and map icons
    # ==========================================================================
    op.create_table(
        'items',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('item_type', sa.String(20), nullable=False, server_default='other'),
        sa.Column('caloric_amount', sa.Integer(), nullable=False, server_default='0'),
    )

    op.create_table(
        'storage_items',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('household_id', sa.String(8), sa.ForeignKey('households.id'), nullable=False),
        sa.Column('item_id', sa.Uuid(), sa.ForeignKey('items.id'), nullable=False),
        sa.Column('unit', sa.String(20), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('expiration_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('date_added', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_storage_items_household_id', 'storage_items', ['household_id'])
    op.create_index('idx_storage_expiration', 'storage_items', ['expiration_date'])

    op.create_table(
        'map_icons',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('opening_hours', sa.String(255), nullable=True),
        sa.Column('contact_info', sa.String(255), nullable=True),
    )
    op.create_index('idx_map_icons_position', 'map_icons', ['latitude', 'longitude'])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('map_icons')
    op.drop_table('storage_items')
    op.drop_table('items')
    op.drop_table('notifications')
    op.drop_table('incidents')
    op.drop_table('scenarios')
    op.drop_table('membership_requests')
    op.drop_table('unregistered_household_members')
    with op.batch_alter_table('users') as batch:
        batch.drop_constraint('fk_users_household_id', type_='foreignkey')
    op.drop_table('households')
    op.drop_table('users')
