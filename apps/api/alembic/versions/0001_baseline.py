"""Baseline migration - clients, users, service tags, tickets

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19

Creates the full helpdesk schema. Enum columns are stored as VARCHAR(32)
so the same revision runs on PostgreSQL and SQLite.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(*, updated: bool = True) -> list[sa.Column]:
    columns = [sa.Column('created_at', sa.DateTime(timezone=True), nullable=False)]
    if updated:
        columns.append(sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False))
    return columns


def upgrade() -> None:
    """Create helpdesk tables."""

    # ==========================================================================
    # Clients
    # ==========================================================================
    op.create_table(
        'clients',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('company_name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(64), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_clients_company_name', 'clients', ['company_name'])

    # ==========================================================================
    # Users (mirror of the identity provider record)
    # ==========================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('role', sa.String(32), nullable=False),
        sa.Column(
            'client_id',
            sa.Uuid(),
            sa.ForeignKey('clients.id', ondelete='RESTRICT'),
            nullable=True,
        ),
        sa.Column('is_disabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index('idx_users_role', 'users', ['role'])

    # ==========================================================================
    # Service tags
    # ==========================================================================
    op.create_table(
        'service_tags',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('tag', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('hardware_type', sa.String(255), nullable=False),
        sa.Column('location', sa.String(255), nullable=False),
        sa.Column(
            'client_id',
            sa.Uuid(),
            sa.ForeignKey('clients.id', ondelete='RESTRICT'),
            nullable=False,
        ),
        *_timestamps(),
        sa.UniqueConstraint('client_id', 'tag', name='uq_service_tags_client_tag'),
    )

    # ==========================================================================
    # Counters (ticket numbers)
    # ==========================================================================
    op.create_table(
        'counters',
        sa.Column('name', sa.String(64), primary_key=True),
        sa.Column('current_value', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    # ==========================================================================
    # Tickets
    # ==========================================================================
    op.create_table(
        'tickets',
        sa.Column('id', sa.String(16), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('status', sa.String(32), nullable=False),
        sa.Column('priority', sa.String(32), nullable=False),
        sa.Column('source', sa.String(32), nullable=False),
        sa.Column('client_id', sa.Uuid(), sa.ForeignKey('clients.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('reported_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('assigned_to', sa.Uuid(), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('approved_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejected_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('photo_url', sa.JSON(), nullable=True),
        sa.Column('time_open', sa.DateTime(timezone=True), nullable=True),
        sa.Column('time_closed', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_public_submission', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('client_was_new', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('contact_name', sa.String(255), nullable=True),
        sa.Column('contact_email', sa.String(255), nullable=True),
        sa.Column('contact_phone', sa.String(64), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_tickets_status', 'tickets', ['status'])
    op.create_index('idx_tickets_client_created', 'tickets', ['client_id', 'created_at'])
    op.create_index('idx_tickets_assigned_to', 'tickets', ['assigned_to'])

    op.create_table(
        'ticket_service_tags',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('ticket_id', sa.String(16), sa.ForeignKey('tickets.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'service_tag_id',
            sa.Uuid(),
            sa.ForeignKey('service_tags.id', ondelete='RESTRICT'),
            nullable=False,
        ),
        *_timestamps(updated=False),
        sa.UniqueConstraint('ticket_id', 'service_tag_id', name='uq_ticket_service_tag'),
    )
    op.create_index('idx_ticket_service_tags_tag', 'ticket_service_tags', ['service_tag_id'])

    # ==========================================================================
    # History and comments
    # ==========================================================================
    op.create_table(
        'ticket_updates',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('ticket_id', sa.String(16), sa.ForeignKey('tickets.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('update_type', sa.String(32), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index('idx_ticket_updates_ticket_created', 'ticket_updates', ['ticket_id', 'created_at'])

    op.create_table(
        'ticket_comments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('ticket_id', sa.String(16), sa.ForeignKey('tickets.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('user_name', sa.String(255), nullable=False),
        sa.Column('user_role', sa.String(32), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('photo_urls', sa.JSON(), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_ticket_comments_ticket_created', 'ticket_comments', ['ticket_id', 'created_at'])


def downgrade() -> None:
    """Drop helpdesk tables."""
    op.drop_table('ticket_comments')
    op.drop_table('ticket_updates')
    op.drop_table('ticket_service_tags')
    op.drop_table('tickets')
    op.drop_table('counters')
    op.drop_table('service_tags')
    op.drop_table('users')
    op.drop_table('clients')
