"""Create users, chatrooms, messages and usage_records

Revision ID: 0001_chat_pipeline
Revises:
Create Date: 2026-10-19

Creates tables for the chat pipeline:
- users: identity and subscription tier (owned by the auth collaborator)
- chatrooms: conversations per user
- messages: user messages and AI placeholders/replies
- usage_records: per-user per-day message counters
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_chat_pipeline'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('mobile_number', sa.String(15), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('subscription_tier', sa.String(20), server_default='basic', nullable=False),
        sa.Column('stripe_customer_id', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('mobile_number'),
    )

    op.create_table(
        'chatrooms',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_chatrooms_user_id', 'chatrooms', ['user_id'], unique=False)

    op.create_table(
        'messages',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('chatroom_id', sa.UUID(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('sender', sa.String(10), nullable=False),
        sa.Column('status', sa.String(20), server_default='completed', nullable=False),
        sa.Column('reply_to_id', sa.UUID(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['chatroom_id'], ['chatrooms.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reply_to_id'], ['messages.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_messages_chatroom_created', 'messages', ['chatroom_id', 'created_at'], unique=False)
    op.create_index('ix_messages_status_created', 'messages', ['status', 'created_at'], unique=False)

    op.create_table(
        'usage_records',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('usage_date', sa.Date(), nullable=False),
        sa.Column('message_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'usage_date', name='uq_usage_records_user_date'),
    )
    op.create_index('ix_usage_records_user_id', 'usage_records', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_usage_records_user_id', table_name='usage_records')
    op.drop_table('usage_records')
    op.drop_index('ix_messages_status_created', table_name='messages')
    op.drop_index('ix_messages_chatroom_created', table_name='messages')
    op.drop_table('messages')
    op.drop_index('ix_chatrooms_user_id', table_name='chatrooms')
    op.drop_table('chatrooms')
    op.drop_table('users')
