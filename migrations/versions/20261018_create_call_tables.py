"""create call_sessions and customers tables

Revision ID: 001_call_tables
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_call_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create session and customer tables."""

    op.create_table(
        'call_sessions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('call_id', sa.String(64), nullable=False, comment='Twilio call SID'),
        sa.Column('caller_address', sa.String(32), nullable=False, server_default=''),
        sa.Column('history', sa.Text(), nullable=False, server_default='[]'),
        sa.Column('partial_record', sa.Text(), nullable=False, server_default='{}'),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('call_id', name='uq_call_sessions_call_id'),
    )
    op.create_index('ix_call_sessions_caller_address', 'call_sessions', ['caller_address'])
    op.create_index('ix_call_sessions_created_at', 'call_sessions', ['created_at'])

    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('phone_number', sa.String(32), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('favorite_color', sa.String(32), nullable=False),
        sa.Column('steak_preference', sa.String(32), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('phone_number', name='uq_customers_phone_number'),
    )
    op.create_index('ix_customers_created_at', 'customers', ['created_at'])


def downgrade() -> None:
    """Drop session and customer tables."""

    op.drop_index('ix_customers_created_at', table_name='customers')
    op.drop_table('customers')

    op.drop_index('ix_call_sessions_created_at', table_name='call_sessions')
    op.drop_index('ix_call_sessions_caller_address', table_name='call_sessions')
    op.drop_table('call_sessions')
