"""create mirror tables

Revision ID: 20260101_000001
Revises:
Create Date: 2026-01-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20260101_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# uint256 values are stored as decimal strings
UINT256 = sa.String(78)


def upgrade() -> None:
    """Create farms, carbon_readings, carbon_credits and sync_cursor tables."""
    op.create_table(
        'farms',
        sa.Column('id', sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column('farmer', sa.String(42), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('area', UINT256, nullable=False),
        sa.Column('location', sa.Text(), nullable=False),
        sa.Column('soil_type', sa.Text(), nullable=False),
        sa.Column('total_carbon', UINT256, nullable=False),
        sa.Column('carbon_debt', UINT256, nullable=False),
        sa.Column('last_reading_timestamp', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('indexed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_farms_farmer', 'farms', ['farmer'])
    op.create_index('ix_farms_created_at', 'farms', ['created_at'])

    op.create_table(
        'carbon_readings',
        sa.Column('id', sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column('farm_id', sa.BigInteger(), nullable=False),
        sa.Column('amount', UINT256, nullable=False),
        sa.Column('source', sa.Text(), nullable=False),
        sa.Column('verification_hash', sa.Text(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('verified_by', sa.String(42), nullable=False),
        sa.Column('indexed_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['farm_id'], ['farms.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_carbon_readings_farm_id', 'carbon_readings', ['farm_id'])
    op.create_index('ix_carbon_readings_timestamp', 'carbon_readings', ['timestamp'])

    op.create_table(
        'carbon_credits',
        sa.Column('token_id', sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column('farm_id', sa.BigInteger(), nullable=False),
        sa.Column('farmer', sa.String(42), nullable=False),
        sa.Column('carbon_amount', UINT256, nullable=False),
        sa.Column('methodology', sa.Text(), nullable=False),
        sa.Column('vintage', sa.DateTime(timezone=True), nullable=False),
        sa.Column('minted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_retired', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('retired_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('retirement_reason', sa.Text(), nullable=True),
        sa.Column('token_uri', sa.Text(), nullable=False, server_default=''),
        sa.Column('indexed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('token_id'),
    )
    op.create_index('ix_carbon_credits_farm_id', 'carbon_credits', ['farm_id'])
    op.create_index('ix_carbon_credits_farmer', 'carbon_credits', ['farmer'])
    op.create_index('ix_carbon_credits_minted_at', 'carbon_credits', ['minted_at'])
    op.create_index('ix_carbon_credits_is_retired', 'carbon_credits', ['is_retired'])

    op.create_table(
        'sync_cursor',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('last_block', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('last_synced_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('error_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    """Drop mirror tables."""
    op.drop_table('sync_cursor')

    op.drop_index('ix_carbon_credits_is_retired', table_name='carbon_credits')
    op.drop_index('ix_carbon_credits_minted_at', table_name='carbon_credits')
    op.drop_index('ix_carbon_credits_farmer', table_name='carbon_credits')
    op.drop_index('ix_carbon_credits_farm_id', table_name='carbon_credits')
    op.drop_table('carbon_credits')

    op.drop_index('ix_carbon_readings_timestamp', table_name='carbon_readings')
    op.drop_index('ix_carbon_readings_farm_id', table_name='carbon_readings')
    op.drop_table('carbon_readings')

    op.drop_index('ix_farms_created_at', table_name='farms')
    op.drop_index('ix_farms_farmer', table_name='farms')
    op.drop_table('farms')
