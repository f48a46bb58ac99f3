"""Create inventory ledger tables

Revision ID: 3f1c9a2b7d10
Revises:
Create Date: 2026-10-19 09:12:40.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# Revision identifiers used by Alembic
revision: str = '3f1c9a2b7d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MOVEMENT_TYPES = ('RECEIVED', 'SOLD', 'DAMAGED', 'EXPIRED', 'CORRECTION',
                  'RETURNED', 'TRANSFER_OUT', 'TRANSFER_IN')


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('image_uri', sa.String(), nullable=True),
        sa.Column('search_key', sa.String(), nullable=False, server_default=''),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('opening_stock', sa.Integer(), nullable=False),
        sa.Column('stock_qty', sa.Integer(), nullable=False),
        sa.Column('min_stock_level', sa.Integer(), nullable=False),
        sa.Column('last_stock_update', sa.DateTime(), nullable=True),
        sa.Column('last_modified', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('price >= 0', name='ck_products_price'),
        sa.CheckConstraint('stock_qty >= 0', name='ck_products_stock_qty'),
        sa.CheckConstraint('min_stock_level >= 0', name='ck_products_min_stock_level'),
        sa.CheckConstraint('opening_stock >= 0', name='ck_products_opening_stock'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_products_id'), 'products', ['id'], unique=False)
    op.create_index(op.f('ix_products_sku'), 'products', ['sku'], unique=True)
    op.create_index(op.f('ix_products_name'), 'products', ['name'], unique=False)
    op.create_index(op.f('ix_products_category'), 'products', ['category'], unique=False)
    op.create_index(op.f('ix_products_stock_qty'), 'products', ['stock_qty'], unique=False)

    op.create_table(
        'stock_movements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity_change', sa.Integer(), nullable=False),
        sa.Column('balance_after', sa.Integer(), nullable=False),
        sa.Column('movement_type', sa.Enum(*MOVEMENT_TYPES, name='movementtype'), nullable=False),
        sa.Column('reason', sa.String(), nullable=True),
        sa.Column('staff_member', sa.String(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.CheckConstraint('quantity_change <> 0', name='ck_stock_movements_nonzero'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_stock_movements_id'), 'stock_movements', ['id'], unique=False)
    op.create_index(op.f('ix_stock_movements_product_id'), 'stock_movements', ['product_id'], unique=False)
    op.create_index(op.f('ix_stock_movements_movement_type'), 'stock_movements', ['movement_type'], unique=False)
    op.create_index(op.f('ix_stock_movements_staff_member'), 'stock_movements', ['staff_member'], unique=False)
    op.create_index(op.f('ix_stock_movements_timestamp'), 'stock_movements', ['timestamp'], unique=False)
    op.create_index('ix_stock_movements_product_ts', 'stock_movements', ['product_id', 'timestamp'], unique=False)

    op.create_table(
        'logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('ts', sa.DateTime(), nullable=False),
        sa.Column('actor', sa.String(length=100), nullable=True),
        sa.Column('action', sa.String(length=50), nullable=True),
        sa.Column('resource', sa.String(length=50), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_logs_id'), 'logs', ['id'], unique=False)
    op.create_index(op.f('ix_logs_ts'), 'logs', ['ts'], unique=False)
    op.create_index(op.f('ix_logs_action'), 'logs', ['action'], unique=False)
    op.create_index(op.f('ix_logs_resource'), 'logs', ['resource'], unique=False)
    op.create_index(op.f('ix_logs_status'), 'logs', ['status'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('logs')
    op.drop_index('ix_stock_movements_product_ts', table_name='stock_movements')
    op.drop_table('stock_movements')
    op.drop_table('products')
    sa.Enum(name='movementtype').drop(op.get_bind(), checkfirst=True)
