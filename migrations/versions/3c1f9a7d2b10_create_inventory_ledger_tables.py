"""create pharmacy, optical and stock movement tables

Revision ID: 3c1f9a7d2b10
Revises:
Create Date: 2026-10-19 10:12:44.318207
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = '3c1f9a7d2b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ITEM_TYPES = ('pharmacy', 'optical')
MOVEMENT_TYPES = ('purchase', 'sale', 'adjustment', 'return', 'expired', 'damaged')
OPTICAL_ITEM_TYPES = ('medicine', 'frames', 'lenses', 'accessories', 'equipment', 'consumables')


def _audit_columns():
    return [
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_by', sa.String(length=64), nullable=True),
        sa.Column('updated_by', sa.String(length=64), nullable=True),
    ]


def _catalog_columns():
    return [
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('supplier', sa.String(length=200), nullable=True),
        sa.Column('hsn_code', sa.String(length=20), nullable=True),
        sa.Column('image_url', sa.String(length=255), nullable=True),
        sa.Column('purchase_price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('selling_price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('mrp', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('gst_percentage', sa.Numeric(5, 2), nullable=True),
        sa.Column('stock_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reorder_level', sa.Integer(), nullable=False, server_default='0'),
    ]


def _catalog_indexes(table: str):
    op.create_index(f'ix_{table}_id', table, ['id'])
    op.create_index(f'ix_{table}_name', table, ['name'])
    op.create_index(f'ix_{table}_sku', table, ['sku'], unique=True)
    op.create_index(f'ix_{table}_category', table, ['category'])


def upgrade() -> None:
    op.create_table(
        'pharmacy_items',
        *_audit_columns(),
        *_catalog_columns(),
        sa.Column('generic_name', sa.String(length=200), nullable=True),
        sa.Column('manufacturer', sa.String(length=200), nullable=True),
        sa.Column('batch_number', sa.String(length=50), nullable=True),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('prescription_required', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('dosage_form', sa.String(length=50), nullable=True),
        sa.Column('strength', sa.String(length=50), nullable=True),
        sa.Column('storage_instructions', sa.Text(), nullable=True),
    )
    _catalog_indexes('pharmacy_items')

    op.create_table(
        'optical_items',
        *_audit_columns(),
        *_catalog_columns(),
        sa.Column('optical_type', sa.Enum(*OPTICAL_ITEM_TYPES, name='optical_item_type'), nullable=False),
        sa.Column('brand', sa.String(length=100), nullable=True),
        sa.Column('model', sa.String(length=100), nullable=True),
        sa.Column('size', sa.String(length=50), nullable=True),
        sa.Column('color', sa.String(length=50), nullable=True),
        sa.Column('material', sa.String(length=100), nullable=True),
        sa.Column('gender', sa.String(length=20), nullable=True),
        sa.Column('warranty_months', sa.Integer(), nullable=True),
    )
    _catalog_indexes('optical_items')
    op.create_index('ix_optical_items_optical_type', 'optical_items', ['optical_type'])

    op.create_table(
        'stock_movements',
        *_audit_columns(),
        sa.Column('item_type', sa.Enum(*ITEM_TYPES, name='inventory_item_type'), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('item_name', sa.String(length=200), nullable=False),
        sa.Column('movement_type', sa.Enum(*MOVEMENT_TYPES, name='stock_movement_type'), nullable=False),
        sa.Column('movement_date', sa.Date(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('total_value', sa.Numeric(12, 2), nullable=True),
        sa.Column('previous_stock', sa.Integer(), nullable=False),
        sa.Column('new_stock', sa.Integer(), nullable=False),
        sa.Column('reference_number', sa.String(length=100), nullable=True),
        sa.Column('supplier', sa.String(length=200), nullable=True),
        sa.Column('customer_name', sa.String(length=200), nullable=True),
        sa.Column('invoice_id', sa.String(length=64), nullable=True),
        sa.Column('batch_number', sa.String(length=50), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('user_id', sa.String(length=64), nullable=True),
        sa.Column('reversal_of_id', sa.Integer(), sa.ForeignKey('stock_movements.id'), nullable=True),
        sa.UniqueConstraint('reversal_of_id', name='uq_stock_movements_reversal_of_id'),
    )
    op.create_index('ix_stock_movements_id', 'stock_movements', ['id'])
    op.create_index('ix_stock_movements_movement_type', 'stock_movements', ['movement_type'])
    op.create_index('ix_stock_movements_movement_date', 'stock_movements', ['movement_date'])
    op.create_index('ix_stock_movements_item', 'stock_movements', ['item_type', 'item_id', 'movement_date'])
    print("✓ [3c1f9a7d2b10] Created pharmacy_items, optical_items and stock_movements")


def downgrade() -> None:
    op.drop_table('stock_movements')
    op.drop_table('optical_items')
    op.drop_table('pharmacy_items')

    bind = op.get_bind()
    for enum_name in ('stock_movement_type', 'inventory_item_type', 'optical_item_type'):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
