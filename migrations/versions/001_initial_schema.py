"""Initial schema - users, catalog, inventory items, ledger and alerts

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=50), nullable=False, server_default='user'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_users')
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    # Create categories table
    op.create_table(
        'categories',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_categories'),
        sa.UniqueConstraint('name', name='uq_categories_name'),
        sa.UniqueConstraint('code', name='uq_categories_code')
    )

    # Create suppliers table
    op.create_table(
        'suppliers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('contact_person', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('email', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('phone', sa.String(length=50), nullable=False, server_default=''),
        sa.Column('address', sa.Text(), nullable=False, server_default=''),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_suppliers'),
        sa.UniqueConstraint('code', name='uq_suppliers_code')
    )

    # Create inventory_items table
    op.create_table(
        'inventory_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('sku', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=500), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('category_id', sa.Uuid(), nullable=False),
        sa.Column('item_type', sa.String(length=50), nullable=False),
        sa.Column('unit', sa.String(length=50), nullable=False),
        sa.Column('unit_cost', sa.DECIMAL(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('selling_price', sa.DECIMAL(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('qty_on_hand', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('qty_reserved', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('qty_ordered', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('qty_available', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('min_threshold', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('max_threshold', sa.Integer(), nullable=False, server_default='1000'),
        sa.Column('reorder_point', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('lead_time_days', sa.Integer(), nullable=False, server_default='7'),
        sa.Column('supplier_id', sa.Uuid(), nullable=True),
        sa.Column('warehouse', sa.String(length=255), nullable=False, server_default='Main Warehouse'),
        sa.Column('aisle', sa.String(length=50), nullable=False, server_default=''),
        sa.Column('shelf', sa.String(length=50), nullable=False, server_default=''),
        sa.Column('is_hazardous', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('hazard_info', sa.Text(), nullable=False, server_default=''),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.Column('updated_by', sa.Uuid(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('qty_on_hand >= 0', name='ck_inventory_items_qty_on_hand_non_negative'),
        sa.CheckConstraint('qty_reserved >= 0', name='ck_inventory_items_qty_reserved_non_negative'),
        sa.CheckConstraint('qty_reserved <= qty_on_hand', name='ck_inventory_items_qty_reserved_within_on_hand'),
        sa.ForeignKeyConstraint(
            ['category_id'], ['categories.id'],
            name='fk_inventory_items_category_id_categories', ondelete='RESTRICT'
        ),
        sa.ForeignKeyConstraint(
            ['supplier_id'], ['suppliers.id'],
            name='fk_inventory_items_supplier_id_suppliers', ondelete='SET NULL'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_inventory_items'),
        sa.UniqueConstraint('sku', name='uq_inventory_items_sku')
    )
    op.create_index('ix_inventory_items_category_id', 'inventory_items', ['category_id'])
    op.create_index('ix_inventory_items_supplier_id', 'inventory_items', ['supplier_id'])
    op.create_index('ix_inventory_items_is_active', 'inventory_items', ['is_active'])
    op.create_index('idx_inventory_items_name', 'inventory_items', ['name'])
    op.create_index('idx_inventory_items_type', 'inventory_items', ['item_type'])
    op.create_index('idx_inventory_items_qty_on_hand', 'inventory_items', ['qty_on_hand'])

    # Create inventory_transactions table (no FK to items: the ledger outlives them)
    op.create_table(
        'inventory_transactions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('transaction_id', sa.String(length=32), nullable=False),
        sa.Column('item_id', sa.Uuid(), nullable=False),
        sa.Column('item_sku', sa.String(length=100), nullable=False),
        sa.Column('supplier_id', sa.Uuid(), nullable=True),
        sa.Column('customer_id', sa.Uuid(), nullable=True),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('sub_type', sa.String(length=50), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_cost', sa.DECIMAL(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('total_value', sa.DECIMAL(precision=14, scale=2), nullable=False, server_default='0'),
        sa.Column('balance_after', sa.Integer(), nullable=False),
        sa.Column('available_after', sa.Integer(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('reference', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('batch_number', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('created_by', sa.Uuid(), nullable=False),
        sa.Column('approved_by', sa.Uuid(), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='COMPLETED'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_inventory_transactions'),
        sa.UniqueConstraint('transaction_id', name='uq_inventory_transactions_transaction_id')
    )
    op.create_index('ix_inventory_transactions_item_id', 'inventory_transactions', ['item_id'])
    op.create_index('ix_inventory_transactions_created_by', 'inventory_transactions', ['created_by'])
    op.create_index('idx_inventory_transactions_type', 'inventory_transactions', ['type'])
    op.create_index('idx_inventory_transactions_created_at', 'inventory_transactions', ['created_at'])
    op.create_index('idx_inventory_transactions_reference', 'inventory_transactions', ['reference'])

    # Create alerts table (no FK to items: alerts outlive them)
    op.create_table(
        'alerts',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('item_id', sa.Uuid(), nullable=False),
        sa.Column('alert_type', sa.String(length=50), nullable=False),
        sa.Column('priority', sa.String(length=20), nullable=False, server_default='medium'),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('qty_at_trigger', sa.Integer(), nullable=False),
        sa.Column('threshold', sa.Integer(), nullable=False),
        sa.Column('is_resolved', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('resolved_by', sa.Uuid(), nullable=True),
        sa.Column('resolution_notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('action_taken', sa.String(length=50), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_alerts')
    )
    op.create_index('ix_alerts_item_id', 'alerts', ['item_id'])
    op.create_index('idx_alerts_priority', 'alerts', ['priority'])
    op.create_index('idx_alerts_resolved', 'alerts', ['is_resolved'])
    op.create_index('idx_alerts_created_at', 'alerts', ['created_at'])
    # At most one open alert per (item, kind)
    op.create_index(
        'uq_alerts_open_item_type', 'alerts', ['item_id', 'alert_type'],
        unique=True,
        postgresql_where=sa.text('NOT is_resolved'),
        sqlite_where=sa.text('NOT is_resolved')
    )


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_table('alerts')
    op.drop_table('inventory_transactions')
    op.drop_table('inventory_items')
    op.drop_table('suppliers')
    op.drop_table('categories')
    op.drop_table('users')
