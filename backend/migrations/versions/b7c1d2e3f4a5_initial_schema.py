"""initial schema

Revision ID: b7c1d2e3f4a5
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the point-of-sale schema:
- products: catalog with total stock and optional location breakdown
- sales: committed sales with inline line-item snapshots
- daily_closings: opening float and counted cash per calendar day
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b7c1d2e3f4a5'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # products: catalog
    # ============================================================================
    # stock_store/stock_warehouse/stock_display are all null or all set;
    # when set, stock equals their sum.
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('stock_store', sa.Integer(), nullable=True),
        sa.Column('stock_warehouse', sa.Integer(), nullable=True),
        sa.Column('stock_display', sa.Integer(), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sku', name='uq_products_sku'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_name', 'products', ['name'])

    # ============================================================================
    # sales: immutable once written
    # ============================================================================
    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('payment_method', sa.String(length=16), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sales_date', 'sales', ['date'])
    op.create_index('ix_sales_payment_date', 'sales', ['payment_method', 'date'])

    # ============================================================================
    # daily_closings: keyed by 'YYYY-MM-DD'
    # ============================================================================
    op.create_table(
        'daily_closings',
        sa.Column('date', sa.String(length=10), nullable=False),
        sa.Column('initial_cash_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('final_cash_actual_cents', sa.Integer(), nullable=True),
        sa.Column('is_closed', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('closed_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('date')
    )


def downgrade():
    op.drop_table('daily_closings')
    op.drop_index('ix_sales_payment_date', table_name='sales')
    op.drop_index('ix_sales_date', table_name='sales')
    op.drop_table('sales')
    op.drop_index('ix_products_name', table_name='products')
    op.drop_table('products')
