"""
Initial storefront schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-11-01

This migration:
1. Creates users and shops (one shop per user)
2. Creates categories and products (non-negative stock check)
3. Creates cart_items, unique per (user, product)
4. Creates orders and order_items
5. Creates reviews, unique per (user, product)
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade():
    # =========================================================================
    # 1. Identity
    # =========================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('is_seller', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_table(
        'shops',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False, unique=True),
        sa.Column('address', sa.Text()),
        sa.Column('logo', sa.String(512)),
        *_timestamps(),
    )

    # =========================================================================
    # 2. Catalog
    # =========================================================================
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False, unique=True),
        *_timestamps(),
    )
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('shop_id', sa.Integer(), sa.ForeignKey('shops.id', ondelete='CASCADE'), nullable=False),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('categories.id', ondelete='SET NULL')),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('images', sa.JSON()),
        *_timestamps(),
        sa.CheckConstraint('stock >= 0', name='ck_product_stock_non_negative'),
    )
    op.create_index('idx_product_shop', 'products', ['shop_id'])
    op.create_index('idx_product_category', 'products', ['category_id'])

    # =========================================================================
    # 3. Cart
    # =========================================================================
    op.create_table(
        'cart_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'product_id', name='uq_cart_user_product'),
    )

    # =========================================================================
    # 4. Orders
    # =========================================================================
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('total', sa.Integer(), nullable=False),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('shipping', sa.String(20), nullable=False),
        sa.Column('payment', sa.String(20), nullable=False),
        *_timestamps(),
    )
    op.create_index('idx_order_user_created', 'orders', ['user_id', 'created_at'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        *_timestamps(),
    )
    op.create_index('idx_orderitem_order', 'order_items', ['order_id'])
    op.create_index('idx_orderitem_product', 'order_items', ['product_id'])

    # =========================================================================
    # 5. Reviews
    # =========================================================================
    op.create_table(
        'reviews',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text()),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'product_id', name='uq_review_user_product'),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='ck_review_rating_range'),
    )


def downgrade():
    op.drop_table('reviews')
    op.drop_index('idx_orderitem_product', table_name='order_items')
    op.drop_index('idx_orderitem_order', table_name='order_items')
    op.drop_table('order_items')
    op.drop_index('idx_order_user_created', table_name='orders')
    op.drop_table('orders')
    op.drop_table('cart_items')
    op.drop_index('idx_product_category', table_name='products')
    op.drop_index('idx_product_shop', table_name='products')
    op.drop_table('products')
    op.drop_table('categories')
    op.drop_table('shops')
    op.drop_table('users')
