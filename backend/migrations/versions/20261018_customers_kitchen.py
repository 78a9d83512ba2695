"""customers, allergens and kitchen orders

Revision ID: 20261018_customers_kitchen
Revises: 20261018_initial
Create Date: 2026-10-18 12:00:00.000000

- customers (loyalty records with visit counters) and the
  orders.customer_id foreign key
- allergens
- kitchen_orders and kitchen_order_items (tickets per order)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261018_customers_kitchen'
down_revision = '20261018_initial'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('customer_name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=120), nullable=True),
        sa.Column('province', sa.String(length=120), nullable=True),
        sa.Column('postal_code', sa.String(length=32), nullable=True),
        sa.Column('country', sa.String(length=120), nullable=True),
        sa.Column('customer_code', sa.String(length=64), nullable=True),
        sa.Column('points_balance', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('first_visit', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_visit', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('total_visits', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_spent', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('customer_code', name='uq_customers_customer_code'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_customers_name', 'customers', ['customer_name'])

    with op.batch_alter_table('orders') as batch_op:
        batch_op.create_foreign_key('fk_orders_customer', 'customers', ['customer_id'], ['id'])

    op.create_table(
        'allergens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('severity', sa.String(length=16), nullable=False, server_default='moderate'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_allergens_name'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'kitchen_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_kitchen_orders_status', 'kitchen_orders', ['status'])

    op.create_table(
        'kitchen_order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('kitchen_order_id', sa.Integer(), nullable=False),
        sa.Column('order_item_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('preparation_time', sa.Integer(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['kitchen_order_id'], ['kitchen_orders.id']),
        sa.ForeignKeyConstraint(['order_item_id'], ['order_items.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_kitchen_order_items_ticket', 'kitchen_order_items', ['kitchen_order_id'])


def downgrade():
    op.drop_index('ix_kitchen_order_items_ticket', table_name='kitchen_order_items')
    op.drop_table('kitchen_order_items')
    op.drop_index('ix_kitchen_orders_status', table_name='kitchen_orders')
    op.drop_table('kitchen_orders')
    op.drop_table('allergens')

    with op.batch_alter_table('orders') as batch_op:
        batch_op.drop_constraint('fk_orders_customer', type_='foreignkey')

    op.drop_index('ix_customers_name', table_name='customers')
    op.drop_table('customers')
