"""create_order_tables

Revision ID: 3c1f9a2b7d10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c1f9a2b7d10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.String(length=100), nullable=False, comment='Business order id'),
        sa.Column('table_number', sa.String(length=50), nullable=False, comment='Table number'),
        sa.Column('member_id', sa.String(length=100), nullable=False, comment='Member id'),
        sa.Column('lines', sa.JSON(), nullable=False, comment='Order lines snapshot'),
        sa.Column('is_closed', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('is_updated', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('final_price', sa.Numeric(precision=15, scale=2), nullable=True, comment='Set only when closed'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id'),
    )
    op.create_index('ix_orders_created_at', 'orders', ['created_at'], unique=False)
    op.create_index('ix_orders_member_id', 'orders', ['member_id'], unique=False)

    # one row per closed order; the unique order_id rejects a second close
    op.create_table(
        'order_histories',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.String(length=100), nullable=False, comment='Business order id'),
        sa.Column('table_number', sa.String(length=50), nullable=False),
        sa.Column('member_id', sa.String(length=100), nullable=False),
        sa.Column('lines', sa.JSON(), nullable=False, comment='Order lines at close time'),
        sa.Column('final_price', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='Order creation time'),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id'),
    )
    op.create_index('ix_order_histories_closed_at', 'order_histories', ['closed_at'], unique=False)
    op.create_index('ix_order_histories_member_id', 'order_histories', ['member_id'], unique=False)

    op.create_table(
        'payment_records',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.String(length=100), nullable=False, comment='Business order id'),
        sa.Column('member_id', sa.String(length=100), nullable=False, comment='Member id'),
        sa.Column('final_price', sa.Numeric(precision=15, scale=2), nullable=False, comment='Copied from order history'),
        sa.Column('payment_method', sa.String(length=20), nullable=False, comment='cash/online/credit'),
        sa.Column('payment_time', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payment_records_order_id', 'payment_records', ['order_id'], unique=False)
    op.create_index('ix_payment_records_order_time', 'payment_records', ['order_id', 'payment_time'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_payment_records_order_time', table_name='payment_records')
    op.drop_index('ix_payment_records_order_id', table_name='payment_records')
    op.drop_table('payment_records')

    op.drop_index('ix_order_histories_member_id', table_name='order_histories')
    op.drop_index('ix_order_histories_closed_at', table_name='order_histories')
    op.drop_table('order_histories')

    op.drop_index('ix_orders_member_id', table_name='orders')
    op.drop_index('ix_orders_created_at', table_name='orders')
    op.drop_table('orders')
