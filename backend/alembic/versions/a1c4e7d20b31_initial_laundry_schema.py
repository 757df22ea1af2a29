"""initial laundry schema

Revision ID: a1c4e7d20b31
Revises:
Create Date: 2026-10-18 09:12:44.503118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'a1c4e7d20b31'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(length=100), nullable=True),
        sa.Column('updated_by', sa.String(length=100), nullable=True),
    ]


def _soft_delete_columns():
    return [
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_by', sa.String(length=100), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'audit',
        sa.Column('audit_id', sa.Integer(), nullable=False),
        sa.Column('emp_id', sa.String(length=100), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('table_name', sa.String(length=64), nullable=True),
        sa.Column('record_id', sa.String(length=64), nullable=True),
        sa.Column('action_type', sa.String(length=16), nullable=True),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('session_id', sa.String(length=128), nullable=True),
        sa.PrimaryKeyConstraint('audit_id'),
    )
    op.create_index('ix_audit_audit_id', 'audit', ['audit_id'])
    op.create_index('ix_audit_emp_id', 'audit', ['emp_id'])
    op.create_index('ix_audit_date', 'audit', ['date'])
    op.create_index('ix_audit_table_record', 'audit', ['table_name', 'record_id'])

    op.create_table(
        'user_accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('fname', sa.String(length=100), nullable=True),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('position', sa.Enum('admin', 'manager', 'staff', name='userposition'), nullable=False),
        sa.Column('image', sa.String(length=500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_audit_columns(),
        *_soft_delete_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_accounts_id', 'user_accounts', ['id'])
    op.create_index('ix_user_accounts_username', 'user_accounts', ['username'], unique=True)

    op.create_table(
        'customers',
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('customer_name', sa.String(length=150), nullable=False),
        sa.Column('phone_number', sa.String(length=32), nullable=False),
        sa.Column('active_phone_number', sa.String(length=32), nullable=True),
        sa.Column('email', sa.String(length=150), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum('active', 'inactive', name='customerstatus'), nullable=False),
        *_audit_columns(),
        *_soft_delete_columns(),
        sa.PrimaryKeyConstraint('customer_id'),
        sa.UniqueConstraint('active_phone_number', name='uq_customers_active_phone'),
    )
    op.create_index('ix_customers_customer_id', 'customers', ['customer_id'])
    op.create_index('ix_customers_phone_number', 'customers', ['phone_number'])

    op.create_table(
        'orders',
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('order_seq', sa.Integer(), nullable=False),
        sa.Column('order_number', sa.String(length=32), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('order_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('delivery_date', sa.Date(), nullable=True),
        sa.Column('status', sa.Enum('pending', 'received', 'washing', 'drying', 'ready', 'delivered', 'cancelled', name='orderstatus'), nullable=False),
        sa.Column('payment_status', sa.Enum('unpaid', 'partial', 'paid', name='paymentstatus'), nullable=False),
        sa.Column('payment_method', sa.String(length=32), nullable=True),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('paid_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('discount', sa.Numeric(12, 2), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_audit_columns(),
        *_soft_delete_columns(),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.customer_id']),
        sa.PrimaryKeyConstraint('order_id'),
        sa.UniqueConstraint('order_seq', name='uq_orders_order_seq'),
        sa.UniqueConstraint('order_number', name='uq_orders_order_number'),
    )
    op.create_index('ix_orders_order_id', 'orders', ['order_id'])
    op.create_index('ix_orders_order_number', 'orders', ['order_number'])
    op.create_index('ix_orders_customer_id', 'orders', ['customer_id'])

    op.create_table(
        'order_items',
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('item_name', sa.String(length=150), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('color', sa.String(length=50), nullable=True),
        sa.Column('size', sa.String(length=50), nullable=True),
        sa.Column('special_instructions', sa.Text(), nullable=True),
        *_audit_columns(),
        *_soft_delete_columns(),
        sa.ForeignKeyConstraint(['order_id'], ['orders.order_id']),
        sa.PrimaryKeyConstraint('item_id'),
    )
    op.create_index('ix_order_items_item_id', 'order_items', ['item_id'])
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    op.create_table(
        'payments',
        sa.Column('payment_id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('payment_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('payment_method', sa.Enum('cash', 'card', 'mobile', 'bank_transfer', name='paymentmethod'), nullable=False),
        sa.Column('reference_number', sa.String(length=100), nullable=True),
        sa.Column('transaction_id', sa.String(length=64), nullable=False),
        sa.Column('status', sa.Enum('pending', 'completed', 'failed', 'cancelled', 'refunded', name='paymentrecordstatus'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('processed_by', sa.String(length=100), nullable=True),
        sa.Column('receipt_number', sa.String(length=64), nullable=True),
        sa.Column('refund_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('refund_reason', sa.Text(), nullable=True),
        *_audit_columns(),
        *_soft_delete_columns(),
        sa.ForeignKeyConstraint(['order_id'], ['orders.order_id']),
        sa.PrimaryKeyConstraint('payment_id'),
        sa.UniqueConstraint('transaction_id'),
    )
    op.create_index('ix_payments_payment_id', 'payments', ['payment_id'])
    op.create_index('ix_payments_order_id', 'payments', ['order_id'])
    op.create_index('ix_payments_payment_date', 'payments', ['payment_date'])

    op.create_table(
        'register',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('customer_name', sa.String(length=150), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=False),
        sa.Column('active_phone', sa.String(length=32), nullable=True),
        sa.Column('email', sa.String(length=150), nullable=True),
        sa.Column('laundry_items', sa.JSON(), nullable=True),
        sa.Column('drop_off_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('pickup_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('delivery_status', sa.Enum('pending', 'ready', 'delivered', 'cancelled', name='deliverystatus'), nullable=False),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('paid_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('payment_status', sa.String(length=20), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('receipt_number', sa.String(length=64), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        *_audit_columns(),
        *_soft_delete_columns(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('active_phone', name='uq_register_active_phone'),
        sa.UniqueConstraint('receipt_number'),
    )
    op.create_index('ix_register_id', 'register', ['id'])
    op.create_index('ix_register_phone', 'register', ['phone'])

    # Column names follow the imported paper-ledger sheet
    op.create_table(
        'register_legacy',
        sa.Column('itemNum', sa.Integer(), nullable=False),
        sa.Column('NAME', sa.String(length=150), nullable=False),
        sa.Column('descr', sa.Text(), nullable=False),
        sa.Column('quan', sa.Integer(), nullable=True),
        sa.Column('unitprice', sa.Numeric(12, 2), nullable=True),
        sa.Column('amntword', sa.String(length=255), nullable=True),
        sa.Column('duedate', sa.Date(), nullable=True),
        sa.Column('deliverdate', sa.Date(), nullable=True),
        sa.Column('totalAmount', sa.Numeric(12, 2), nullable=False),
        sa.Column('mobnum', sa.BigInteger(), nullable=False),
        sa.Column('payCheck', sa.String(length=10), nullable=False),
        sa.Column('col', sa.String(length=50), nullable=True),
        sa.Column('siz', sa.String(length=50), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('itemNum'),
    )
    op.create_index('ix_register_legacy_itemNum', 'register_legacy', ['itemNum'])
    op.create_index('ix_register_legacy_mobnum', 'register_legacy', ['mobnum'])

    op.create_table(
        'daily_cash_close',
        sa.Column('close_id', sa.Integer(), nullable=False),
        sa.Column('close_date', sa.Date(), nullable=False),
        sa.Column('cash_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('card_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('mobile_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('bank_transfer_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('expenses_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_audit_columns(),
        *_soft_delete_columns(),
        sa.PrimaryKeyConstraint('close_id'),
        sa.UniqueConstraint('close_date', name='uq_daily_cash_close_date'),
    )
    op.create_index('ix_daily_cash_close_close_id', 'daily_cash_close', ['close_id'])
    op.create_index('ix_daily_cash_close_close_date', 'daily_cash_close', ['close_date'])


def downgrade() -> None:
    for table in (
        'daily_cash_close',
        'register_legacy',
        'register',
        'payments',
        'order_items',
        'orders',
        'customers',
        'user_accounts',
        'audit',
    ):
        op.drop_table(table)
