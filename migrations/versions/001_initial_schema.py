"""Initial schema: farmers, harvests, supplies, invoices, outbox_messages

Every service runs this revision against its own database and creates only
the tables it owns, selected by SERVICE_NAME.

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-19 10:00:00

"""
import os
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


def _service_name():
    return os.environ.get('SERVICE_NAME', 'harvest-service')


def _create_outbox_messages():
    op.create_table(
        'outbox_messages',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('channel', sa.String(length=50), nullable=False),
        sa.Column('topic', sa.String(length=100), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('dedupe_key', sa.String(length=255), nullable=True),
        sa.Column('status', sa.Enum('DEAD_LETTERED', 'REPLAYED', name='outboxstatus'), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_outbox_messages_channel', 'outbox_messages', ['channel'])
    op.create_index('ix_outbox_messages_topic', 'outbox_messages', ['topic'])
    op.create_index('ix_outbox_messages_dedupe_key', 'outbox_messages', ['dedupe_key'])
    op.create_index('ix_outbox_messages_status', 'outbox_messages', ['status'])


def _create_harvest_tables():
    op.create_table(
        'farmers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'harvests',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('farmer_id', sa.Integer(), nullable=False),
        sa.Column('product', sa.String(length=200), nullable=False),
        sa.Column('tonnes', sa.Float(), nullable=False),
        sa.Column('status', sa.Enum('REGISTERED', 'INVOICED', name='harveststatus'), nullable=False),
        sa.Column('invoice_id', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['farmer_id'], ['farmers.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_harvests_farmer_id', 'harvests', ['farmer_id'])
    op.create_index('ix_harvests_status', 'harvests', ['status'])


def _create_supply_tables():
    op.create_table(
        'supplies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_name', sa.String(length=200), nullable=False),
        sa.Column('name_key', sa.String(length=200), nullable=False),
        sa.Column('stock', sa.Float(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_supplies_name_key', 'supplies', ['name_key'], unique=True)


def _create_billing_tables():
    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('harvest_id', sa.String(length=36), nullable=False),
        sa.Column('product', sa.String(length=200), nullable=False),
        sa.Column('tonnes', sa.Float(), nullable=False),
        sa.Column('unit_price', sa.DECIMAL(precision=12, scale=2), nullable=False),
        sa.Column('amount', sa.DECIMAL(precision=14, scale=2), nullable=False),
        sa.Column('paid', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )
    # One invoice per harvest
    op.create_index('ix_invoices_harvest_id', 'invoices', ['harvest_id'], unique=True)


def upgrade():
    service_name = _service_name()
    if service_name == 'harvest-service':
        _create_harvest_tables()
    elif service_name == 'supply-service':
        _create_supply_tables()
    elif service_name == 'billing-service':
        _create_billing_tables()
    else:
        raise ValueError(f"Unknown SERVICE_NAME: {service_name}")

    _create_outbox_messages()


def downgrade():
    op.drop_index('ix_outbox_messages_status', table_name='outbox_messages')
    op.drop_index('ix_outbox_messages_dedupe_key', table_name='outbox_messages')
    op.drop_index('ix_outbox_messages_topic', table_name='outbox_messages')
    op.drop_index('ix_outbox_messages_channel', table_name='outbox_messages')
    op.drop_table('outbox_messages')

    service_name = _service_name()
    if service_name == 'harvest-service':
        op.drop_index('ix_harvests_status', table_name='harvests')
        op.drop_index('ix_harvests_farmer_id', table_name='harvests')
        op.drop_table('harvests')
        op.drop_table('farmers')
        sa.Enum(name='harveststatus').drop(op.get_bind(), checkfirst=True)
    elif service_name == 'supply-service':
        op.drop_index('ix_supplies_name_key', table_name='supplies')
        op.drop_table('supplies')
    elif service_name == 'billing-service':
        op.drop_index('ix_invoices_harvest_id', table_name='invoices')
        op.drop_table('invoices')

    sa.Enum(name='outboxstatus').drop(op.get_bind(), checkfirst=True)
