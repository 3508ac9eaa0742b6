"""create analytics tables

Revision ID: 001_create_analytics_tables
Revises:
Create Date: 2026-10-18
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = '001_create_analytics_tables'
down_revision: Union[str, Sequence[str], None] = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- Organizations ---
    op.create_table(
        'organizations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )

    # --- Farms ---
    op.create_table(
        'farms',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('organization_id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('total_area', sa.Float(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'])
    )
    op.create_index('ix_farms_organization_id', 'farms', ['organization_id'])

    # --- Transactions ---
    op.create_table(
        'transactions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('organization_id', sa.String(36), nullable=False),
        sa.Column('farm_id', sa.String(36), nullable=True),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.ForeignKeyConstraint(['farm_id'], ['farms.id'])
    )
    op.create_index('ix_transactions_org_created', 'transactions', ['organization_id', 'created_at'])
    op.create_index('ix_transactions_farm_created', 'transactions', ['farm_id', 'created_at'])

    # --- Orders ---
    op.create_table(
        'orders',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('order_number', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('commodity_id', sa.String(36), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('price_per_unit', sa.Float(), nullable=False),
        sa.Column('total_price', sa.Float(), nullable=False),
        sa.Column('buyer_org_id', sa.String(36), nullable=False),
        sa.Column('supplier_org_id', sa.String(36), nullable=True),
        sa.Column('farm_id', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['supplier_org_id'], ['organizations.id']),
        sa.ForeignKeyConstraint(['farm_id'], ['farms.id'])
    )
    op.create_index('ix_orders_buyer_org_id', 'orders', ['buyer_org_id'])
    op.create_index('ix_orders_supplier_created', 'orders', ['supplier_org_id', 'created_at'])

    # --- Farm activities ---
    op.create_table(
        'farm_activities',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('farm_id', sa.String(36), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('cost', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['farm_id'], ['farms.id'])
    )
    op.create_index('ix_farm_activities_farm_created', 'farm_activities', ['farm_id', 'created_at'])

    # --- Crop cycles ---
    op.create_table(
        'crop_cycles',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('farm_id', sa.String(36), nullable=False),
        sa.Column('commodity_id', sa.String(36), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('planted_area', sa.Float(), nullable=False),
        sa.Column('expected_yield', sa.Float(), nullable=True),
        sa.Column('actual_yield', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['farm_id'], ['farms.id'])
    )
    op.create_index('ix_crop_cycles_farm_created', 'crop_cycles', ['farm_id', 'created_at'])

    # --- Harvests ---
    op.create_table(
        'harvests',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('crop_cycle_id', sa.String(36), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('harvest_date', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['crop_cycle_id'], ['crop_cycles.id'])
    )
    op.create_index('ix_harvests_crop_cycle_id', 'harvests', ['crop_cycle_id'])


def downgrade() -> None:
    op.drop_index('ix_harvests_crop_cycle_id', table_name='harvests')
    op.drop_table('harvests')
    op.drop_index('ix_crop_cycles_farm_created', table_name='crop_cycles')
    op.drop_table('crop_cycles')
    op.drop_index('ix_farm_activities_farm_created', table_name='farm_activities')
    op.drop_table('farm_activities')
    op.drop_index('ix_orders_supplier_created', table_name='orders')
    op.drop_index('ix_orders_buyer_org_id', table_name='orders')
    op.drop_table('orders')
    op.drop_index('ix_transactions_farm_created', table_name='transactions')
    op.drop_index('ix_transactions_org_created', table_name='transactions')
    op.drop_table('transactions')
    op.drop_index('ix_farms_organization_id', table_name='farms')
    op.drop_table('farms')
    op.drop_table('organizations')
