"""initial schema

Revision ID: 001_initial_schema
Revises: 
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PROVIDER_ID = 'Wata'
PROVIDER_CLASS = 'wata_callback.psp.wata_adapter:WataProvider'


def upgrade() -> None:
    """Upgrade schema - create all tables and register the provider."""
    providers = op.create_table('payment_providers',
        sa.Column('provider_id', sa.String(length=25), nullable=False),
        sa.Column('provider_class', sa.String(length=100), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=True),
        sa.PrimaryKeyConstraint('provider_id')
    )

    op.create_table('payment_profiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('provider_id', sa.String(length=25), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('options', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['provider_id'], ['payment_providers.provider_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_payment_profiles_provider_id'), 'payment_profiles', ['provider_id'], unique=False)

    op.create_table('purchase_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('request_key', sa.String(length=32), nullable=False),
        sa.Column('payment_profile_id', sa.Integer(), nullable=True),
        sa.Column('cost_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('cost_currency', sa.String(length=3), nullable=False),
        sa.Column('provider_metadata', sa.String(length=255), nullable=True),
        sa.Column('payment_state', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['payment_profile_id'], ['payment_profiles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_purchase_requests_request_key'), 'purchase_requests', ['request_key'], unique=True)
    op.create_index(op.f('ix_purchase_requests_payment_profile_id'), 'purchase_requests', ['payment_profile_id'], unique=False)

    op.create_table('payment_provider_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('provider_id', sa.String(length=25), nullable=False),
        sa.Column('transaction_id', sa.String(length=100), nullable=True),
        sa.Column('request_key', sa.String(length=32), nullable=True),
        sa.Column('log_type', sa.String(length=16), nullable=False),
        sa.Column('log_message', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('log_details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_payment_provider_logs_id'), 'payment_provider_logs', ['id'], unique=False)
    op.create_index(op.f('ix_payment_provider_logs_provider_id'), 'payment_provider_logs', ['provider_id'], unique=False)
    op.create_index(op.f('ix_payment_provider_logs_transaction_id'), 'payment_provider_logs', ['transaction_id'], unique=False)
    op.create_index(op.f('ix_payment_provider_logs_request_key'), 'payment_provider_logs', ['request_key'], unique=False)
    op.create_index(op.f('ix_payment_provider_logs_log_type'), 'payment_provider_logs', ['log_type'], unique=False)

    op.create_table('processed_callbacks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('event_key', sa.String(length=160), nullable=False),
        sa.Column('provider_id', sa.String(length=25), nullable=False),
        sa.Column('transaction_id', sa.String(length=100), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_processed_callbacks_event_key'), 'processed_callbacks', ['event_key'], unique=True)

    op.bulk_insert(providers, [
        {'provider_id': PROVIDER_ID, 'provider_class': PROVIDER_CLASS, 'title': 'Wata.pro'},
    ])


def downgrade() -> None:
    """Downgrade schema - drop provider data and all tables."""
    op.execute(sa.text("DELETE FROM payment_profiles WHERE provider_id = :pid").bindparams(pid=PROVIDER_ID))
    op.execute(sa.text("DELETE FROM payment_providers WHERE provider_id = :pid").bindparams(pid=PROVIDER_ID))

    op.drop_index(op.f('ix_processed_callbacks_event_key'), table_name='processed_callbacks')
    op.drop_table('processed_callbacks')
    op.drop_index(op.f('ix_payment_provider_logs_log_type'), table_name='payment_provider_logs')
    op.drop_index(op.f('ix_payment_provider_logs_request_key'), table_name='payment_provider_logs')
    op.drop_index(op.f('ix_payment_provider_logs_transaction_id'), table_name='payment_provider_logs')
    op.drop_index(op.f('ix_payment_provider_logs_provider_id'), table_name='payment_provider_logs')
    op.drop_index(op.f('ix_payment_provider_logs_id'), table_name='payment_provider_logs')
    op.drop_table('payment_provider_logs')
    op.drop_index(op.f('ix_purchase_requests_payment_profile_id'), table_name='purchase_requests')
    op.drop_index(op.f('ix_purchase_requests_request_key'), table_name='purchase_requests')
    op.drop_table('purchase_requests')
    op.drop_index(op.f('ix_payment_profiles_provider_id'), table_name='payment_profiles')
    op.drop_table('payment_profiles')
    op.drop_table('payment_providers')
