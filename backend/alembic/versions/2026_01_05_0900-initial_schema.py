"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-01-05 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


ENUMS = {
    'user_status': ('ACTIVE', 'SUSPENDED'),
    'user_role': ('USER', 'ADMIN'),
    'actor_role': ('USER', 'ADMIN'),
    'kyc_status': ('NOT_SUBMITTED', 'PENDING', 'APPROVED', 'REJECTED'),
    'wallet_transaction_type': ('DEPOSIT', 'WITHDRAWAL', 'PAYOUT', 'INVESTMENT', 'RETURN', 'PURCHASE', 'COMMISSION'),
    'wallet_transaction_status': ('PENDING', 'COMPLETED', 'FAILED'),
    'crypto_type': ('BTC', 'USDT'),
    'notification_type': (
        'WALLET_UPDATED', 'INVESTMENT_CREATED', 'INVESTMENT_MATURED', 'INVESTMENT_CANCELLED',
        'ORDER_UPDATED', 'PROPERTY_PURCHASED', 'COMMISSION_EARNED', 'COMMISSION_PAID',
        'COMMISSION_REJECTED', 'KYC_UPDATED', 'SYSTEM_UPDATE',
    ),
    'investment_status': ('ACTIVE', 'MATURED', 'CANCELLED'),
    'property_status': ('AVAILABLE', 'PENDING', 'SOLD'),
    'property_payment_type': ('FULL', 'INSTALLMENT'),
    'property_transaction_status': ('PENDING', 'COMPLETED', 'CANCELLED', 'FAILED'),
    'real_estate_plan_type': ('SEMI_ANNUAL', 'ANNUAL'),
    'equipment_status': ('AVAILABLE', 'SOLD', 'DISCONTINUED'),
    'equipment_order_status': ('PENDING', 'ACCEPTED', 'PROCESSING', 'OUT_FOR_DELIVERY', 'COMPLETED', 'CANCELLED'),
    'referral_status': ('PENDING', 'COMPLETED'),
    'commission_status': ('PENDING', 'PAID', 'REJECTED'),
    'commission_transaction_type': (
        'REAL_ESTATE_INVESTMENT', 'PROPERTY_PURCHASE', 'EQUIPMENT_PURCHASE',
        'MARKET_INVESTMENT', 'GREEN_ENERGY_INVESTMENT',
    ),
}


def enum(name):
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def base_columns():
    return [
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def money(name, nullable=False, **kwargs):
    return sa.Column(name, sa.Numeric(precision=20, scale=2), nullable=nullable, **kwargs)


def create_plan_table(table):
    op.create_table(table,
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('type', sa.String(length=50), nullable=False),
    money('min_amount'),
    money('max_amount'),
    sa.Column('return_rate', sa.Numeric(precision=5, scale=2), nullable=False),
    sa.Column('duration_months', sa.Integer(), nullable=False),
    sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    *base_columns(),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f(f'ix_{table}_id'), table, ['id'], unique=False)


def create_investment_table(table, *extra):
    op.create_table(table,
    sa.Column('user_id', sa.UUID(), nullable=False),
    sa.Column('status', enum('investment_status'), nullable=False),
    sa.Column('reinvested_from_id', sa.UUID(), nullable=True),
    money('amount'),
    money('expected_return'),
    money('actual_return', nullable=True),
    sa.Column('return_rate', sa.Numeric(precision=5, scale=2), nullable=False),
    sa.Column('duration_months', sa.Integer(), nullable=False),
    sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
    sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
    sa.Column('matured_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('reinvest', sa.Boolean(), nullable=False, server_default=sa.false()),
    *extra,
    *base_columns(),
    sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=f'fk_{table}_user_id'),
    sa.ForeignKeyConstraint(['reinvested_from_id'], [f'{table}.id'], name=f'fk_{table}_reinvested_from_id'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f(f'ix_{table}_id'), table, ['id'], unique=False)
    op.create_index(op.f(f'ix_{table}_user_id'), table, ['user_id'], unique=False)
    op.create_index(op.f(f'ix_{table}_status'), table, ['status'], unique=False)


def upgrade() -> None:
    bind = op.get_bind()
    for name in ENUMS:
        postgresql.ENUM(*ENUMS[name], name=name).create(bind, checkfirst=True)

    op.create_table('users',
    sa.Column('email', sa.String(length=255), nullable=False),
    sa.Column('password_hash', sa.String(length=255), nullable=True),
    sa.Column('status', enum('user_status'), nullable=False),
    sa.Column('role', enum('user_role'), nullable=False),
    sa.Column('kyc_status', enum('kyc_status'), nullable=False),
    sa.Column('referral_code', sa.String(length=16), nullable=False),
    sa.Column('first_name', sa.String(length=255), nullable=True),
    sa.Column('last_name', sa.String(length=255), nullable=True),
    sa.Column('phone', sa.String(length=50), nullable=True),
    *base_columns(),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_referral_code'), 'users', ['referral_code'], unique=True)
    op.create_index(op.f('ix_users_kyc_status'), 'users', ['kyc_status'], unique=False)

    op.create_table('audit_logs',
    sa.Column('actor_user_id', sa.UUID(), nullable=True),
    sa.Column('actor_role', enum('actor_role'), nullable=False),
    sa.Column('action', sa.String(length=100), nullable=False),
    sa.Column('entity_type', sa.String(length=50), nullable=False),
    sa.Column('entity_id', sa.UUID(), nullable=True),
    sa.Column('before', sa.JSON(), nullable=True),
    sa.Column('after', sa.JSON(), nullable=True),
    sa.Column('reason', sa.Text(), nullable=True),
    *base_columns(),
    sa.ForeignKeyConstraint(['actor_user_id'], ['users.id'], name='fk_audit_logs_actor_user_id'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_audit_logs_id'), 'audit_logs', ['id'], unique=False)
    op.create_index(op.f('ix_audit_logs_actor_user_id'), 'audit_logs', ['actor_user_id'], unique=False)
    op.create_index(op.f('ix_audit_logs_action'), 'audit_logs', ['action'], unique=False)
    op.create_index('ix_audit_logs_entity', 'audit_logs', ['entity_type', 'entity_id'], unique=False)

    op.create_table('wallets',
    sa.Column('user_id', sa.UUID(), nullable=False),
    money('balance', server_default='0'),
    sa.Column('currency', sa.String(length=10), nullable=False),
    sa.Column('btc_address', sa.String(length=128), nullable=True),
    sa.Column('usdt_address', sa.String(length=128), nullable=True),
    sa.Column('version', sa.Integer(), nullable=False, server_default='0'),
    *base_columns(),
    sa.CheckConstraint('balance >= 0', name='check_wallets_balance_non_negative'),
    sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_wallets_user_id'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_wallets_id'), 'wallets', ['id'], unique=False)
    op.create_index(op.f('ix_wallets_user_id'), 'wallets', ['user_id'], unique=True)

    op.create_table('wallet_transactions',
    sa.Column('wallet_id', sa.UUID(), nullable=False),
    sa.Column('user_id', sa.UUID(), nullable=False),
    sa.Column('type', enum('wallet_transaction_type'), nullable=False),
    sa.Column('status', enum('wallet_transaction_status'), nullable=False),
    money('amount'),
    money('balance_after', nullable=True),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('crypto_type', enum('crypto_type'), nullable=True),
    sa.Column('tx_hash', sa.String(length=255), nullable=True),
    sa.Column('reference_type', sa.String(length=50), nullable=True),
    sa.Column('reference_id', sa.UUID(), nullable=True),
    sa.Column('details', sa.JSON(), nullable=True),
    *base_columns(),
    sa.CheckConstraint('amount > 0', name='check_wallet_transactions_amount_positive'),
    sa.ForeignKeyConstraint(['wallet_id'], ['wallets.id'], name='fk_wallet_transactions_wallet_id'),
    sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_wallet_transactions_user_id'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('tx_hash')
    )
    op.create_index(op.f('ix_wallet_transactions_id'), 'wallet_transactions', ['id'], unique=False)
    op.create_index(op.f('ix_wallet_transactions_wallet_id'), 'wallet_transactions', ['wallet_id'], unique=False)
    op.create_index(op.f('ix_wallet_transactions_user_id'), 'wallet_transactions', ['user_id'], unique=False)
    op.create_index(op.f('ix_wallet_transactions_type'), 'wallet_transactions', ['type'], unique=False)
    op.create_index(op.f('ix_wallet_transactions_status'), 'wallet_transactions', ['status'], unique=False)
    op.create_index(op.f('ix_wallet_transactions_reference_type'), 'wallet_transactions', ['reference_type'], unique=False)
    op.create_index(op.f('ix_wallet_transactions_reference_id'), 'wallet_transactions', ['reference_id'], unique=False)

    op.create_table('notifications',
    sa.Column('user_id', sa.UUID(), nullable=False),
    sa.Column('type', enum('notification_type'), nullable=False),
    sa.Column('title', sa.String(length=255), nullable=False),
    sa.Column('message', sa.Text(), nullable=False),
    sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column('action_url', sa.String(length=500), nullable=True),
    *base_columns(),
    sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_notifications_user_id'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_notifications_id'), 'notifications', ['id'], unique=False)
    op.create_index(op.f('ix_notifications_user_id'), 'notifications', ['user_id'], unique=False)
    op.create_index(op.f('ix_notifications_read'), 'notifications', ['read'], unique=False)

    # Real estate
    op.create_table('properties',
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('location', sa.String(length=255), nullable=False),
    money('price'),
    sa.Column('status', enum('property_status'), nullable=False),
    sa.Column('area', sa.Numeric(precision=12, scale=2), nullable=True),
    sa.Column('bedrooms', sa.Integer(), nullable=True),
    sa.Column('bathrooms', sa.Integer(), nullable=True),
    sa.Column('features', sa.JSON(), nullable=True),
    sa.Column('main_image', sa.String(length=500), nullable=True),
    *base_columns(),
    sa.CheckConstraint('price > 0', name='check_properties_price_positive'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_properties_id'), 'properties', ['id'], unique=False)
    op.create_index(op.f('ix_properties_status'), 'properties', ['status'], unique=False)

    op.create_table('property_transactions',
    sa.Column('property_id', sa.UUID(), nullable=False),
    sa.Column('user_id', sa.UUID(), nullable=False),
    sa.Column('payment_type', enum('property_payment_type'), nullable=False),
    sa.Column('status', enum('property_transaction_status'), nullable=False),
    money('amount'),
    money('amount_paid', server_default='0'),
    sa.Column('installments', sa.Integer(), nullable=False, server_default='1'),
    money('installment_amount', nullable=True),
    sa.Column('paid_installments', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('next_payment_due', sa.DateTime(timezone=True), nullable=True),
    sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
    *base_columns(),
    sa.CheckConstraint('paid_installments <= installments', name='check_property_transactions_installments'),
    sa.ForeignKeyConstraint(['property_id'], ['properties.id'], name='fk_property_transactions_property_id'),
    sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_property_transactions_user_id'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_property_transactions_id'), 'property_transactions', ['id'], unique=False)
    op.create_index(op.f('ix_property_transactions_property_id'), 'property_transactions', ['property_id'], unique=False)
    op.create_index(op.f('ix_property_transactions_user_id'), 'property_transactions', ['user_id'], unique=False)
    op.create_index(op.f('ix_property_transactions_status'), 'property_transactions', ['status'], unique=False)

    create_investment_table(
        'real_estate_investments',
        sa.Column('plan_type', enum('real_estate_plan_type'), nullable=False),
    )

    # Green energy
    op.create_table('equipment',
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('type', sa.String(length=50), nullable=False),
    money('price'),
    sa.Column('stock_quantity', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('status', enum('equipment_status'), nullable=False),
    sa.Column('specifications', sa.JSON(), nullable=True),
    sa.Column('main_image', sa.String(length=500), nullable=True),
    *base_columns(),
    sa.CheckConstraint('stock_quantity >= 0', name='check_equipment_stock_non_negative'),
    sa.CheckConstraint('price > 0', name='check_equipment_price_positive'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_equipment_id'), 'equipment', ['id'], unique=False)
    op.create_index(op.f('ix_equipment_status'), 'equipment', ['status'], unique=False)

    op.create_table('equipment_transactions',
    sa.Column('user_id', sa.UUID(), nullable=False),
    sa.Column('equipment_id', sa.UUID(), nullable=False),
    sa.Column('quantity', sa.Integer(), nullable=False),
    money('unit_price'),
    money('total_amount'),
    sa.Column('status', enum('equipment_order_status'), nullable=False),
    sa.Column('delivery_address', sa.JSON(), nullable=False),
    sa.Column('tracking_number', sa.String(length=100), nullable=True),
    sa.Column('delivery_pin', sa.String(length=6), nullable=True),
    sa.Column('delivery_date', sa.DateTime(timezone=True), nullable=True),
    sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
    *base_columns(),
    sa.CheckConstraint('quantity > 0', name='check_equipment_transactions_quantity_positive'),
    sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_equipment_transactions_user_id'),
    sa.ForeignKeyConstraint(['equipment_id'], ['equipment.id'], name='fk_equipment_transactions_equipment_id'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_equipment_transactions_id'), 'equipment_transactions', ['id'], unique=False)
    op.create_index(op.f('ix_equipment_transactions_user_id'), 'equipment_transactions', ['user_id'], unique=False)
    op.create_index(op.f('ix_equipment_transactions_equipment_id'), 'equipment_transactions', ['equipment_id'], unique=False)
    op.create_index(op.f('ix_equipment_transactions_status'), 'equipment_transactions', ['status'], unique=False)

    create_plan_table('green_energy_plans')
    create_investment_table(
        'green_energy_investments',
        sa.Column('plan_id', sa.UUID(), nullable=False),
        sa.ForeignKeyConstraint(['plan_id'], ['green_energy_plans.id'], name='fk_green_energy_investments_plan_id'),
    )
    op.create_index(op.f('ix_green_energy_investments_plan_id'), 'green_energy_investments', ['plan_id'], unique=False)

    # Markets
    create_plan_table('market_investment_plans')
    create_investment_table(
        'market_investments',
        sa.Column('plan_id', sa.UUID(), nullable=False),
        sa.ForeignKeyConstraint(['plan_id'], ['market_investment_plans.id'], name='fk_market_investments_plan_id'),
    )
    op.create_index(op.f('ix_market_investments_plan_id'), 'market_investments', ['plan_id'], unique=False)

    # Referrals
    op.create_table('referrals',
    sa.Column('referrer_id', sa.UUID(), nullable=False),
    sa.Column('referred_id', sa.UUID(), nullable=False),
    sa.Column('status', enum('referral_status'), nullable=False),
    sa.Column('commission_paid', sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
    *base_columns(),
    sa.ForeignKeyConstraint(['referrer_id'], ['users.id'], name='fk_referrals_referrer_id'),
    sa.ForeignKeyConstraint(['referred_id'], ['users.id'], name='fk_referrals_referred_id'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_referrals_id'), 'referrals', ['id'], unique=False)
    op.create_index(op.f('ix_referrals_referrer_id'), 'referrals', ['referrer_id'], unique=False)
    op.create_index(op.f('ix_referrals_referred_id'), 'referrals', ['referred_id'], unique=True)
    op.create_index(op.f('ix_referrals_status'), 'referrals', ['status'], unique=False)

    op.create_table('referral_settings',
    sa.Column('revision', sa.Integer(), nullable=False),
    sa.Column('property_commission_rate', sa.Numeric(precision=5, scale=2), nullable=False, server_default='0'),
    sa.Column('equipment_commission_rate', sa.Numeric(precision=5, scale=2), nullable=False, server_default='0'),
    sa.Column('market_commission_rate', sa.Numeric(precision=5, scale=2), nullable=False, server_default='0'),
    sa.Column('green_energy_commission_rate', sa.Numeric(precision=5, scale=2), nullable=False, server_default='0'),
    sa.Column('created_by_id', sa.UUID(), nullable=True),
    *base_columns(),
    sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], name='fk_referral_settings_created_by_id'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('revision')
    )
    op.create_index(op.f('ix_referral_settings_id'), 'referral_settings', ['id'], unique=False)

    op.create_table('referral_commissions',
    sa.Column('referral_id', sa.UUID(), nullable=False),
    sa.Column('user_id', sa.UUID(), nullable=False),
    sa.Column('referred_user_id', sa.UUID(), nullable=False),
    sa.Column('transaction_type', enum('commission_transaction_type'), nullable=False),
    sa.Column('reference_id', sa.UUID(), nullable=False),
    money('base_amount'),
    sa.Column('rate', sa.Numeric(precision=5, scale=2), nullable=False),
    money('amount'),
    sa.Column('status', enum('commission_status'), nullable=False),
    sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('rejection_reason', sa.Text(), nullable=True),
    sa.Column('reference_label', sa.String(length=255), nullable=True),
    *base_columns(),
    sa.ForeignKeyConstraint(['referral_id'], ['referrals.id'], name='fk_referral_commissions_referral_id'),
    sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_referral_commissions_user_id'),
    sa.ForeignKeyConstraint(['referred_user_id'], ['users.id'], name='fk_referral_commissions_referred_user_id'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_referral_commissions_id'), 'referral_commissions', ['id'], unique=False)
    op.create_index(op.f('ix_referral_commissions_referral_id'), 'referral_commissions', ['referral_id'], unique=False)
    op.create_index(op.f('ix_referral_commissions_user_id'), 'referral_commissions', ['user_id'], unique=False)
    op.create_index(op.f('ix_referral_commissions_reference_id'), 'referral_commissions', ['reference_id'], unique=False)
    op.create_index(op.f('ix_referral_commissions_status'), 'referral_commissions', ['status'], unique=False)


def downgrade() -> None:
    for table in (
        'referral_commissions',
        'referral_settings',
        'referrals',
        'market_investments',
        'market_investment_plans',
        'green_energy_investments',
        'green_energy_plans',
        'equipment_transactions',
        'equipment',
        'real_estate_investments',
        'property_transactions',
        'properties',
        'notifications',
        'wallet_transactions',
        'wallets',
        'audit_logs',
        'users',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
